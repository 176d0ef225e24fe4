"""
Service error taxonomy. Each error carries the HTTP status the app-level handler
responds with; body is {"error": message, "details": details}.
"""
from typing import Any

from pdf_mcq.llm.base import ModelErrorKind


class MCQServiceError(Exception):
    status_code: int = 500

    def __init__(self, message: str, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class InvalidInput(MCQServiceError):
    """Missing or malformed request fields (file, options)."""

    status_code = 400


class NoActiveSession(MCQServiceError):
    status_code = 400


class NoMoreChunks(MCQServiceError):
    status_code = 400


class ExtractionFailure(MCQServiceError):
    """Document could not be read or yielded no text."""

    status_code = 500


class GenerationFailure(MCQServiceError):
    status_code = 500


class MalformedResponse(GenerationFailure):
    """Model reply is not a JSON array of valid questions. Never retried."""


class UpstreamFailure(GenerationFailure):
    """Model API error: non-retryable, or retryable but the attempt budget ran out."""

    def __init__(self, message: str, kind: ModelErrorKind = ModelErrorKind.OTHER, details: Any = None):
        super().__init__(message, details=details if details is not None else {"kind": kind.value})
        self.kind = kind
