"""
Model client interface: complete(prompt) -> raw text.
Implementations classify upstream failures into ModelErrorKind so the retry policy
branches on a closed set of kinds instead of provider error strings.
"""
from enum import Enum
from typing import Protocol


class ModelErrorKind(str, Enum):
    RATE_LIMIT = "rate_limit"
    CONTEXT_LENGTH = "context_length"
    OTHER = "other"


# Kinds worth waiting out: rate limits clear, context errors were hit before truncation was tuned.
RETRYABLE_KINDS = frozenset({ModelErrorKind.RATE_LIMIT, ModelErrorKind.CONTEXT_LENGTH})


class ModelAPIError(Exception):
    """Upstream model call failed. kind decides whether the generator retries."""

    def __init__(self, kind: ModelErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    @property
    def retryable(self) -> bool:
        return self.kind in RETRYABLE_KINDS

    def __repr__(self) -> str:
        return f"ModelAPIError(kind={self.kind.value!r}, message={self.message!r})"


class CompletionClient(Protocol):
    """Abstract interface for one prompt -> one raw text reply."""

    async def complete(self, prompt: str) -> str:
        """
        Send prompt as a single user message; return the model's text reply.
        Raises ModelAPIError on any upstream failure.
        """
        ...
