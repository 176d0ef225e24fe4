"""
Model client abstraction: complete(prompt) -> raw text.
OpenAI when OPENAI_API_KEY is set; otherwise the mock client.
"""
import logging

from pdf_mcq.config import settings
from pdf_mcq.llm.base import CompletionClient, ModelAPIError, ModelErrorKind

logger = logging.getLogger(__name__)


def get_completion_client() -> CompletionClient:
    """Return the OpenAI client; mock only if the API key is missing."""
    key = (settings.openai_api_key or "").strip()
    if not key:
        logger.warning("OPENAI_API_KEY not set; using mock LLM.")
        from pdf_mcq.llm.mock_impl import get_mock_completion_client
        return get_mock_completion_client()
    from pdf_mcq.llm.openai_impl import OpenAICompletionClient
    return OpenAICompletionClient(api_key=key)


__all__ = ["CompletionClient", "ModelAPIError", "ModelErrorKind", "get_completion_client"]
