"""
Shared dependencies: the process-wide session store and question generator.
Tests swap both through app.dependency_overrides.
"""
from functools import lru_cache

from pdf_mcq.config import settings
from pdf_mcq.llm import get_completion_client
from pdf_mcq.services.mcq_generation_service import QuestionGenerator
from pdf_mcq.services.session_store import SessionStore

_session_store = SessionStore(max_sessions=settings.max_sessions)


def get_session_store() -> SessionStore:
    return _session_store


@lru_cache(maxsize=1)
def get_question_generator() -> QuestionGenerator:
    """One generator (and one model client) per process."""
    return QuestionGenerator(
        get_completion_client(),
        max_attempts=settings.generation_max_attempts,
        backoff_seconds=settings.retry_backoff_seconds,
        max_prompt_chars=settings.max_prompt_chars,
    )
