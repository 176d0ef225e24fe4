"""
MCQ generation for one chunk: build prompt, call the model with bounded retry, decode the reply.
Retry policy (tenacity): up to 3 attempts, fixed 60s wait, only on rate-limit / context-length errors.
Any other upstream error aborts at once; a malformed reply is never retried.
"""
import asyncio
import json
import logging
import time
from typing import Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from pdf_mcq.errors import UpstreamFailure
from pdf_mcq.llm.base import CompletionClient, ModelAPIError
from pdf_mcq.schemas.mcq import GenerationOptions, MCQQuestion
from pdf_mcq.services.mcq_parsing import parse_mcq_response

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 60.0
# Chunk text beyond this is cut before prompting (model input limit).
DEFAULT_MAX_PROMPT_CHARS = 8000

PROMPT_TEMPLATE = """Generate {count} multiple choice questions from the following text.
Difficulty level: {difficulty}
Allow multiple correct answers: {multiple}

Text:
{text}

Format each question as a JSON object with the following structure:
{{
  "question": "The question text",
  "options": ["Option 1", "Option 2", "Option 3", "Option 4"],
  "correctAnswers": [0],
  "explanation": "Brief explanation of why this is the correct answer",
  "difficulty": "{difficulty}",
  "multipleCorrect": {multiple}
}}
correctAnswers holds the zero-based index (or indices) of the correct option(s).

Return an array of these question objects."""


def build_prompt(text: str, options: GenerationOptions) -> str:
    """Instruction for one chunk; booleans are rendered as JSON literals."""
    return PROMPT_TEMPLATE.format(
        count=options.question_count,
        difficulty=options.difficulty,
        multiple=json.dumps(options.multiple_correct),
        text=text,
    )


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, ModelAPIError) and exc.retryable


class QuestionGenerator:
    """Turns one chunk into a batch of MCQQuestion. Stateless apart from the shared client."""

    def __init__(
        self,
        client: CompletionClient,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
        max_prompt_chars: int = DEFAULT_MAX_PROMPT_CHARS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self._client = client
        self.max_attempts = max_attempts
        self.backoff_seconds = backoff_seconds
        self.max_prompt_chars = max_prompt_chars
        self._sleep = sleep

    async def generate(self, chunk_text: str, options: GenerationOptions) -> list[MCQQuestion]:
        text = chunk_text[: self.max_prompt_chars]
        if len(chunk_text) > self.max_prompt_chars:
            logger.info("Chunk truncated for prompt: %s -> %s chars", len(chunk_text), self.max_prompt_chars)
        prompt = build_prompt(text, options)
        raw = await self._complete_with_retry(prompt)
        timestamp_ms = int(time.time() * 1000)
        questions = parse_mcq_response(raw, options, timestamp_ms)
        logger.info(
            "Generated %s question(s) (requested %s, difficulty=%s)",
            len(questions), options.question_count, options.difficulty,
        )
        return questions

    async def _complete_with_retry(self, prompt: str) -> str:
        retrying = AsyncRetrying(
            retry=retry_if_exception(_is_retryable),
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.backoff_seconds),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            sleep=self._sleep,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self._client.complete(prompt)
        except ModelAPIError as e:
            if e.retryable:
                logger.error("Model still failing after %s attempts: %s", self.max_attempts, e)
            raise UpstreamFailure(f"Failed to generate MCQs: {e.message}", kind=e.kind) from e
        raise UpstreamFailure("Failed to generate MCQs after multiple retries")
