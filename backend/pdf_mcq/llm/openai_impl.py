"""
OpenAI implementation of CompletionClient (chat completions, async SDK).
SDK-level retries are off: the generator's retry policy is the only retry layer.
"""
import logging

import openai
from openai import AsyncOpenAI

from pdf_mcq.config import settings
from pdf_mcq.llm.base import ModelAPIError, ModelErrorKind

logger = logging.getLogger(__name__)


def classify_openai_error(exc: openai.APIError) -> ModelErrorKind:
    """Map an OpenAI SDK error to a ModelErrorKind. Quota exhaustion is a 429 but will not clear by waiting."""
    # OpenAI-compatible backends may send a non-string code.
    code = str(getattr(exc, "code", None) or "").strip().lower()
    if code == "context_length_exceeded":
        return ModelErrorKind.CONTEXT_LENGTH
    if code == "rate_limit_exceeded":
        return ModelErrorKind.RATE_LIMIT
    if isinstance(exc, openai.RateLimitError):
        return ModelErrorKind.OTHER if code == "insufficient_quota" else ModelErrorKind.RATE_LIMIT
    return ModelErrorKind.OTHER


class OpenAICompletionClient:
    def __init__(
        self,
        api_key: str,
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        timeout: float | None = None,
    ):
        self._client = AsyncOpenAI(
            api_key=api_key,
            timeout=timeout if timeout is not None else settings.openai_timeout_seconds,
            max_retries=0,
        )
        self.model = model or settings.openai_model
        self.temperature = temperature if temperature is not None else settings.openai_temperature
        self.max_tokens = max_tokens if max_tokens is not None else settings.openai_max_tokens

    async def complete(self, prompt: str) -> str:
        try:
            response = await self._client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except openai.APIError as e:
            kind = classify_openai_error(e)
            logger.warning("OpenAI call failed (%s): %s", kind.value, e)
            raise ModelAPIError(kind, str(e)) from e
        usage = response.usage
        if usage:
            logger.debug("OpenAI usage: prompt=%s completion=%s", usage.prompt_tokens, usage.completion_tokens)
        return response.choices[0].message.content or "[]"
