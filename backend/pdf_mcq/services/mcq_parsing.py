"""
Decode the model's raw reply into validated MCQQuestion objects.
Reply must be a JSON array (optionally inside a code fence); invalid items are dropped.
"""
import json
import logging
import re

from pydantic import ValidationError

from pdf_mcq.errors import MalformedResponse
from pdf_mcq.schemas.mcq import GenerationOptions, MCQQuestion

logger = logging.getLogger(__name__)

_FENCE_OPEN = re.compile(r"^```[A-Za-z]*\s*")
_FENCE_CLOSE = re.compile(r"\s*```$")


def strip_code_fences(text: str) -> str:
    """Remove a surrounding ``` / ```json fence."""
    t = (text or "").strip()
    t = _FENCE_OPEN.sub("", t)
    t = _FENCE_CLOSE.sub("", t)
    return t.strip()


def make_question_id(timestamp_ms: int, index: int) -> str:
    """Unique within one batch: generation time + position."""
    return f"q{timestamp_ms}-{index}"


def parse_mcq_response(raw: str, options: GenerationOptions, timestamp_ms: int) -> list[MCQQuestion]:
    """
    Parse and validate a model reply. difficulty and multipleCorrect echo the request options.
    Raises MalformedResponse if the reply is not a JSON array, or if it is non-empty and no item is valid.
    """
    text = strip_code_fences(raw)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("LLM returned invalid JSON: %s", text[:200])
        raise MalformedResponse("Model response is not valid JSON", details=str(e)) from e
    if not isinstance(data, list):
        raise MalformedResponse(
            "Response is not an array of questions",
            details=f"got {type(data).__name__}",
        )

    questions: list[MCQQuestion] = []
    rejected: list[str] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            rejected.append(f"item {index}: not an object")
            continue
        payload = {
            **item,
            "id": make_question_id(timestamp_ms, index),
            "difficulty": options.difficulty,
            "multipleCorrect": options.multiple_correct,
        }
        payload.pop("multiple_correct", None)
        try:
            questions.append(MCQQuestion.model_validate(payload))
        except ValidationError as e:
            rejected.append(f"item {index}: {e.error_count()} error(s)")
            logger.warning("Dropping invalid question %s: %s", index, e.errors()[:3])

    if data and not questions:
        raise MalformedResponse("No valid questions in model response", details=rejected)
    if rejected:
        logger.info("Kept %s of %s questions from model response", len(questions), len(data))
    return questions
