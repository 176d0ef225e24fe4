"""
Mock model client: returns placeholder MCQs when OPENAI_API_KEY is not set.
Reads the requested count/difficulty back out of the prompt so the full pipeline runs offline.
"""
import hashlib
import json
import logging
import re

logger = logging.getLogger(__name__)

DEFAULT_NUM_QUESTIONS = 5

_COUNT_RE = re.compile(r"Generate (\d+) multiple choice questions")
_DIFFICULTY_RE = re.compile(r"Difficulty level: (\w+)")
_MULTIPLE_RE = re.compile(r"Allow multiple correct answers: (true|false)")


def _make_mock_mcqs(prompt: str, num_questions: int, difficulty: str, multiple_correct: bool) -> list[dict]:
    """Deterministic placeholder MCQs; num_questions in 1-25."""
    n = max(1, min(25, num_questions))
    seed = hashlib.sha256(prompt[-200:].encode()).hexdigest()[:8]
    mcqs = []
    for i in range(n):
        correct = [i % 4, (i + 1) % 4] if multiple_correct else [i % 4]
        mcqs.append({
            "question": f"[Mock] Question {i + 1} (seed {seed}): What is the main idea of the given text?",
            "options": [f"Option {label} (mock)" for label in "ABCD"],
            "correctAnswers": correct,
            "explanation": f"Mock explanation for question {i + 1}. Set OPENAI_API_KEY in .env for real generation.",
            "difficulty": difficulty,
            "multipleCorrect": multiple_correct,
        })
    return mcqs


class MockCompletionClient:
    """Answers every prompt with a fenced JSON array, like the real model tends to."""

    async def complete(self, prompt: str) -> str:
        m = _COUNT_RE.search(prompt)
        n = int(m.group(1)) if m else DEFAULT_NUM_QUESTIONS
        m = _DIFFICULTY_RE.search(prompt)
        difficulty = m.group(1) if m else "medium"
        m = _MULTIPLE_RE.search(prompt)
        multiple = bool(m and m.group(1) == "true")
        mcqs = _make_mock_mcqs(prompt, n, difficulty, multiple)
        return "```json\n" + json.dumps(mcqs, indent=2) + "\n```"


def get_mock_completion_client() -> MockCompletionClient:
    return MockCompletionClient()
