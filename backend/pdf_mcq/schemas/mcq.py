"""
Generation options, question and response schemas.
Wire names are camelCase (browser UI contract); attributes are snake_case.
"""
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

Difficulty = Literal["easy", "medium", "hard"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GenerationOptions(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    question_count: int = Field(..., ge=1)
    difficulty: Difficulty
    multiple_correct: bool = False

    @field_validator("difficulty", mode="before")
    @classmethod
    def difficulty_lower(cls, v: Any) -> Any:
        return v.strip().lower() if isinstance(v, str) else v


class MCQQuestion(_CamelModel):
    id: str
    question: str = Field(..., min_length=1)
    options: list[str] = Field(..., min_length=2)
    correct_answers: list[int] = Field(..., min_length=1)
    explanation: str = ""
    difficulty: Difficulty
    multiple_correct: bool

    @field_validator("correct_answers", mode="before")
    @classmethod
    def correct_answers_as_list(cls, v: Any) -> Any:
        # Models sometimes answer a single index instead of a one-element array.
        if isinstance(v, int) and not isinstance(v, bool):
            return [v]
        return v

    @model_validator(mode="after")
    def correct_answers_in_range(self) -> "MCQQuestion":
        n = len(self.options)
        for idx in self.correct_answers:
            if idx < 0 or idx >= n:
                raise ValueError(f"correct answer index {idx} out of range for {n} options")
        self.correct_answers = list(dict.fromkeys(self.correct_answers))
        return self


class GenerationMetadata(_CamelModel):
    total_questions: int
    difficulty: Difficulty
    generated_at: datetime
    has_more_chunks: bool
    current_chunk: int  # 1-based
    total_chunks: int
    session_id: str


class GenerationResponse(_CamelModel):
    questions: list[MCQQuestion]
    metadata: GenerationMetadata


class NextBatchRequest(_CamelModel):
    options: GenerationOptions | None = None
    # Omitted -> most recently uploaded document.
    session_id: str | None = None


class ErrorResponse(BaseModel):
    error: str
    details: Any = None


class HealthResponse(BaseModel):
    status: str
    message: str
