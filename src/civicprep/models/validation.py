"""Answer validation data models."""

from typing import Literal

from pydantic import BaseModel, Field

QuestionKind = Literal[
    "civics",
    "dictation",
    "number",
    "address",
    "identity",
    "occupation",
    "marital_status",
    "other",
]


class ExpectedAnswer(BaseModel):
    """What kind of answer the last officer line asks for."""

    kind: QuestionKind
    question_id: int | None = None
    expected_number: int | None = None
    sentence: str | None = None
    topic: str = ""


class ValidationResult(BaseModel):
    """Outcome of scoring one applicant answer.

    ``confidence`` is a trust signal for the caller, not a probability.
    ``should_advance`` is kept separate from ``is_valid``.
    """

    is_valid: bool
    confidence: float = Field(ge=0.0, le=1.0)
    should_advance: bool
    reason: str = ""

    @classmethod
    def accept(cls, confidence: float, reason: str) -> "ValidationResult":
        return cls(is_valid=True, confidence=confidence, should_advance=True, reason=reason)

    @classmethod
    def reject(cls, confidence: float, reason: str) -> "ValidationResult":
        return cls(is_valid=False, confidence=confidence, should_advance=False, reason=reason)
