"""Civics question bank and interview training corpus models."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

QuestionCategory = Literal["government", "history", "symbols_holidays"]


def _as_phrasings(value: Any) -> Any:
    """Accept a single answer string or a list of them."""
    if isinstance(value, str):
        return [value]
    return value


class Question(BaseModel):
    """One entry of the civics question bank."""

    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=1)
    question_en: str
    question_es: str = ""
    answers: tuple[str, ...]
    category: QuestionCategory
    subcategory: str = ""
    explanation: str = ""
    important: bool = False
    variable_answer: bool = False

    @field_validator("answers", mode="before")
    @classmethod
    def _normalize_answers(cls, value: Any) -> Any:
        return _as_phrasings(value)

    @field_validator("answers")
    @classmethod
    def _require_answer(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        if not value:
            raise ValueError("a question needs at least one acceptable answer")
        return value


class TrainingQuestion(BaseModel):
    """A reference officer question with its phrasing variations."""

    question: str
    variations: list[str] = Field(default_factory=list)
    expected_response_type: str = ""
    context: str = ""
    natural_responses: list[str] = Field(default_factory=list)
    synonyms: dict[str, list[str]] = Field(default_factory=dict)

    def phrasings(self) -> list[str]:
        return [self.question, *self.variations]


class TrainingCategory(BaseModel):
    category: str
    description: str = ""
    questions: list[TrainingQuestion] = Field(default_factory=list)


class TermDefinition(BaseModel):
    n400_question: str
    explanation: str
    synonyms: list[str] = Field(default_factory=list)


class YesNoPhrases(BaseModel):
    affirmative: list[str] = Field(default_factory=list)
    negative: list[str] = Field(default_factory=list)


class ReviewItem(BaseModel):
    """One step of the fallback N-400 review sequence."""

    field: str
    question: str


class TrainingCorpus(BaseModel):
    """Interview reference material loaded from ``interview-training.yaml``."""

    categories: list[TrainingCategory] = Field(default_factory=list)
    marital_status: dict[str, list[str]] = Field(default_factory=dict)
    yes_no: YesNoPhrases = Field(default_factory=YesNoPhrases)
    travel_purposes: list[str] = Field(default_factory=list)
    reading_sentences: list[str] = Field(default_factory=list)
    writing_sentences: list[str] = Field(default_factory=list)
    n400_review_sequence: list[ReviewItem] = Field(default_factory=list)
    protocol: dict[str, list[str]] = Field(default_factory=dict)
    definitions: dict[str, TermDefinition] = Field(default_factory=dict)
