"""Interview session data models."""

import re
from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, Field, field_validator

InterviewStage = Literal[
    "greeting",
    "identity",
    "n400_review",
    "oath",
    "civics",
    "reading",
    "writing",
    "closing",
]

STAGE_ORDER: tuple[InterviewStage, ...] = (
    "greeting",
    "identity",
    "n400_review",
    "oath",
    "civics",
    "reading",
    "writing",
    "closing",
)

MessageRole = Literal["officer", "applicant", "system"]

_SCORE_PATTERN = re.compile(r"^(10|[1-9])/10$")


def stage_index(stage: InterviewStage) -> int:
    """Position of a stage in the fixed interview order."""
    return STAGE_ORDER.index(stage)


class FluencyEvaluation(BaseModel):
    """Pronunciation and grammar score for one applicant utterance."""

    score: str
    tip: str

    @field_validator("score")
    @classmethod
    def _check_score(cls, value: str) -> str:
        value = value.strip()
        if not _SCORE_PATTERN.match(value):
            raise ValueError(f"score must look like 'N/10' with N in 1..10, got {value!r}")
        return value


class InterviewMessage(BaseModel):
    """One line of the interview transcript."""

    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    should_speak: bool | None = None
    fluency_evaluation: FluencyEvaluation | None = None


class ChildRecord(BaseModel):
    name: str
    date_of_birth: str = ""


class AddressRecord(BaseModel):
    address: str
    dates: str = ""


class EmploymentRecord(BaseModel):
    employer: str
    dates: str = ""


class TripRecord(BaseModel):
    destination: str
    dates: str = ""
    duration: str = ""


class OffenseRecord(BaseModel):
    offense: str
    date: str = ""
    outcome: str = ""


class N400FormData(BaseModel):
    """Answers from the applicant's N-400 form.

    Every field is optional. Keys the form provider sends that are not modeled here
    land in ``extra_fields`` as strings.
    """

    # Personal information
    full_name: str | None = None
    date_of_birth: str | None = None
    place_of_birth: str | None = None
    country_of_birth: str | None = None
    gender: str | None = None
    marital_status: str | None = None
    spouse_name: str | None = None
    children: list[ChildRecord] = Field(default_factory=list)

    # Residence
    current_address: str | None = None
    city: str | None = None
    state: str | None = None
    zip_code: str | None = None
    years_in_us: int | None = None
    months_in_us: int | None = None
    previous_addresses: list[AddressRecord] = Field(default_factory=list)

    # Employment
    current_occupation: str | None = None
    employer_name: str | None = None
    employment_history: list[EmploymentRecord] = Field(default_factory=list)

    # Travel
    trips_outside_us: list[TripRecord] = Field(default_factory=list)

    # Legal
    arrests: bool | None = None
    criminal_history: list[OffenseRecord] = Field(default_factory=list)
    tax_returns: bool | None = None

    # Citizenship and service
    parents_citizenship: str | None = None
    military_service: bool | None = None
    selective_service: bool | None = None

    # Language
    english_proficiency: str | None = None
    education_level: str | None = None

    extra_fields: dict[str, str] = Field(default_factory=dict)

    @classmethod
    def from_mapping(cls, data: dict[str, object]) -> "N400FormData":
        """Build form data, moving unknown keys into ``extra_fields``."""
        known: dict[str, object] = {}
        extra: dict[str, str] = {str(k): str(v) for k, v in dict(data.get("extra_fields") or {}).items()}
        for key, value in data.items():
            if key == "extra_fields":
                continue
            if key in cls.model_fields:
                known[key] = value
            elif value is not None:
                extra[key] = str(value)
        return cls.model_validate({**known, "extra_fields": extra})

    def full_address(self) -> str | None:
        """Street address joined with city, state and ZIP, or None without a street."""
        if not self.current_address:
            return None
        parts = [self.current_address, self.city, self.state, self.zip_code]
        return " ".join(p for p in parts if p)


class ApplicantContext(BaseModel):
    """Applicant profile supplied when the interview starts."""

    applicant_name: str
    applicant_age: int | None = None
    country_of_origin: str | None = None
    years_in_us: int | None = None
    current_occupation: str | None = None
    marital_status: str | None = None
    children: int | None = None
    n400_form_data: N400FormData | None = None


class CivicsQuestionRef(BaseModel):
    """The civics question currently posed to the applicant."""

    id: int
    question: str
    answers: list[str]


class InterviewSession(BaseModel):
    """Interview session."""

    id: str
    context: ApplicantContext
    messages: list[InterviewMessage] = Field(default_factory=list)
    stage: InterviewStage = "greeting"
    questions_asked: int = 0
    n400_questions_asked: int = 0
    total_n400_questions: int = 3
    civics_questions_asked: int = 0
    total_civics_questions: int = 10
    current_civics_question: CivicsQuestionRef | None = None
    civics_questions_used: list[int] = Field(default_factory=list)
    stage_attempts: int = 0
    pending_prompt: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def form_data(self) -> N400FormData | None:
        return self.context.n400_form_data

    def last_officer_message(self) -> InterviewMessage | None:
        for message in reversed(self.messages):
            if message.role == "officer":
                return message
        return None
