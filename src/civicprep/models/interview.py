"""Results returned by the interview operations."""

from datetime import datetime

from pydantic import AliasChoices, BaseModel, Field

from civicprep.models.session import FluencyEvaluation, InterviewStage


class OfficerReply(BaseModel):
    """Structured officer turn produced by the completion capability."""

    official_response: str = Field(
        min_length=1,
        validation_alias=AliasChoices("official_response", "officer_response", "respuesta_oficial"),
    )
    fluency_evaluation: FluencyEvaluation | None = None
    answer_accepted: bool | None = None


class InitResult(BaseModel):
    session_id: str
    officer_response: str
    should_speak: bool = True
    fluency_evaluation: FluencyEvaluation | None = None
    stage: InterviewStage


class TurnResult(BaseModel):
    officer_response: str
    should_speak: bool = True
    is_correct: bool | None = None
    feedback: str | None = None
    fluency_evaluation: FluencyEvaluation | None = None
    stage: InterviewStage
    question_id: int | None = None


class AutoMessageResult(BaseModel):
    """Officer line for a transition that needs no applicant input.

    ``available`` is False when the current stage has nothing pending; that is a
    normal outcome, not an error.
    """

    available: bool
    officer_response: str | None = None
    should_speak: bool = True
    fluency_evaluation: FluencyEvaluation | None = None
    stage: InterviewStage


class SessionStatus(BaseModel):
    """Progress snapshot of an interview session."""

    session_id: str
    applicant_name: str
    stage: InterviewStage
    questions_asked: int
    n400_questions_asked: int
    total_n400_questions: int
    civics_questions_asked: int
    total_civics_questions: int
    message_count: int
    has_form_data: bool
    created_at: datetime
    updated_at: datetime
