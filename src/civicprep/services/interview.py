"""Interview orchestration: one handler per client request."""

import asyncio
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from civicprep.config import ServerConfig
from civicprep.models.errors import InvalidContextError, InvalidInputError, SessionNotFoundError
from civicprep.models.interview import AutoMessageResult, InitResult, SessionStatus, TurnResult
from civicprep.models.session import (
    ApplicantContext,
    CivicsQuestionRef,
    FluencyEvaluation,
    InterviewMessage,
    InterviewSession,
    N400FormData,
)
from civicprep.services.officer import (
    ACKNOWLEDGEMENT,
    CLOSING_REPLY,
    MOVE_ON,
    NEXT_QUESTION,
    RETRY_PREFIX,
    OfficerGenerator,
    civics_feedback,
    reply_accepts_answer,
)
from civicprep.services.question_bank import QuestionBank
from civicprep.services.sessions import SessionManager
from civicprep.services.speech import SpeechSynthesizer, normalize_for_speech
from civicprep.services.stage_engine import advance_stage_if_needed
from civicprep.services.training import TrainingService
from civicprep.validators.response import ResponseValidator

logger = logging.getLogger(__name__)

# Important questions are favored for the first few civics questions.
PRIORITIZED_CIVICS_QUESTIONS = 3

# Asked when the fallback N-400 review sequence is empty.
DEFAULT_REVIEW_QUESTION = "Have you ever been arrested or cited by a police officer?"

_PROGRESS_FIELDS = (
    "messages",
    "stage",
    "questions_asked",
    "n400_questions_asked",
    "civics_questions_asked",
    "current_civics_question",
    "civics_questions_used",
    "stage_attempts",
    "pending_prompt",
)


def _join(*parts: str | None) -> str:
    return " ".join(p for p in parts if p)


def _parse_context(context: ApplicantContext | Mapping[str, Any]) -> ApplicantContext:
    if isinstance(context, ApplicantContext):
        applicant = context
    else:
        data = dict(context)
        form = data.get("n400_form_data")
        try:
            if isinstance(form, Mapping):
                data["n400_form_data"] = N400FormData.from_mapping(dict(form))
            applicant = ApplicantContext.model_validate(data)
        except ValidationError as e:
            raise InvalidContextError(str(e)) from e
    if not applicant.applicant_name.strip():
        raise InvalidContextError("applicant_name must not be empty")
    return applicant


class InterviewService:
    """Runs interviews: validation, stage transitions and officer lines.

    Every mutating operation holds the session's lock from load to save, so turns
    on one session never interleave. The working copy is written back in a single
    update once the officer line is ready.
    """

    def __init__(
        self,
        sessions: SessionManager,
        question_bank: QuestionBank,
        training: TrainingService,
        validator: ResponseValidator,
        officer: OfficerGenerator,
        config: ServerConfig,
        speech: SpeechSynthesizer | None = None,
    ) -> None:
        self._sessions = sessions
        self._question_bank = question_bank
        self._training = training
        self._validator = validator
        self._officer = officer
        self._config = config
        self._speech = speech
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock(self, session_id: str) -> asyncio.Lock:
        return self._locks.setdefault(session_id, asyncio.Lock())

    async def _load(self, session_id: str) -> InterviewSession:
        session = await self._sessions.get_session(session_id)
        if session is None:
            self._locks.pop(session_id, None)
            raise SessionNotFoundError(session_id)
        return session

    async def _commit(self, session: InterviewSession, *messages: InterviewMessage) -> None:
        session.messages.extend(messages)
        fields = {name: getattr(session, name) for name in _PROGRESS_FIELDS}
        await self._sessions.update_session(session.id, **fields)

    async def _speak(self, text: str) -> None:
        if self._speech is None:
            return
        try:
            await self._speech.speak(normalize_for_speech(text))
        except Exception:
            logger.warning("Speech output failed", exc_info=True)

    async def init_interview(self, context: ApplicantContext | Mapping[str, Any]) -> InitResult:
        """Start a new interview in the greeting stage.

        Args:
            context: Applicant profile, as a model or a plain mapping. N-400 form
                data may be given as a mapping; unknown keys go to ``extra_fields``.

        Returns:
            The new session id and the officer's greeting.

        Raises:
            InvalidContextError: The context is malformed or the name is empty.
        """
        applicant = _parse_context(context)
        for expired in await self._sessions.cleanup_old_sessions(self._config.session_max_age_seconds):
            self._locks.pop(expired, None)

        if applicant.n400_form_data is not None:
            total_n400 = self._config.n400_questions_with_form
        else:
            total_n400 = self._config.n400_questions_without_form
        session = await self._sessions.create_session(
            applicant,
            total_n400_questions=total_n400,
            total_civics_questions=self._config.total_civics_questions,
        )

        async with self._lock(session.id):
            text, _ = await self._compose(session, entering=True)
            await self._commit(session, InterviewMessage(role="officer", content=text, should_speak=True))
        await self._speak(text)
        return InitResult(session_id=session.id, officer_response=text, stage=session.stage)

    async def submit_applicant_response(self, session_id: str, text: str) -> TurnResult:
        """Process one applicant utterance and produce the officer's next line.

        Raises:
            InvalidInputError: The utterance is empty.
            SessionNotFoundError: No session with this id.
        """
        if not text or not text.strip():
            raise InvalidInputError("response must not be empty")
        text = text.strip()

        async with self._lock(session_id):
            session = await self._load(session_id)
            stage = session.stage
            is_correct: bool | None = None
            feedback: str | None = None
            question_id: int | None = None
            fluency: FluencyEvaluation | None = None

            if stage == "closing":
                officer_text = CLOSING_REPLY
            elif stage == "greeting":
                self._advance(session)
                officer_text, fluency = await self._compose(session, user_message=text, entering=True)
            elif stage == "civics":
                officer_text, is_correct, feedback, question_id = await self._civics_turn(session, text)
            else:
                officer_text, fluency = await self._general_turn(session, text)

            if fluency is None:
                fluency = await self._officer.evaluate_fluency(text)
            session.questions_asked += 1
            await self._commit(
                session,
                InterviewMessage(role="applicant", content=text),
                InterviewMessage(
                    role="officer",
                    content=officer_text,
                    should_speak=True,
                    fluency_evaluation=fluency,
                ),
            )

        await self._speak(officer_text)
        return TurnResult(
            officer_response=officer_text,
            is_correct=is_correct,
            feedback=feedback,
            fluency_evaluation=fluency,
            stage=session.stage,
            question_id=question_id,
        )

    async def request_auto_message(self, session_id: str) -> AutoMessageResult:
        """Officer line for a transition that needs no applicant input.

        Only finished N-400 review and civics stages move on by themselves, and a
        civics stage with no question pending gets one asked.
        """
        async with self._lock(session_id):
            session = await self._load(session_id)
            previous = session.stage
            if previous == "civics" and session.current_civics_question is None:
                text, fluency = await self._compose(session)
            elif previous in ("n400_review", "civics") and self._advance(session):
                if previous == "civics":
                    session.current_civics_question = None
                text, fluency = await self._compose(session, entering=True)
            else:
                return AutoMessageResult(available=False, stage=session.stage)
            await self._commit(
                session,
                InterviewMessage(role="officer", content=text, should_speak=True, fluency_evaluation=fluency),
            )

        await self._speak(text)
        return AutoMessageResult(
            available=True,
            officer_response=text,
            fluency_evaluation=fluency,
            stage=session.stage,
        )

    async def get_messages(self, session_id: str) -> list[InterviewMessage]:
        session = await self._load(session_id)
        return session.messages

    async def get_session_status(self, session_id: str) -> SessionStatus:
        session = await self._load(session_id)
        return SessionStatus(
            session_id=session.id,
            applicant_name=session.context.applicant_name,
            stage=session.stage,
            questions_asked=session.questions_asked,
            n400_questions_asked=session.n400_questions_asked,
            total_n400_questions=session.total_n400_questions,
            civics_questions_asked=session.civics_questions_asked,
            total_civics_questions=session.total_civics_questions,
            message_count=len(session.messages),
            has_form_data=session.form_data is not None,
            created_at=session.created_at,
            updated_at=session.updated_at,
        )

    async def end_interview(self, session_id: str) -> None:
        """Delete a session and its transcript.

        Raises:
            SessionNotFoundError: No session with this id.
        """
        async with self._lock(session_id):
            deleted = await self._sessions.delete_session(session_id)
        self._locks.pop(session_id, None)
        if not deleted:
            raise SessionNotFoundError(session_id)

    def _advance(self, session: InterviewSession) -> bool:
        """Advance the stage; a new stage starts with a fresh attempt count."""
        if not advance_stage_if_needed(session):
            return False
        session.stage_attempts = 0
        return True

    def _select_civics_question(self, session: InterviewSession) -> CivicsQuestionRef | None:
        question = self._question_bank.get_random_question(
            exclude_ids=session.civics_questions_used,
            prioritize_important=session.civics_questions_asked < PRIORITIZED_CIVICS_QUESTIONS,
        )
        if question is None:
            session.current_civics_question = None
            return None
        ref = CivicsQuestionRef(id=question.id, question=question.question_en, answers=list(question.answers))
        session.current_civics_question = ref
        session.civics_questions_used.append(question.id)
        session.pending_prompt = ref.question
        return ref

    async def _compose(
        self,
        session: InterviewSession,
        *,
        user_message: str | None = None,
        ack: str | None = None,
        entering: bool = False,
    ) -> tuple[str, FluencyEvaluation | None]:
        """Officer line asking the next question of the session's current stage.

        Civics, reading and writing lines are always built from templates so the
        question or sentence appears verbatim for answer validation.
        """
        stage = session.stage

        if stage == "civics":
            ref = self._select_civics_question(session)
            if ref is None:
                logger.info("Session %s: civics questions exhausted", session.id)
                session.civics_questions_asked = session.total_civics_questions
                self._advance(session)
                return await self._compose(session, ack=ack, entering=True)
            if entering:
                line = self._officer.fallback_line("civics", session, question=ref.question)
            else:
                line = ref.question
            return _join(ack, line), None

        if stage in ("reading", "writing"):
            if stage == "reading":
                sentence = self._training.random_reading_sentence()
            else:
                sentence = self._training.random_writing_sentence()
            line = self._officer.fallback_line(stage, session, sentence=sentence)
            session.pending_prompt = line
            return _join(ack, line), None

        if self._officer.available:
            prompt = self._officer.get_stage_prompt(stage, session)
            reply = await self._officer.generate_officer_response(session, prompt, user_message)
            if reply is not None:
                session.pending_prompt = reply.official_response
                return reply.official_response, reply.fluency_evaluation

        if stage == "n400_review":
            item = self._training.review_item(session.n400_questions_asked)
            question = item.question if item is not None else DEFAULT_REVIEW_QUESTION
            session.pending_prompt = question
            if entering:
                line = self._officer.fallback_line("n400_review", session, question=question)
            else:
                line = question
            return _join(ack, line), None

        line = self._officer.fallback_line(stage, session)
        session.pending_prompt = line
        return _join(ack, line), None

    async def _general_turn(
        self, session: InterviewSession, text: str
    ) -> tuple[str, FluencyEvaluation | None]:
        stage = session.stage
        result = self._validator.validate_response(session, text)
        reply = None
        if result.is_valid and result.confidence >= self._config.local_trust_threshold:
            accepted = result.should_advance
            logger.info(
                "Session %s: trusted local validation in %s (confidence %.2f, %s)",
                session.id,
                stage,
                result.confidence,
                result.reason,
            )
        else:
            if self._officer.available:
                prompt = self._officer.get_stage_prompt(stage, session)
                reply = await self._officer.generate_officer_response(session, prompt, text)
            accepted = reply_accepts_answer(reply) if reply is not None else result.should_advance

        if not accepted:
            session.stage_attempts += 1
            if session.stage_attempts < self._config.max_stage_attempts:
                if reply is not None:
                    session.pending_prompt = reply.official_response
                    return reply.official_response, reply.fluency_evaluation
                last = session.last_officer_message()
                retry = session.pending_prompt or (last.content if last is not None else "")
                return _join(RETRY_PREFIX, retry), None
            logger.info(
                "Session %s: %d unsuccessful attempts in %s, moving on",
                session.id,
                session.stage_attempts,
                stage,
            )

        ack = ACKNOWLEDGEMENT if accepted else MOVE_ON
        session.stage_attempts = 0
        if stage == "n400_review":
            session.n400_questions_asked += 1

        if self._advance(session):
            return await self._compose(session, user_message=text, ack=ack, entering=True)
        if reply is not None and accepted:
            session.pending_prompt = reply.official_response
            return reply.official_response, reply.fluency_evaluation
        return await self._compose(session, user_message=text, ack=ack)

    async def _civics_turn(
        self, session: InterviewSession, text: str
    ) -> tuple[str, bool | None, str | None, int | None]:
        current = session.current_civics_question
        if current is None:
            line, _ = await self._compose(session)
            return line, None, None, None

        is_correct = self._question_bank.validate_answer(current.id, text)
        feedback = civics_feedback(is_correct, current.answers)
        session.civics_questions_asked += 1
        logger.info(
            "Session %s: civics question %d answered %s (%d/%d)",
            session.id,
            current.id,
            "correctly" if is_correct else "incorrectly",
            session.civics_questions_asked,
            session.total_civics_questions,
        )

        if self._advance(session):
            session.current_civics_question = None
            line, _ = await self._compose(session, ack=feedback, entering=True)
            return line, is_correct, feedback, current.id

        ref = self._select_civics_question(session)
        if ref is None:
            logger.info("Session %s: civics questions exhausted", session.id)
            session.civics_questions_asked = session.total_civics_questions
            self._advance(session)
            line, _ = await self._compose(session, ack=feedback, entering=True)
            return line, is_correct, feedback, current.id

        line = _join(feedback, NEXT_QUESTION.format(question=ref.question))
        return line, is_correct, feedback, current.id
