"""Interview stage transitions."""

import logging

from civicprep.models.session import InterviewSession, InterviewStage

logger = logging.getLogger(__name__)

_UNCONDITIONAL: dict[InterviewStage, InterviewStage] = {
    "greeting": "identity",
    "oath": "civics",
    "reading": "writing",
    "writing": "closing",
}


def next_stage(session: InterviewSession) -> InterviewStage | None:
    """The stage the session should move to now, or None to stay put.

    Reads the per-stage counters but never changes them.
    """
    stage = session.stage
    if stage in _UNCONDITIONAL:
        return _UNCONDITIONAL[stage]
    if stage == "identity":
        return "n400_review" if session.form_data is not None else "oath"
    if stage == "n400_review":
        if session.n400_questions_asked < session.total_n400_questions:
            return None
        return "oath"
    if stage == "civics":
        if session.civics_questions_asked < session.total_civics_questions:
            return None
        return "reading"
    # closing is terminal
    return None


def advance_stage_if_needed(session: InterviewSession) -> bool:
    """Move the session one stage forward when the transition rules allow it.

    Args:
        session: Session to update in place. Only ``stage`` changes.

    Returns:
        True if the stage changed, False when no transition applies.
    """
    target = next_stage(session)
    if target is None:
        return False
    logger.info("Session %s: %s -> %s", session.id, session.stage, target)
    session.stage = target
    return True
