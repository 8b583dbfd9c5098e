"""Interview session lifecycle."""

import logging
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

from civicprep.models.errors import SessionContractError, SessionNotFoundError
from civicprep.models.session import ApplicantContext, InterviewMessage, InterviewSession
from civicprep.storage.service import SessionStore

logger = logging.getLogger(__name__)


class SessionManager:
    """Owns interview sessions keyed by session id."""

    def __init__(self, store: SessionStore) -> None:
        self._store = store

    async def create_session(
        self,
        context: ApplicantContext,
        *,
        total_n400_questions: int,
        total_civics_questions: int,
    ) -> InterviewSession:
        """Create and persist a new session in the greeting stage."""
        session = InterviewSession(
            id=str(uuid.uuid4()),
            context=context,
            total_n400_questions=total_n400_questions,
            total_civics_questions=total_civics_questions,
        )
        await self._store.save_session(session)
        logger.info("Created session %s for %s", session.id, context.applicant_name)
        return session

    async def get_session(self, session_id: str) -> InterviewSession | None:
        try:
            return await self._store.load_session(session_id)
        except SessionNotFoundError:
            return None

    async def _require(self, session_id: str, operation: str) -> InterviewSession:
        session = await self.get_session(session_id)
        if session is None:
            logger.error("Session %s missing during %s", session_id, operation)
            raise SessionContractError(session_id, operation)
        return session

    async def update_session(self, session_id: str, **fields: Any) -> InterviewSession:
        """Apply field updates to a stored session.

        Raises:
            SessionContractError: The session does not exist. Callers look the
                session up first, so this is a programming error.
        """
        session = await self._require(session_id, "update_session")
        updated = session.model_copy(update={**fields, "updated_at": datetime.now(UTC)})
        await self._store.save_session(updated)
        return updated

    async def add_message(self, session_id: str, message: InterviewMessage) -> InterviewSession:
        """Append one message to the transcript.

        Raises:
            SessionContractError: The session does not exist.
        """
        session = await self._require(session_id, "add_message")
        session.messages.append(message)
        session.updated_at = datetime.now(UTC)
        await self._store.save_session(session)
        return session

    async def delete_session(self, session_id: str) -> bool:
        if await self.get_session(session_id) is None:
            return False
        await self._store.delete_session(session_id)
        logger.info("Deleted session %s", session_id)
        return True

    async def cleanup_old_sessions(self, max_age_seconds: int, now: datetime | None = None) -> list[str]:
        """Delete sessions whose first message is older than ``max_age_seconds``.

        Sessions without messages are aged from their creation time.

        Returns:
            Ids of the deleted sessions.
        """
        cutoff = (now or datetime.now(UTC)) - timedelta(seconds=max_age_seconds)
        removed: list[str] = []
        for session_id in await self._store.list_sessions():
            session = await self.get_session(session_id)
            if session is None:
                continue
            started = session.messages[0].timestamp if session.messages else session.created_at
            if started < cutoff:
                await self._store.delete_session(session_id)
                removed.append(session_id)
        if removed:
            logger.info("Cleaned up %d expired sessions", len(removed))
        return removed
