"""Interview session persistence."""

import json
from pathlib import Path
from typing import Protocol

from pydantic import ValidationError

from civicprep.models.errors import SessionNotFoundError, StorageError
from civicprep.models.session import InterviewSession


class SessionStore(Protocol):
    """Persistence backend for interview sessions.

    ``load_session`` raises SessionNotFoundError for unknown ids. Stores hand out
    copies, so callers must save a session back after changing it.
    """

    async def save_session(self, session: InterviewSession) -> None: ...

    async def load_session(self, session_id: str) -> InterviewSession: ...

    async def delete_session(self, session_id: str) -> None: ...

    async def list_sessions(self) -> list[str]: ...


class InMemorySessionStore:
    """Process-local store. Sessions live as long as the server process."""

    def __init__(self) -> None:
        self._sessions: dict[str, InterviewSession] = {}

    async def save_session(self, session: InterviewSession) -> None:
        self._sessions[session.id] = session.model_copy(deep=True)

    async def load_session(self, session_id: str) -> InterviewSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session.model_copy(deep=True)

    async def delete_session(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    async def list_sessions(self) -> list[str]:
        return list(self._sessions)


class FileSessionStore:
    """One JSON document per session under ``<data_dir>/sessions``."""

    def __init__(self, data_dir: Path) -> None:
        self._root = data_dir / "sessions"

    def _path(self, session_id: str) -> Path:
        # Session ids are bare file stems; anything with a path component is refused.
        if not session_id or Path(session_id).name != session_id or session_id.startswith("."):
            raise StorageError(f"Invalid session ID: {session_id}")
        return self._root / f"{session_id}.json"

    async def save_session(self, session: InterviewSession) -> None:
        path = self._path(session.id)
        self._root.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(session.model_dump_json(indent=2), encoding="utf-8")
        tmp.replace(path)

    async def load_session(self, session_id: str) -> InterviewSession:
        """Read a session back from disk.

        Raises:
            SessionNotFoundError: No session with this id has been saved.
            StorageError: The id is unsafe or the file is corrupt.
        """
        path = self._path(session_id)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise SessionNotFoundError(session_id) from None
        try:
            return InterviewSession.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            raise StorageError(f"Corrupt session file {path}: {e}") from e

    async def delete_session(self, session_id: str) -> None:
        self._path(session_id).unlink(missing_ok=True)

    async def list_sessions(self) -> list[str]:
        if not self._root.is_dir():
            return []
        return sorted(p.stem for p in self._root.glob("*.json"))


def create_session_store(backend: str, data_dir: Path) -> SessionStore:
    if backend == "file":
        return FileSessionStore(data_dir)
    return InMemorySessionStore()
