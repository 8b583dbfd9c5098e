"""civicprep custom exception classes."""


class CivicPrepError(Exception):
    """Base exception for errors surfaced to callers."""


class SessionNotFoundError(CivicPrepError):
    """Raised when a session id does not resolve to a session."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class InvalidContextError(CivicPrepError):
    """Raised when the applicant context cannot start an interview."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid interview context: {detail}")
        self.detail = detail


class InvalidInputError(CivicPrepError):
    """Raised when an applicant utterance is missing or empty."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Invalid input: {detail}")
        self.detail = detail


class StorageError(CivicPrepError):
    """Session storage failure."""


class QuestionBankError(CivicPrepError):
    """Raised when a question corpus file is missing or malformed."""

    def __init__(self, path: str, detail: str) -> None:
        super().__init__(f"Could not load question corpus {path}: {detail}")
        self.path = path


class SessionContractError(RuntimeError):
    """A session vanished between lookup and mutation.

    Not a CivicPrepError: tool handlers must not turn it into an error payload.
    """

    def __init__(self, session_id: str, operation: str) -> None:
        super().__init__(f"Session {session_id} not found during {operation}")
        self.session_id = session_id
        self.operation = operation
