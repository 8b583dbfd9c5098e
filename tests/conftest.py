"""Shared test fixtures."""

import random
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from civicprep.config import ServerConfig
from civicprep.llm.completion import ChatMessage
from civicprep.models.session import (
    ApplicantContext,
    InterviewMessage,
    InterviewSession,
    N400FormData,
)
from civicprep.services.interview import InterviewService
from civicprep.services.officer import OfficerGenerator
from civicprep.services.question_bank import QuestionBank
from civicprep.services.sessions import SessionManager
from civicprep.services.training import TrainingService
from civicprep.storage.service import FileSessionStore, InMemorySessionStore
from civicprep.validators.response import ResponseValidator


class FakeCompletionClient:
    """Completion client returning queued responses and recording every call."""

    def __init__(self, responses: list[dict[str, Any] | None] | None = None) -> None:
        self.responses = list(responses or [])
        self.calls: list[dict[str, Any]] = []

    async def complete(
        self,
        system_prompt: str,
        history: list[ChatMessage],
        latest_user_turn: str | None = None,
    ) -> dict[str, Any] | None:
        self.calls.append(
            {"system_prompt": system_prompt, "history": history, "latest_user_turn": latest_user_turn}
        )
        if not self.responses:
            return None
        return self.responses.pop(0)


class RecordingSpeech:
    """Speech output that remembers what it was asked to say."""

    def __init__(self, fail: bool = False) -> None:
        self.spoken: list[str] = []
        self.fail = fail

    async def speak(self, text: str) -> None:
        if self.fail:
            raise RuntimeError("audio device unavailable")
        self.spoken.append(text)


@pytest.fixture
def tmp_data_dir(tmp_path: Path) -> Path:
    """Temporary data directory."""
    return tmp_path / "civicprep-test"


@pytest.fixture
def config_dir() -> Path:
    """Corpus directory."""
    return Path(__file__).parent.parent / "config"


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def server_config(tmp_data_dir: Path, config_dir: Path, monkeypatch: pytest.MonkeyPatch) -> ServerConfig:
    """ServerConfig with no completion service configured."""
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    monkeypatch.delenv("CIVICPREP_OPENAI_API_KEY", raising=False)
    return ServerConfig(data_dir=tmp_data_dir, config_dir=config_dir, random_seed=1234)


@pytest.fixture
def question_bank(config_dir: Path, rng: random.Random) -> QuestionBank:
    return QuestionBank(config_dir, rng=rng)


@pytest.fixture
def training(config_dir: Path, rng: random.Random) -> TrainingService:
    return TrainingService(config_dir, rng=rng)


@pytest.fixture
def validator(question_bank: QuestionBank, training: TrainingService) -> ResponseValidator:
    return ResponseValidator(question_bank, training)


@pytest.fixture
def memory_store() -> InMemorySessionStore:
    return InMemorySessionStore()


@pytest.fixture
def file_store(tmp_data_dir: Path) -> FileSessionStore:
    return FileSessionStore(data_dir=tmp_data_dir)


@pytest.fixture
def session_manager(memory_store: InMemorySessionStore) -> SessionManager:
    return SessionManager(memory_store)


@pytest.fixture
def officer(rng: random.Random) -> OfficerGenerator:
    """Officer generator without a completion service."""
    return OfficerGenerator(None, rng=rng)


@pytest.fixture
def interview_service(
    session_manager: SessionManager,
    question_bank: QuestionBank,
    training: TrainingService,
    validator: ResponseValidator,
    officer: OfficerGenerator,
    server_config: ServerConfig,
) -> InterviewService:
    """InterviewService running on fallback templates only."""
    return InterviewService(
        sessions=session_manager,
        question_bank=question_bank,
        training=training,
        validator=validator,
        officer=officer,
        config=server_config,
    )


@pytest.fixture
def form_data() -> N400FormData:
    return N400FormData(
        full_name="Maria Lopez",
        current_address="123 Main Street",
        city="Los Angeles",
        state="CA",
        zip_code="90012",
        current_occupation="Software Engineer",
        marital_status="Married",
        tax_returns=True,
    )


@pytest.fixture
def make_session() -> Callable[..., InterviewSession]:
    """Factory for sessions whose last officer line is ``officer_says``."""

    def _make(
        officer_says: str | None = None,
        form: N400FormData | None = None,
        **fields: Any,
    ) -> InterviewSession:
        context = ApplicantContext(applicant_name="Maria Lopez", n400_form_data=form)
        session = InterviewSession(id="test-session", context=context, **fields)
        if officer_says is not None:
            session.messages.append(InterviewMessage(role="officer", content=officer_says))
        return session

    return _make
