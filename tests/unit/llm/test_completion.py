"""OpenAI completion client unit tests."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

from openai import OpenAIError

from civicprep.llm.completion import (
    OpenAICompletionClient,
    build_messages,
    create_completion_client,
)


def _response(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def _client(create: AsyncMock, timeout: float = 15.0) -> OpenAICompletionClient:
    openai_client = MagicMock()
    openai_client.chat.completions.create = create
    return OpenAICompletionClient(api_key="test-key", timeout=timeout, client=openai_client)


class TestBuildMessages:
    def test_system_history_and_latest_turn(self) -> None:
        history = [{"role": "assistant", "content": "Good morning."}]
        messages = build_messages("Be an officer.", history, "Hello")
        assert messages == [
            {"role": "system", "content": "Be an officer."},
            {"role": "assistant", "content": "Good morning."},
            {"role": "user", "content": "Hello"},
        ]

    def test_without_latest_turn(self) -> None:
        assert build_messages("Be an officer.", []) == [{"role": "system", "content": "Be an officer."}]


class TestOpenAICompletionClient:
    async def test_returns_json_object(self) -> None:
        create = AsyncMock(return_value=_response('{"official_response": "Next question."}'))

        data = await _client(create).complete("prompt", [], "answer")

        assert data == {"official_response": "Next question."}
        kwargs = create.await_args.kwargs
        assert kwargs["model"] == "gpt-4o-mini"
        assert kwargs["response_format"] == {"type": "json_object"}
        assert kwargs["messages"][-1] == {"role": "user", "content": "answer"}

    async def test_api_error_returns_none(self) -> None:
        create = AsyncMock(side_effect=OpenAIError("rate limited"))
        assert await _client(create).complete("prompt", []) is None

    async def test_timeout_returns_none(self) -> None:
        async def slow(**_: object) -> SimpleNamespace:
            await asyncio.sleep(1)
            return _response("{}")

        assert await _client(AsyncMock(side_effect=slow), timeout=0.01).complete("prompt", []) is None

    async def test_malformed_json_returns_none(self) -> None:
        create = AsyncMock(return_value=_response("not json"))
        assert await _client(create).complete("prompt", []) is None

    async def test_non_object_returns_none(self) -> None:
        create = AsyncMock(return_value=_response('["a", "b"]'))
        assert await _client(create).complete("prompt", []) is None

    async def test_empty_content_returns_none(self) -> None:
        create = AsyncMock(return_value=_response(None))
        assert await _client(create).complete("prompt", []) is None


class TestCreateCompletionClient:
    def test_empty_key_means_not_configured(self) -> None:
        assert create_completion_client("  ", "gpt-4o-mini", 15.0) is None

    def test_key_builds_openai_client(self) -> None:
        client = create_completion_client("sk-test", "gpt-4o-mini", 15.0)
        assert isinstance(client, OpenAICompletionClient)
