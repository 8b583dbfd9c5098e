"""Language-model completion capability."""

import asyncio
import json
import logging
from typing import Any, Protocol

from openai import AsyncOpenAI, OpenAIError

logger = logging.getLogger(__name__)

ChatMessage = dict[str, str]


class CompletionClient(Protocol):
    """Structured JSON completion.

    Implementations return the decoded JSON object, or None on any failure. They
    never raise for transport, timeout or parse problems.
    """

    async def complete(
        self,
        system_prompt: str,
        history: list[ChatMessage],
        latest_user_turn: str | None = None,
    ) -> dict[str, Any] | None: ...


def build_messages(
    system_prompt: str,
    history: list[ChatMessage],
    latest_user_turn: str | None = None,
) -> list[ChatMessage]:
    messages: list[ChatMessage] = [{"role": "system", "content": system_prompt}]
    messages.extend(history)
    if latest_user_turn:
        messages.append({"role": "user", "content": latest_user_turn})
    return messages


class OpenAICompletionClient:
    """Chat-completions client asking for a JSON object response."""

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o-mini",
        timeout: float = 15.0,
        temperature: float = 0.7,
        max_tokens: int = 500,
        client: AsyncOpenAI | None = None,
    ) -> None:
        self._client = client or AsyncOpenAI(api_key=api_key)
        self._model = model
        self._timeout = timeout
        self._temperature = temperature
        self._max_tokens = max_tokens

    async def complete(
        self,
        system_prompt: str,
        history: list[ChatMessage],
        latest_user_turn: str | None = None,
    ) -> dict[str, Any] | None:
        messages = build_messages(system_prompt, history, latest_user_turn)
        try:
            response = await asyncio.wait_for(
                self._client.chat.completions.create(
                    model=self._model,
                    messages=messages,
                    response_format={"type": "json_object"},
                    temperature=self._temperature,
                    max_tokens=self._max_tokens,
                ),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError:
            logger.warning("Completion timed out after %.1fs", self._timeout)
            return None
        except OpenAIError as e:
            logger.warning("Completion request failed: %s", e)
            return None

        content = response.choices[0].message.content if response.choices else None
        if not content:
            logger.warning("Completion returned no content")
            return None
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            logger.warning("Completion returned malformed JSON: %s", e)
            return None
        if not isinstance(data, dict):
            logger.warning("Completion returned %s instead of a JSON object", type(data).__name__)
            return None
        return data


def create_completion_client(api_key: str, model: str, timeout: float) -> CompletionClient | None:
    """OpenAI client when a key is configured, otherwise None."""
    if not api_key.strip():
        logger.warning("No OpenAI API key configured; officer replies use fallback templates")
        return None
    return OpenAICompletionClient(api_key=api_key, model=model, timeout=timeout)
