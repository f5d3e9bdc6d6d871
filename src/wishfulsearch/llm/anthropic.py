"""Anthropic Claude chat adapter."""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from wishfulsearch.core.types import ChatMessage, MessageRole
from wishfulsearch.exceptions import TransportError
from wishfulsearch.llm.base import LLMAdapter

if TYPE_CHECKING:
    from anthropic import Anthropic


def to_anthropic_messages(
    messages: Sequence[ChatMessage],
) -> tuple[str | None, list[dict[str, str]]]:
    """Split out system prompts and merge consecutive same-role turns.

    The Messages API takes the system prompt as a separate parameter and
    requires user/assistant turns to alternate, starting with a user turn.
    """
    system_parts: list[str] = []
    turns: list[dict[str, str]] = []
    for message in messages:
        if message.role == MessageRole.SYSTEM:
            system_parts.append(message.content)
            continue
        if turns and turns[-1]["role"] == message.role:
            turns[-1]["content"] += "\n\n" + message.content
        else:
            turns.append({"role": str(message.role), "content": message.content})

    if turns and turns[0]["role"] != MessageRole.USER:
        turns.insert(0, {"role": "user", "content": "(continue)"})

    system = "\n\n".join(system_parts) if system_parts else None
    return system, turns


class AnthropicAdapter(LLMAdapter):
    """Anthropic Messages API adapter."""

    provider = "anthropic"
    DEFAULT_MODEL = "claude-3-5-sonnet-latest"
    DEFAULT_MAX_TOKENS = 1024

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        client: Anthropic | None = None,
    ) -> None:
        """Initialize Anthropic adapter.

        Args:
            model: Claude model name.
            api_key: Anthropic API key. Falls back to ANTHROPIC_API_KEY env var.
            temperature: Sampling temperature.
            max_tokens: Completion token cap (required by the API).
            client: Pre-built client, skips key resolution.
        """
        if client is None:
            try:
                from anthropic import Anthropic
            except ImportError as e:
                raise ImportError(
                    "anthropic is required for the Anthropic adapter. "
                    "Install it with: pip install wishful-search[anthropic]"
                ) from e

            api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
            if not api_key:
                raise ValueError(
                    "Anthropic API key required. Set ANTHROPIC_API_KEY environment variable "
                    "or pass api_key parameter."
                )
            client = Anthropic(api_key=api_key)

        self._client: Any = client
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens

    def complete(self, messages: Sequence[ChatMessage]) -> str:
        system, turns = to_anthropic_messages(messages)
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": turns,
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }
        if system is not None:
            kwargs["system"] = system

        try:
            response = self._client.messages.create(**kwargs)
        except Exception as e:
            raise TransportError(f"Anthropic request failed: {e}", self.provider) from e

        return "".join(
            block.text for block in response.content if getattr(block, "type", None) == "text"
        )

    @property
    def model_name(self) -> str:
        return self._model
