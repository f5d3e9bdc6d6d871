"""LLM adapter interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from typing import TypeAlias

from wishfulsearch.core.types import ChatMessage

LLMCall: TypeAlias = Callable[[Sequence[ChatMessage]], str]
"""Any callable taking role-tagged messages and returning completion text."""


class LLMAdapter(ABC):
    """Interface for LLM providers.

    Adapters hide model selection, API keys and request shaping behind one
    call shape: ``adapter(messages) -> completion_text``. Provider failures
    surface as ``TransportError``.
    """

    provider: str = "unknown"

    @abstractmethod
    def complete(self, messages: Sequence[ChatMessage]) -> str:
        """Run a chat completion.

        Args:
            messages: Ordered conversation

        Returns:
            Completion text ("" when the provider returns no content)

        Raises:
            TransportError: If the provider call fails
        """
        ...

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Model identifier."""
        ...

    def __call__(self, messages: Sequence[ChatMessage]) -> str:
        return self.complete(messages)
