"""OpenAI and Azure OpenAI chat adapters."""

from __future__ import annotations

import os
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from wishfulsearch.core.types import ChatMessage
from wishfulsearch.exceptions import TransportError
from wishfulsearch.llm.base import LLMAdapter

if TYPE_CHECKING:
    from openai import AzureOpenAI, OpenAI


_INSTALL_HINT = (
    "openai is required for OpenAI adapters. "
    "Install it with: pip install wishful-search[openai]"
)


class OpenAIAdapter(LLMAdapter):
    """OpenAI chat completions adapter.

    Example:
        >>> llm = OpenAIAdapter(model="gpt-4o")  # Uses OPENAI_API_KEY env var
        >>> llm([ChatMessage.user("Say hi")])
        'Hi!'
    """

    provider = "openai"
    DEFAULT_MODEL = "gpt-4o"

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        client: OpenAI | None = None,
    ) -> None:
        """Initialize OpenAI adapter.

        Args:
            model: Chat model name. Defaults to gpt-4o.
            api_key: OpenAI API key. Falls back to OPENAI_API_KEY env var.
            temperature: Sampling temperature.
            max_tokens: Completion token cap (provider default when None).
            client: Pre-built client, skips key resolution.
        """
        if client is None:
            try:
                from openai import OpenAI
            except ImportError as e:
                raise ImportError(_INSTALL_HINT) from e

            api_key = api_key or os.environ.get("OPENAI_API_KEY")
            if not api_key:
                raise ValueError(
                    "OpenAI API key required. Set OPENAI_API_KEY environment variable "
                    "or pass api_key parameter."
                )
            client = OpenAI(api_key=api_key)

        self._client: Any = client
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens

    def complete(self, messages: Sequence[ChatMessage]) -> str:
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": self._temperature,
        }
        if self._max_tokens is not None:
            kwargs["max_tokens"] = self._max_tokens

        try:
            response = self._client.chat.completions.create(**kwargs)
        except Exception as e:
            raise TransportError(f"OpenAI request failed: {e}", self.provider) from e

        if not response.choices:
            return ""
        return response.choices[0].message.content or ""

    @property
    def model_name(self) -> str:
        return self._model


class AzureOpenAIAdapter(OpenAIAdapter):
    """Azure OpenAI adapter; the model is the deployment name."""

    provider = "azure-openai"
    DEFAULT_API_VERSION = "2024-06-01"

    def __init__(
        self,
        deployment: str,
        endpoint: str | None = None,
        api_key: str | None = None,
        api_version: str = DEFAULT_API_VERSION,
        temperature: float = 0.0,
        max_tokens: int | None = None,
        client: AzureOpenAI | None = None,
    ) -> None:
        """Initialize Azure OpenAI adapter.

        Args:
            deployment: Azure deployment name.
            endpoint: Resource endpoint. Falls back to AZURE_OPENAI_ENDPOINT env var.
            api_key: API key. Falls back to AZURE_OPENAI_API_KEY env var.
            api_version: Azure OpenAI API version.
            temperature: Sampling temperature.
            max_tokens: Completion token cap.
            client: Pre-built client, skips key resolution.
        """
        if client is None:
            try:
                from openai import AzureOpenAI
            except ImportError as e:
                raise ImportError(_INSTALL_HINT) from e

            endpoint = endpoint or os.environ.get("AZURE_OPENAI_ENDPOINT")
            api_key = api_key or os.environ.get("AZURE_OPENAI_API_KEY")
            if not endpoint or not api_key:
                raise ValueError(
                    "Azure OpenAI endpoint and API key required. Set AZURE_OPENAI_ENDPOINT "
                    "and AZURE_OPENAI_API_KEY or pass endpoint and api_key parameters."
                )
            client = AzureOpenAI(
                azure_endpoint=endpoint, api_key=api_key, api_version=api_version
            )

        super().__init__(
            model=deployment,
            temperature=temperature,
            max_tokens=max_tokens,
            client=client,  # type: ignore[arg-type]
        )
