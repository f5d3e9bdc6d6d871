"""CLI context management for LLM configuration and shared state."""

import os
from dataclasses import dataclass, field
from typing import Any

from wishfulsearch.llm import LLMAdapter, get_adapter

DEFAULT_PROVIDER = "openai"


def get_provider(provider: str | None) -> str:
    """Resolve LLM provider from CLI arg, environment variable, or default.

    Priority:
    1. Explicit provider argument
    2. WISHFUL_LLM_PROVIDER environment variable
    3. Default: openai
    """
    if provider:
        return provider
    if env_provider := os.getenv("WISHFUL_LLM_PROVIDER"):
        return env_provider
    return DEFAULT_PROVIDER


@dataclass
class CLIContext:
    """Shared context for CLI commands.

    Holds output preferences and builds the LLM adapter on first use, so
    commands that never call a model need no API key.
    """

    json_output: bool
    provider: str = DEFAULT_PROVIDER
    model: str | None = None
    verbose: bool = False
    _llm: LLMAdapter | None = field(default=None, init=False, repr=False)

    def get_llm(self) -> LLMAdapter:
        """Get or create the LLM adapter (lazy initialization).

        Returns:
            LLMAdapter for the configured provider

        Raises:
            ValueError: If the provider is unknown or misconfigured
            ImportError: If the provider SDK is not installed
        """
        if self._llm is None:
            kwargs: dict[str, Any] = {}
            if self.provider == "azure-openai":
                if not self.model:
                    raise ValueError(
                        "Azure OpenAI needs a deployment name. Pass --model or set "
                        "WISHFUL_LLM_MODEL."
                    )
                kwargs["deployment"] = self.model
            elif self.model:
                kwargs["model"] = self.model
            self._llm = get_adapter(self.provider, **kwargs)
        return self._llm
