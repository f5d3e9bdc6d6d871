"""LLM adapters for query synthesis and object analysis.

Every adapter is a callable ``(messages) -> completion_text``. Any plain
function with that shape works too, which is how tests script responses.

Example:
    >>> from wishfulsearch.llm import get_adapter
    >>>
    >>> llm = get_adapter("openai", model="gpt-4o")
    >>> llm = get_adapter("anthropic", api_key="sk-ant-...")
"""

from wishfulsearch.llm.base import LLMAdapter, LLMCall

__all__ = [
    "LLMAdapter",
    "LLMCall",
    "get_adapter",
]

PROVIDERS = ("openai", "azure-openai", "anthropic")


def get_adapter(
    provider: str | LLMAdapter = "openai",
    **kwargs: object,
) -> LLMAdapter:
    """Get an LLM adapter by name or return the adapter if already instantiated.

    Args:
        provider: Provider name ("openai", "azure-openai", "anthropic") or LLMAdapter instance.
        **kwargs: Additional arguments passed to the adapter constructor.

    Returns:
        LLMAdapter instance.

    Raises:
        ValueError: If provider name is unknown.
        ImportError: If the provider SDK is not installed.
    """
    if isinstance(provider, LLMAdapter):
        return provider

    if provider == "openai":
        from wishfulsearch.llm.openai import OpenAIAdapter

        return OpenAIAdapter(**kwargs)  # type: ignore[arg-type]
    elif provider == "azure-openai":
        from wishfulsearch.llm.openai import AzureOpenAIAdapter

        return AzureOpenAIAdapter(**kwargs)  # type: ignore[arg-type]
    elif provider == "anthropic":
        from wishfulsearch.llm.anthropic import AnthropicAdapter

        return AnthropicAdapter(**kwargs)  # type: ignore[arg-type]
    else:
        raise ValueError(
            f"Unknown LLM provider: {provider}. Available: {', '.join(PROVIDERS)}"
        )
