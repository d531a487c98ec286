"""Factory for creating LLM providers by name."""

from typing import Any

from .base import LLMProvider
from .providers import AnthropicProvider, DeepSeekProvider, GeminiProvider, OpenAIProvider

PROVIDERS: dict[str, type[LLMProvider]] = {
    "gemini": GeminiProvider,
    "openai": OpenAIProvider,
    "deepseek": DeepSeekProvider,
    "anthropic": AnthropicProvider,
}

_ALIASES = {"claude": "anthropic", "google": "gemini"}


def create_llm_provider(provider: str, **config: Any) -> LLMProvider:
    """Create a chat provider.

    Every provider takes `api_key` (required) and `model` (optional, each
    provider has its own default). OpenAI, DeepSeek and Anthropic also accept
    `base_url` for compatible endpoints.

    Args:
        provider: 'gemini', 'openai', 'deepseek' or 'anthropic' ('claude'
            and 'google' are accepted as aliases)
        **config: Provider constructor arguments

    Returns:
        Initialized LLM provider instance

    Raises:
        ValueError: If provider type is not supported
        TypeError: If api_key is missing
    """
    name = provider.lower()
    name = _ALIASES.get(name, name)

    provider_class = PROVIDERS.get(name)
    if provider_class is None:
        raise ValueError(
            f"Unsupported provider: {provider}. "
            f"Supported providers: {', '.join(PROVIDERS)}"
        )
    if "api_key" not in config:
        raise TypeError(f"{provider_class.__name__} requires 'api_key' in config")
    return provider_class(**config)
