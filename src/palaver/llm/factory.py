from typing import Any

from .base import LLMProvider
from .providers import AnthropicProvider, DeepSeekProvider, OllamaProvider, OpenAIProvider

# Providers that refuse to start without an API key
_KEYED_PROVIDERS: dict[str, tuple[str, type[LLMProvider]]] = {
    "openai": ("OpenAI", OpenAIProvider),
    "deepseek": ("DeepSeek", DeepSeekProvider),
    "anthropic": ("Anthropic", AnthropicProvider),
    "claude": ("Anthropic", AnthropicProvider),
}


def create_llm_provider(provider: str, **config: Any) -> LLMProvider:
    """Create the chat model provider behind the model gateway.

    Args:
        provider: 'ollama', 'openai', 'deepseek' or 'anthropic' ('claude'
            is accepted as an alias), case-insensitive
        **config: Passed to the provider constructor. Keyed providers
            require ``api_key``; ``model`` and ``base_url`` are optional.

    Returns:
        Initialized LLM provider instance

    Raises:
        ValueError: If provider type is not supported
        TypeError: If a keyed provider is created without ``api_key``

    Examples:
        >>> provider = create_llm_provider("ollama", model="llama3.1:8b")
        >>> provider = create_llm_provider("claude", api_key="sk-ant-...")
    """
    name = provider.lower()

    if name == "ollama":
        return OllamaProvider(**config)

    if name not in _KEYED_PROVIDERS:
        raise ValueError(
            f"Unsupported provider: {provider}. "
            f"Supported providers: 'ollama', 'openai', 'deepseek', 'anthropic'"
        )

    label, cls = _KEYED_PROVIDERS[name]
    if not config.get("api_key"):
        raise TypeError(f"{label} provider requires 'api_key' in config")
    return cls(**config)
