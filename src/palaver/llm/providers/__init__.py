from .anthropic import AnthropicProvider
from .compatible import DeepSeekProvider, OllamaProvider
from .openai import OpenAIProvider

__all__ = ["AnthropicProvider", "DeepSeekProvider", "OllamaProvider", "OpenAIProvider"]
