from .base import LLMProvider
from .factory import create_llm_provider
from .models import ChatMessage, LLMResponse, LLMToolCall
from .providers import AnthropicProvider, DeepSeekProvider, OllamaProvider, OpenAIProvider

__all__ = [
    "LLMProvider",
    "create_llm_provider",
    "ChatMessage",
    "LLMResponse",
    "LLMToolCall",
    "AnthropicProvider",
    "DeepSeekProvider",
    "OllamaProvider",
    "OpenAIProvider",
]
