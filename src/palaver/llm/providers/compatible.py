"""Providers that speak the OpenAI-compatible Chat Completions API."""

from typing import Any

from .openai import OpenAIProvider


class DeepSeekProvider(OpenAIProvider):
    """DeepSeek provider via its OpenAI-compatible endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str = "deepseek-chat",
        base_url: str = "https://api.deepseek.com",
        **client_kwargs: Any
    ):
        super().__init__(api_key=api_key, model=model, base_url=base_url, **client_kwargs)


class OllamaProvider(OpenAIProvider):
    """Local Ollama server via its ``/v1`` OpenAI-compatible endpoint.

    Ollama ignores the API key but the client requires one.
    """

    def __init__(
        self,
        model: str = "qwen2.5-coder:7b",
        base_url: str = "http://localhost:11434/v1",
        api_key: str = "ollama",
        **client_kwargs: Any
    ):
        super().__init__(api_key=api_key, model=model, base_url=base_url, **client_kwargs)
