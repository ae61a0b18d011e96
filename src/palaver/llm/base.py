from abc import ABC, abstractmethod
from typing import Any

from .models import ChatMessage, LLMResponse


class LLMProvider(ABC):
    """A chat model that can answer or ask to call a tool.

    Hidden design decisions:
    - Which vendor API is called, and how the client authenticates
    - Conversion between ChatMessage and the vendor's message format,
      including assistant tool calls and tool results
    - Vendor retry policy

    Tools are offered in a vendor-neutral shape:
        {"name": str, "description": str, "parameters": <JSON schema>}

    Tool calls come back in ``LLMResponse.tool_calls``. The provider never
    executes them; that is the model gateway's job after approval.

        async with provider:
            response = await provider.chat_completion(messages, tools=specs)
    """

    @property
    @abstractmethod
    def model(self) -> str:
        """Model used when a request names none."""
        pass

    @abstractmethod
    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        tools: list[dict[str, Any]] | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Send the conversation and return the model's reply.

        Args:
            messages: Prompt messages, system messages first
            model: Model override
            temperature: Sampling temperature
            max_tokens: Output token cap
            tools: Tool specifications the model may call
            **kwargs: Passed through to the vendor client

        Returns:
            LLMResponse with text, tool calls and token usage

        Raises:
            Exception: Whatever the vendor client raises; the model gateway
                wraps it in ModelUnavailableError
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        pass

    async def __aenter__(self) -> "LLMProvider":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        try:
            await self.close()
        except RuntimeError as e:
            # httpx transports may already be gone when the loop shuts down
            if "Event loop is closed" not in str(e):
                raise
