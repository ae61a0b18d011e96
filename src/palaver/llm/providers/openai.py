import json
from typing import Any

from openai import AsyncOpenAI

from ...errors import InvalidProposalError
from ..base import LLMProvider
from ..models import ChatMessage, LLMResponse, LLMToolCall


def _to_openai_message(msg: ChatMessage) -> dict[str, Any]:
    """Convert a chat message to Chat Completions format."""
    if msg.role == "tool":
        return {"role": "tool", "tool_call_id": msg.tool_call_id, "content": msg.content}

    if msg.role == "assistant" and msg.tool_calls:
        return {
            "role": "assistant",
            "content": msg.content or None,
            "tool_calls": [
                {
                    "id": call.id,
                    "type": "function",
                    "function": {"name": call.name, "arguments": json.dumps(call.arguments)}
                }
                for call in msg.tool_calls
            ]
        }

    return {"role": msg.role, "content": msg.content}


def _to_openai_tool(spec: dict[str, Any]) -> dict[str, Any]:
    return {
        "type": "function",
        "function": {
            "name": spec["name"],
            "description": spec.get("description", ""),
            "parameters": spec.get("parameters", {"type": "object", "properties": {}})
        }
    }


def _decode_arguments(name: str, raw: str | None) -> dict[str, Any]:
    if not raw:
        return {}
    try:
        decoded = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidProposalError(f"Malformed arguments for tool '{name}': {e}") from e
    if not isinstance(decoded, dict):
        raise InvalidProposalError(f"Arguments for tool '{name}' must be an object")
    return decoded


class OpenAIProvider(LLMProvider):
    """OpenAI LLM provider implementation.

    Hidden design decisions:
    - OpenAI API client initialization
    - Message and tool format conversion
    - Decoding of function-call arguments
    - Authentication mechanism
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: str | None = None,
        organization: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Default model to use
            base_url: Optional custom API base URL (any OpenAI-compatible server)
            organization: Optional organization ID
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._model = model
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        """Get the default model name."""
        return self._model

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        tools: list[dict[str, Any]] | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        """Generate a chat completion using the Chat Completions API.

        Args:
            messages: Conversation history
            model: Model to use (overrides default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate
            tools: Optional tool specifications
            **kwargs: Additional OpenAI-specific parameters

        Returns:
            LLMResponse with generated content and any tool calls
        """
        request_params: dict[str, Any] = {
            "model": model or self._model,
            "messages": [_to_openai_message(msg) for msg in messages],
            "temperature": temperature,
            **kwargs
        }
        if max_tokens is not None:
            request_params["max_tokens"] = max_tokens
        if tools:
            request_params["tools"] = [_to_openai_tool(spec) for spec in tools]

        completion = await self._client.chat.completions.create(**request_params)

        usage = None
        if completion.usage:
            usage = {
                "prompt_tokens": completion.usage.prompt_tokens,
                "completion_tokens": completion.usage.completion_tokens,
                "total_tokens": completion.usage.total_tokens
            }

        message = completion.choices[0].message
        tool_calls = [
            LLMToolCall(
                id=call.id,
                name=call.function.name,
                arguments=_decode_arguments(call.function.name, call.function.arguments)
            )
            for call in (message.tool_calls or [])
        ]

        return LLMResponse(
            content=message.content or "",
            model=completion.model,
            tool_calls=tool_calls,
            usage=usage
        )

    async def close(self) -> None:
        """Close the OpenAI client."""
        await self._client.close()
