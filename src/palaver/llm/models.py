from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class LLMToolCall(BaseModel):
    """A tool invocation requested by the model."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Provider-assigned call identifier")
    name: str = Field(description="Name of the tool to call")
    arguments: dict[str, Any] = Field(default_factory=dict, description="Decoded call arguments")


class ChatMessage(BaseModel):
    """Represents a chat message in a provider request."""

    model_config = ConfigDict(frozen=True)

    role: str = Field(description="Role of the message sender: 'user', 'assistant', 'system' or 'tool'")
    content: str = Field(default="", description="Content of the message")
    tool_calls: list[LLMToolCall] = Field(
        default_factory=list,
        description="Tool calls made by an assistant message"
    )
    tool_call_id: str | None = Field(
        default=None,
        description="For 'tool' messages, the call this result answers"
    )


class LLMResponse(BaseModel):
    """Response from an LLM provider."""

    model_config = ConfigDict(frozen=True)

    content: str = Field(description="Generated text content")
    model: str = Field(description="Model that generated the response")
    tool_calls: list[LLMToolCall] = Field(
        default_factory=list,
        description="Tool calls requested instead of (or alongside) text"
    )
    usage: dict[str, int] | None = Field(
        default=None,
        description="Token usage information"
    )
