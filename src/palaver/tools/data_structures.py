"""Data structures for tool execution."""

import uuid
from typing import Any

from pydantic import BaseModel, Field


class ToolCall(BaseModel):
    """Represents an approved request to run a tool.

    Attributes:
        id_: Unique identifier for this tool call
        tool_name: Name of the tool to call
        arguments: Validated arguments for the tool call
        approval_token: Token issued by the approval authority
    """

    id_: str = Field(default_factory=lambda: str(uuid.uuid4()))
    tool_name: str
    arguments: dict[str, Any] = Field(default_factory=dict)
    approval_token: str | None = None


class ToolCallResult(BaseModel):
    """Result of executing a tool call.

    Attributes:
        tool_call_id: ID of the tool call that was executed
        content: The result content
        error: Whether an error occurred
    """

    tool_call_id: str
    content: str
    error: bool = False

    def __str__(self) -> str:
        return self.content
