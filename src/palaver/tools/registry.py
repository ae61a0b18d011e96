from typing import Any

from ..errors import InvalidProposalError
from .base import BaseTool
from .data_structures import ToolCall, ToolCallResult


class ToolRegistry:
    """Named collection of tools available to the model.

    Hidden design decisions:
    - Lookup by tool name
    - Validation of proposed arguments before approval
    """

    def __init__(self, tools: list[BaseTool] | None = None):
        self._tools: dict[str, BaseTool] = {}
        for tool in tools or []:
            self.register(tool)

    def register(self, tool: BaseTool) -> "ToolRegistry":
        """Add a tool.

        Returns:
            Self for method chaining
        """
        if tool.name in self._tools:
            raise ValueError(f"Tool {tool.name} already registered")
        self._tools[tool.name] = tool
        return self

    def get(self, name: str) -> BaseTool:
        try:
            return self._tools[name]
        except KeyError:
            raise InvalidProposalError(f"Unknown tool: {name}") from None

    def validate(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        """Validate a proposal and return its normalized arguments."""
        args = self.get(name).validate_arguments(arguments)
        return args.model_dump()

    async def execute(self, tool_call: ToolCall) -> ToolCallResult:
        return await self.get(tool_call.tool_name).execute(tool_call)

    def specs(self) -> list[dict[str, Any]]:
        """LLM specifications for all registered tools."""
        return [tool.to_llm_spec() for tool in self._tools.values()]

    def set_debug_callback(self, callback: Any) -> None:
        for tool in self._tools.values():
            tool.set_debug_callback(callback)

    @property
    def names(self) -> list[str]:
        return list(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)
