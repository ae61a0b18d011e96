"""Tool infrastructure.

Tool arguments are declared as pydantic models so that a proposal can be
schema-checked at the boundary, before it is ever shown for approval.
"""

from abc import ABC, abstractmethod
from typing import Any, ClassVar

from pydantic import BaseModel, ValidationError

from ..errors import InvalidProposalError
from .data_structures import ToolCall, ToolCallResult


class BaseTool(ABC):
    """Abstract base class for tools.

    Subclasses set ``name``, ``description`` and an ``Arguments`` model,
    and implement ``run``.
    """

    name: ClassVar[str]
    description: ClassVar[str]
    Arguments: ClassVar[type[BaseModel]]

    def __init__(self) -> None:
        self._debug_callback: Any | None = None

    def set_debug_callback(self, callback: Any) -> None:
        """Set debug callback for logging.

        Args:
            callback: Callable(level: str, component: str, message: str)
        """
        self._debug_callback = callback

    def _debug(self, level: str, component: str, message: str) -> None:
        """Send debug message if callback is set."""
        if self._debug_callback:
            self._debug_callback(level, component, message)

    @property
    def parameters_schema(self) -> dict[str, Any]:
        """Get the JSON schema for tool parameters."""
        return self.Arguments.model_json_schema()

    def validate_arguments(self, arguments: dict[str, Any]) -> BaseModel:
        """Check proposal arguments against the tool's schema.

        Raises:
            InvalidProposalError: If the arguments do not validate
        """
        try:
            return self.Arguments.model_validate(arguments)
        except ValidationError as e:
            raise InvalidProposalError(
                f"Invalid arguments for tool '{self.name}': {e.error_count()} error(s)"
            ) from e

    async def execute(self, tool_call: ToolCall) -> ToolCallResult:
        """Validate and run a tool call.

        Failures inside the tool become an error result rather than an
        exception, so the model can see what went wrong.
        """
        try:
            args = self.validate_arguments(tool_call.arguments)
            content = await self.run(args)
        except Exception as e:
            self._debug("error", self.name, f"{type(e).__name__}: {e}")
            return ToolCallResult(
                tool_call_id=tool_call.id_,
                content=f"Error executing {self.name}: {e}",
                error=True
            )
        return ToolCallResult(tool_call_id=tool_call.id_, content=content)

    @abstractmethod
    async def run(self, args: Any) -> str:
        """Perform the tool's side effect and describe the result.

        Args:
            args: An instance of ``Arguments``

        Returns:
            Text result shown to the model
        """
        pass

    def to_llm_spec(self) -> dict[str, Any]:
        """Convert tool to LLM-friendly specification."""
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters_schema
        }
