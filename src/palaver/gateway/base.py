from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from ..history import Message
from ..retrieval import Snippet
from .models import ModelResult


class ModelGateway(ABC):
    """Abstract base class for model gateways.

    This module hides the design decision of how a conversation is turned
    into a model answer or a tool proposal: prompt layout, tool calling
    protocol, and where approved tools actually run.
    """

    @abstractmethod
    async def complete(
        self,
        history: Sequence[Message],
        context: Sequence[Snippet] | None = None,
        tools_enabled: bool = True
    ) -> ModelResult:
        """Answer the conversation or propose a tool call.

        Args:
            history: Full conversation history, oldest first
            context: Optional grounding snippets
            tools_enabled: Whether the model may propose tool calls

        Returns:
            FinalAnswer or ProposalResult

        Raises:
            ModelUnavailableError: If the model cannot be reached
            InvalidProposalError: If the model proposes an invalid tool call
        """
        pass

    @abstractmethod
    async def continue_with_tool(
        self,
        history: Sequence[Message],
        tool: str,
        args: dict[str, Any],
        approval_token: str | None
    ) -> ModelResult:
        """Resume after an approved proposal.

        Runs the tool under the approval token and lets the model continue
        with the tool's result bound in.

        Args:
            history: The history that produced the proposal
            tool: Approved tool name
            args: Approved tool arguments
            approval_token: Token issued by the approval authority

        Returns:
            FinalAnswer or ProposalResult, with ``executed`` set

        Raises:
            ModelUnavailableError: If the model cannot be reached
            InvalidProposalError: If the tool is unknown, or the model's
                next proposal is invalid

            If the tool already ran, the raised error carries it in
            ``executed``.
        """
        pass

    async def close(self) -> None:
        """Release any resources held by the gateway."""
