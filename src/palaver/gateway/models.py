"""Result types returned by model gateways."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from ..approval import ToolProposal


class ToolExecution(BaseModel):
    """Outcome of an approved tool run, reported by a continuation."""

    model_config = ConfigDict(frozen=True)

    tool: str
    content: str
    error: bool = False


class FinalAnswer(BaseModel):
    """The model answered; the turn can end."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["final"] = "final"
    content: str
    executed: ToolExecution | None = None


class ProposalResult(BaseModel):
    """The model wants to run a tool before answering.

    Attributes:
        proposal: The proposed tool call
        preamble: Any text the model produced alongside the proposal
        executed: On continuations, the tool run that preceded this proposal
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["proposal"] = "proposal"
    proposal: ToolProposal
    preamble: str = ""
    executed: ToolExecution | None = None


ModelResult = FinalAnswer | ProposalResult


class UsageSummary(BaseModel):
    """Summary of LLM token usage across all calls.

    Attributes:
        total_calls: Total number of LLM API calls
        total_input_tokens: Total input tokens across all calls
        total_output_tokens: Total output tokens across all calls
        model_breakdown: Token usage broken down by model name
    """

    total_calls: int = Field(default=0, description="Total API calls")
    total_input_tokens: int = Field(default=0, description="Total input tokens")
    total_output_tokens: int = Field(default=0, description="Total output tokens")
    model_breakdown: dict[str, dict[str, int]] = Field(
        default_factory=dict,
        description="Usage breakdown by model"
    )

    def add_usage(self, model: str, input_tokens: int, output_tokens: int) -> None:
        """Add usage statistics for a model call."""
        self.total_calls += 1
        self.total_input_tokens += input_tokens
        self.total_output_tokens += output_tokens

        breakdown = self.model_breakdown.setdefault(
            model, {"calls": 0, "input_tokens": 0, "output_tokens": 0}
        )
        breakdown["calls"] += 1
        breakdown["input_tokens"] += input_tokens
        breakdown["output_tokens"] += output_tokens
