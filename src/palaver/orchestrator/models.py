"""Turn outcome types."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class TurnStatus(str, Enum):
    """How a turn ended."""

    COMPLETED = "completed"
    REJECTED = "rejected"
    TIMED_OUT = "timed_out"
    FAILED = "failed"
    CANCELLED = "cancelled"


class TurnErrorKind(str, Enum):
    """Why a turn did not complete."""

    TOOL_REJECTED = "ToolRejected"
    APPROVAL_TIMEOUT = "ApprovalTimeout"
    MODEL_UNAVAILABLE = "ModelUnavailable"
    INVALID_PROPOSAL = "InvalidProposal"
    CONCURRENT_PROPOSAL = "ConcurrentProposal"
    TOOL_ROUNDS_EXCEEDED = "ToolRoundsExceeded"


class TurnOutcome(BaseModel):
    """Result of one turn.

    Attributes:
        turn_id: Identifier of the turn
        session_id: Session the turn ran in
        status: Terminal status
        content: The assistant answer, for completed turns
        error: Error kind for non-completed, non-cancelled turns
        detail: Human-readable detail about the error
        proposal_ids: Proposals raised during the turn, in order
    """

    model_config = ConfigDict(frozen=True)

    turn_id: str
    session_id: str
    status: TurnStatus
    content: str | None = None
    error: TurnErrorKind | None = None
    detail: str | None = None
    proposal_ids: list[str] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.status == TurnStatus.COMPLETED

    def __str__(self) -> str:
        if self.content is not None:
            return self.content
        return f"{self.status.value}: {self.error.value if self.error else self.detail or ''}"
