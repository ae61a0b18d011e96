"""Data models for tool proposals and approval decisions."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ToolProposal(BaseModel):
    """A model-issued request to run a tool, pending approval."""

    model_config = ConfigDict(frozen=True)

    tool: str = Field(description="Name of the tool")
    args: dict[str, Any] = Field(default_factory=dict, description="Validated tool arguments")
    proposal_id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class ApprovalState(str, Enum):
    """Status of a proposal as reported by the approval authority."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ApprovalStatus(BaseModel):
    """One status read from the approval authority."""

    state: ApprovalState
    token: str | None = None


class Approved(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["approved"] = "approved"
    token: str | None = None


class Rejected(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["rejected"] = "rejected"


class TimedOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["timed_out"] = "timed_out"


ApprovalDecision = Approved | Rejected | TimedOut


class PollPending(BaseModel):
    """A non-terminal poll tick.

    Attributes:
        proposal_id: Proposal being polled
        attempt: 1-based count of status reads so far
        transient_error: Set when the read failed and will be retried
    """

    model_config = ConfigDict(frozen=True)

    proposal_id: str
    attempt: int
    transient_error: str | None = None


PollEvent = PollPending | Approved | Rejected | TimedOut
