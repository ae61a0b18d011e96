"""Data models for the display projection of a session."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..approval import ToolProposal
from ..history import Role

OUTPUT_PREVIEW_MAX_LENGTH = 500  # Characters kept in a tool output preview


def preview(text: str, limit: int = OUTPUT_PREVIEW_MAX_LENGTH) -> str:
    """Truncate text for display."""
    if len(text) <= limit:
        return text
    return text[:limit] + "... (truncated)"


class ToolStatus(str, Enum):
    DISPATCHED = "dispatched"
    SUCCESS = "success"
    PENDING_APPROVAL = "pending_approval"
    ERROR = "error"


class TurnLogEntry(BaseModel):
    """One observable tool event. Never consulted for control decisions."""

    model_config = ConfigDict(frozen=True)

    tool: str
    args: dict[str, Any] = Field(default_factory=dict)
    status: ToolStatus
    output_preview: str | None = None
    proposal_id: str | None = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class DisplayMessage(BaseModel):
    """A message as shown to the user, mirroring a history message."""

    model_config = ConfigDict(frozen=True)

    role: Role
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class DisplayEventKind(str, Enum):
    MESSAGE_APPENDED = "message_appended"
    RETRIEVAL_FAILED = "retrieval_failed"
    APPROVAL_PENDING = "approval_pending"
    APPROVAL_POLLING = "approval_polling"
    TOOL_EVENT = "tool_event"
    TURN_COMPLETED = "turn_completed"
    TURN_FAILED = "turn_failed"
    TURN_CANCELLED = "turn_cancelled"


class DisplayEvent(BaseModel):
    """A display-state change published to session subscribers.

    Only the fields relevant to ``kind`` are set.
    """

    model_config = ConfigDict(frozen=True)

    kind: DisplayEventKind
    session_id: str
    turn_id: str | None = None
    message: DisplayMessage | None = None
    entry: TurnLogEntry | None = None
    proposal: ToolProposal | None = None
    attempt: int | None = None
    error: str | None = None
    detail: str | None = None
