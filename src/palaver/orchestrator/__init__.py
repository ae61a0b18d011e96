"""Conversation orchestrator module."""

from .models import TurnErrorKind, TurnOutcome, TurnStatus
from .orchestrator import (
    NO_RESPONSE,
    REJECTED_PREVIEW,
    TIMED_OUT_PREVIEW,
    ConversationOrchestrator,
    TurnHandle,
)
from .session import Session

__all__ = [
    "NO_RESPONSE",
    "REJECTED_PREVIEW",
    "TIMED_OUT_PREVIEW",
    "ConversationOrchestrator",
    "Session",
    "TurnErrorKind",
    "TurnHandle",
    "TurnOutcome",
    "TurnStatus",
]
