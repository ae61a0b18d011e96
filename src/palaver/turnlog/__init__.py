"""Turn log and display projection."""

from .models import (
    OUTPUT_PREVIEW_MAX_LENGTH,
    DisplayEvent,
    DisplayEventKind,
    DisplayMessage,
    ToolStatus,
    TurnLogEntry,
    preview,
)
from .projection import DisplayProjection, Listener, TurnLog

__all__ = [
    "OUTPUT_PREVIEW_MAX_LENGTH",
    "DisplayEvent",
    "DisplayEventKind",
    "DisplayMessage",
    "DisplayProjection",
    "Listener",
    "ToolStatus",
    "TurnLog",
    "TurnLogEntry",
    "preview",
]
