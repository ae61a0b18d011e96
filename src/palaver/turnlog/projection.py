"""Display projection of a session.

Hides how display state is derived from orchestrator events. The
projection has no control authority: the orchestrator never reads it.
"""

import asyncio
from collections.abc import AsyncIterator, Callable
from typing import Any

from ..approval import ToolProposal
from .models import DisplayEvent, DisplayEventKind, DisplayMessage, TurnLogEntry

Listener = Callable[[DisplayEvent], None]


class TurnLog:
    """Append-only list of tool events."""

    def __init__(self) -> None:
        self._entries: list[TurnLogEntry] = []

    def append(self, entry: TurnLogEntry) -> TurnLogEntry:
        self._entries.append(entry)
        return entry

    @property
    def entries(self) -> tuple[TurnLogEntry, ...]:
        return tuple(self._entries)

    def for_proposal(self, proposal_id: str) -> list[TurnLogEntry]:
        return [e for e in self._entries if e.proposal_id == proposal_id]

    def __len__(self) -> int:
        return len(self._entries)


class DisplayProjection:
    """Display messages, turn log and banner state for one session.

    Subscribers receive every event after the projection has applied it.
    """

    def __init__(self, session_id: str, debug_callback: Any | None = None):
        self.session_id = session_id
        self.messages: list[DisplayMessage] = []
        self.turn_log = TurnLog()
        self.pending_proposal: ToolProposal | None = None
        self.poll_attempts = 0
        self.last_error: str | None = None
        self._listeners: list[Listener] = []
        self._debug_callback = debug_callback

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener.

        Returns:
            A function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def events(self) -> AsyncIterator[DisplayEvent]:
        """Stream events as an async iterator until the consumer stops."""
        queue: asyncio.Queue[DisplayEvent] = asyncio.Queue()
        unsubscribe = self.subscribe(queue.put_nowait)
        try:
            while True:
                yield await queue.get()
        finally:
            unsubscribe()

    def emit(self, event: DisplayEvent) -> None:
        """Apply an event to the projection and notify listeners."""
        self._apply(event)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                # A broken listener must not break the turn
                if self._debug_callback:
                    self._debug_callback("error", "Display", f"Listener failed: {e}")

    def _apply(self, event: DisplayEvent) -> None:
        kind = event.kind
        if kind == DisplayEventKind.MESSAGE_APPENDED and event.message is not None:
            self.messages.append(event.message)
        elif kind == DisplayEventKind.TOOL_EVENT and event.entry is not None:
            self.turn_log.append(event.entry)
        elif kind == DisplayEventKind.APPROVAL_PENDING:
            self.pending_proposal = event.proposal
            self.poll_attempts = 0
        elif kind == DisplayEventKind.APPROVAL_POLLING:
            self.poll_attempts = event.attempt or 0
        elif kind in (
            DisplayEventKind.TURN_COMPLETED,
            DisplayEventKind.TURN_FAILED,
            DisplayEventKind.TURN_CANCELLED,
        ):
            self.pending_proposal = None
            self.poll_attempts = 0
            self.last_error = event.error

    def clear(self) -> None:
        self.messages.clear()
        self.turn_log = TurnLog()
        self.pending_proposal = None
        self.poll_attempts = 0
        self.last_error = None
