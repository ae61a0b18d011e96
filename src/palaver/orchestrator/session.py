"""Chat session state."""

from collections.abc import Callable
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from ..approval import ToolProposal
from ..history import ConversationHistory
from ..retrieval import RetrievalScope, Snippet
from ..turnlog import DisplayProjection, Listener

if TYPE_CHECKING:
    from .orchestrator import TurnHandle


class Session:
    """One open conversation.

    Aggregates the conversation history, at most one outstanding tool
    proposal, and the display projection. State transitions are driven by
    the orchestrator; callers read and subscribe.
    """

    def __init__(
        self,
        session_id: str | None = None,
        scope: RetrievalScope | None = None,
        retrieval_enabled: bool = True,
        tools_enabled: bool = True,
        debug_callback: Any | None = None
    ):
        """Initialize a session.

        Args:
            session_id: Optional identifier (generated if omitted)
            scope: Retrieval scope, e.g. the active project
            retrieval_enabled: Whether turns are grounded with retrieved context
            tools_enabled: Whether the model may propose tool calls
            debug_callback: Optional callable(level, component, message)
        """
        self.session_id = session_id or str(uuid4())
        self.scope = scope
        self.retrieval_enabled = retrieval_enabled
        self.tools_enabled = tools_enabled
        self.history = ConversationHistory()
        self.display = DisplayProjection(self.session_id, debug_callback)
        self.pinned_documents: list[Snippet] = []
        self.pending_proposal: ToolProposal | None = None
        self.closed = False
        self._active_turn: "TurnHandle | None" = None

    @property
    def in_progress(self) -> bool:
        """Whether a turn is currently in flight."""
        return self._active_turn is not None

    @property
    def active_turn(self) -> "TurnHandle | None":
        return self._active_turn

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Subscribe to display events. Returns an unsubscribe function."""
        return self.display.subscribe(listener)

    def pin_documents(self, documents: list[Snippet]) -> None:
        """Use these documents as context instead of querying retrieval."""
        self.pinned_documents = list(documents)

    def unpin_documents(self) -> None:
        self.pinned_documents = []

    def __repr__(self) -> str:
        return (
            f"Session(session_id={self.session_id!r}, messages={len(self.history)}, "
            f"in_progress={self.in_progress}, closed={self.closed})"
        )
