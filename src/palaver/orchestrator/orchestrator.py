"""Conversation orchestrator.

Drives one turn at a time per session: records the user message, gathers
grounding context, asks the model, and holds any tool proposal at the
approval gate until it is decided.

Hidden design decisions:
- The order of side effects within a turn
- How gate decisions map onto turn outcomes
- The in-progress guard and how cancellation releases it
- Which failures are recovered locally (retrieval) and which end the turn
"""

import asyncio
from typing import Any
from uuid import uuid4

from ..approval import (
    ApprovalGate,
    Approved,
    PollHandle,
    PollPending,
    Rejected,
    TimedOut,
    ToolProposal,
)
from ..errors import (
    ApprovalCancelledError,
    ConcurrentProposalError,
    InvalidProposalError,
    ModelUnavailableError,
    TurnInProgressError,
)
from ..gateway import FinalAnswer, ModelGateway, ModelResult, ToolExecution
from ..history import Message
from ..retrieval import IngestAck, RetrievalGateway, RetrievalScope, Snippet
from ..turnlog import DisplayEvent, DisplayEventKind, DisplayMessage, ToolStatus, TurnLogEntry, preview
from .models import TurnErrorKind, TurnOutcome, TurnStatus
from .session import Session

NO_RESPONSE = "No response"
REJECTED_PREVIEW = "proposal rejected"
TIMED_OUT_PREVIEW = "approval timed out"


class TurnHandle(asyncio.Future):
    """Awaitable handle for one turn. Resolves to a ``TurnOutcome``.

    Expected endings (rejection, timeout, model failure, cancellation) resolve
    the handle with an outcome. Only unexpected errors are set as exceptions.
    """

    def __init__(self, session: Session, turn_id: str, *args: Any, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.session = session
        self.turn_id = turn_id
        self.tool_rounds = 0
        self.proposal_ids: list[str] = []
        self._background_task: asyncio.Task | None = None

    @property
    def background_task(self) -> asyncio.Task:
        """Get the background task."""
        if not self._background_task:
            raise RuntimeError("No background task running")
        return self._background_task

    @background_task.setter
    def background_task(self, task: asyncio.Task) -> None:
        """Set the background task."""
        if self._background_task is not None:
            raise RuntimeError("Background task already set")
        self._background_task = task


class ConversationOrchestrator:
    """Runs chat turns for any number of sessions.

    The orchestrator is the only writer of session state. Sessions share the
    gateways and the approval gate, but a session's turns and proposals are
    never affected by another session.
    """

    def __init__(
        self,
        model_gateway: ModelGateway,
        approval_gate: ApprovalGate,
        retrieval: RetrievalGateway | None = None,
        retrieval_limit: int = 3,
        max_tool_rounds: int = 5,
        debug_callback: Any | None = None
    ):
        """Initialize the orchestrator.

        Args:
            model_gateway: Gateway producing answers and proposals
            approval_gate: Gate holding proposals until decided
            retrieval: Optional retrieval gateway for grounding context
            retrieval_limit: Maximum snippets per retrieval query
            max_tool_rounds: Maximum approved tool executions per turn
            debug_callback: Optional callable(level, component, message)
        """
        if retrieval_limit < 1:
            raise ValueError("retrieval_limit must be at least 1")
        if max_tool_rounds < 0:
            raise ValueError("max_tool_rounds must not be negative")

        self._model = model_gateway
        self._gate = approval_gate
        self._retrieval = retrieval
        self._retrieval_limit = retrieval_limit
        self._max_tool_rounds = max_tool_rounds
        self._debug_callback = debug_callback
        self._background: set[asyncio.Task] = set()

    @property
    def model_gateway(self) -> ModelGateway:
        return self._model

    @property
    def gate(self) -> ApprovalGate:
        return self._gate

    @property
    def retrieval(self) -> RetrievalGateway | None:
        return self._retrieval

    def set_debug_callback(self, callback: Any) -> None:
        self._debug_callback = callback

    def _debug(self, level: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, "Orchestrator", message)

    # Session lifecycle

    def open_session(
        self,
        project_id: str | None = None,
        retrieval_enabled: bool = True,
        tools_enabled: bool = True,
        session_id: str | None = None
    ) -> Session:
        """Create a new session scoped to an optional project."""
        session = Session(
            session_id=session_id,
            scope=RetrievalScope(project_id=project_id),
            retrieval_enabled=retrieval_enabled,
            tools_enabled=tools_enabled,
            debug_callback=self._debug_callback
        )
        self._debug("info", f"Opened session {session.session_id}")
        return session

    def close_session(self, session: Session) -> None:
        """Cancel any in-flight turn and stop all polling for the session."""
        if session.closed:
            return
        self.cancel_turn(session)
        cancelled = self._gate.cancel_session(session.session_id)
        if cancelled:
            self._debug("debug", f"Stopped polling {cancelled} proposal(s) for {session.session_id}")
        session.closed = True
        self._debug("info", f"Closed session {session.session_id}")

    def reset_session(self, session: Session) -> Session:
        """Close a session and open a fresh one with the same settings."""
        self.close_session(session)
        return self.open_session(
            project_id=session.scope.project_id if session.scope else None,
            retrieval_enabled=session.retrieval_enabled,
            tools_enabled=session.tools_enabled
        )

    # Turns

    def submit_turn(self, session: Session, text: str) -> TurnHandle:
        """Start a turn. Must be called from a running event loop.

        The user message is appended before this returns.

        Args:
            session: Session to run the turn in
            text: The user's message

        Returns:
            Handle resolving to the turn's ``TurnOutcome``

        Raises:
            ValueError: If the text is empty or the session is closed
            TurnInProgressError: If the session already has a turn in flight
        """
        if not text or not text.strip():
            raise ValueError("Message text must not be empty")
        if session.closed:
            raise ValueError(f"Session {session.session_id} is closed")
        if session.in_progress:
            raise TurnInProgressError(
                f"Session {session.session_id} already has a turn in progress"
            )

        handle = TurnHandle(session, turn_id=str(uuid4()))
        session._active_turn = handle
        self._append(session, Message.user(text), handle.turn_id)
        self._debug("info", f"Turn {handle.turn_id} started ({len(text)} chars)")

        handle.background_task = asyncio.create_task(self._run_turn(session, handle, text))
        handle.add_done_callback(lambda h: self._on_handle_done(session, h))
        return handle

    def cancel_turn(self, session: Session) -> bool:
        """Cancel the session's in-flight turn.

        Polling for the outstanding proposal stops, history is left as is,
        and the session accepts a new turn immediately.

        Returns:
            True if a turn was cancelled
        """
        handle = session.active_turn
        if handle is None or handle.done():
            return False

        self._debug("info", f"Cancelling turn {handle.turn_id}")
        self._finish(session, handle, self._outcome(handle, TurnStatus.CANCELLED))
        handle.background_task.cancel()
        return True

    async def _run_turn(self, session: Session, handle: TurnHandle, text: str) -> None:
        try:
            outcome = await self._execute(session, handle, text)
        except asyncio.CancelledError:
            # Cancelled through cancel_turn or handle.cancel(); both settle the handle
            return
        except Exception as e:
            self._debug("error", f"Turn {handle.turn_id} crashed: {type(e).__name__}: {e}")
            self._release(session, handle)
            self._emit(session, DisplayEventKind.TURN_FAILED, handle.turn_id, error=type(e).__name__, detail=str(e))
            if not handle.done():
                handle.set_exception(e)
            return
        self._finish(session, handle, outcome)

    async def _execute(self, session: Session, handle: TurnHandle, text: str) -> TurnOutcome:
        context = await self._gather_context(session, text, handle.turn_id)

        try:
            result = await self._model.complete(
                session.history.snapshot(),
                context,
                tools_enabled=session.tools_enabled
            )
        except ModelUnavailableError as e:
            return self._failed(handle, TurnErrorKind.MODEL_UNAVAILABLE, e)
        except InvalidProposalError as e:
            return self._failed(handle, TurnErrorKind.INVALID_PROPOSAL, e)

        while True:
            if isinstance(result, FinalAnswer):
                content = result.content if result.content.strip() else NO_RESPONSE
                self._append(session, Message.assistant(content), handle.turn_id)
                return self._outcome(handle, TurnStatus.COMPLETED, content=content)

            if handle.tool_rounds >= self._max_tool_rounds:
                return self._failed(
                    handle,
                    TurnErrorKind.TOOL_ROUNDS_EXCEEDED,
                    f"Stopped after {self._max_tool_rounds} tool round(s)"
                )

            proposal = result.proposal
            try:
                poll = await self._hold(session, handle, proposal, result.preamble)
            except ConcurrentProposalError as e:
                return self._failed(handle, TurnErrorKind.CONCURRENT_PROPOSAL, e)

            snapshot = session.history.snapshot()
            try:
                decision = await self._gate.decision(
                    poll,
                    on_tick=lambda tick: self._on_poll_tick(session, handle, tick)
                )
            except ApprovalCancelledError:
                session.pending_proposal = None
                return self._outcome(handle, TurnStatus.CANCELLED)
            session.pending_proposal = None
            self._check_single_proposal(session)

            if isinstance(decision, Rejected):
                self._log_tool(session, handle, proposal, ToolStatus.ERROR, REJECTED_PREVIEW)
                return self._outcome(handle, TurnStatus.REJECTED, error=TurnErrorKind.TOOL_REJECTED)
            if isinstance(decision, TimedOut):
                self._log_tool(session, handle, proposal, ToolStatus.ERROR, TIMED_OUT_PREVIEW)
                return self._outcome(
                    handle, TurnStatus.TIMED_OUT, error=TurnErrorKind.APPROVAL_TIMEOUT
                )

            result = await self._resume(session, handle, proposal, decision, snapshot)
            if isinstance(result, TurnOutcome):
                return result

    async def _resume(
        self,
        session: Session,
        handle: TurnHandle,
        proposal: ToolProposal,
        decision: Approved,
        snapshot: tuple[Message, ...]
    ) -> ModelResult | TurnOutcome:
        """Run an approved proposal and record its result."""
        handle.tool_rounds += 1
        self._log_tool(session, handle, proposal, ToolStatus.DISPATCHED)

        try:
            result = await self._model.continue_with_tool(
                snapshot, proposal.tool, proposal.args, decision.token
            )
        except (ModelUnavailableError, InvalidProposalError) as e:
            if e.executed is not None:
                self._record_execution(session, handle, proposal, e.executed, snapshot)
            else:
                self._log_tool(session, handle, proposal, ToolStatus.ERROR, str(e))
            kind = (
                TurnErrorKind.MODEL_UNAVAILABLE
                if isinstance(e, ModelUnavailableError)
                else TurnErrorKind.INVALID_PROPOSAL
            )
            return self._failed(handle, kind, e)

        if result.executed is not None:
            self._record_execution(session, handle, proposal, result.executed, snapshot)
        elif not session.history.is_extension_of(snapshot):
            raise RuntimeError("History changed while a proposal was being decided")

        return result

    def _record_execution(
        self,
        session: Session,
        handle: TurnHandle,
        proposal: ToolProposal,
        executed: ToolExecution,
        snapshot: tuple[Message, ...]
    ) -> None:
        """Log a tool run and bind its result into History."""
        if not session.history.is_extension_of(snapshot):
            raise RuntimeError("History changed while a proposal was being decided")
        status = ToolStatus.ERROR if executed.error else ToolStatus.SUCCESS
        self._log_tool(session, handle, proposal, status, executed.content)
        self._append(session, Message.tool(executed.content), handle.turn_id)

    async def _hold(
        self,
        session: Session,
        handle: TurnHandle,
        proposal: ToolProposal,
        preamble: str = ""
    ) -> PollHandle:
        """Register a proposal with the gate as the session's only outstanding one."""
        if session.pending_proposal is not None:
            raise ConcurrentProposalError(
                f"Session {session.session_id} already has proposal "
                f"{session.pending_proposal.proposal_id} outstanding"
            )

        # Owned by the turn before the await, so a cancel during announce releases it
        session.pending_proposal = proposal
        handle.proposal_ids.append(proposal.proposal_id)
        try:
            poll = await self._gate.register(proposal, session.session_id)
        except BaseException:
            self._gate.cancel(proposal.proposal_id)
            if session.pending_proposal is proposal:
                session.pending_proposal = None
            raise
        self._check_single_proposal(session)

        self._debug("info", f"Holding {proposal.tool} proposal {proposal.proposal_id} for approval")
        self._log_tool(session, handle, proposal, ToolStatus.PENDING_APPROVAL)
        self._emit(
            session,
            DisplayEventKind.APPROVAL_PENDING,
            handle.turn_id,
            proposal=proposal,
            detail=preamble or None
        )
        return poll

    async def _gather_context(self, session: Session, text: str, turn_id: str) -> list[Snippet]:
        if not session.retrieval_enabled:
            return []
        if session.pinned_documents:
            return list(session.pinned_documents)
        if self._retrieval is None:
            return []

        try:
            snippets = await self._retrieval.query(
                text,
                scope=session.scope,
                limit=self._retrieval_limit
            )
        except Exception as e:
            # Grounding is optional; the turn goes on without it
            self._debug("warning", f"Retrieval failed, continuing without context: {e}")
            self._emit(
                session,
                DisplayEventKind.RETRIEVAL_FAILED,
                turn_id,
                error=type(e).__name__,
                detail=str(e)
            )
            return []

        self._debug("debug", f"Retrieved {len(snippets)} snippet(s)")
        return snippets

    # Persistence

    def save_conversation(self, session: Session) -> asyncio.Task | None:
        """Ingest the session transcript in the background.

        Failures are reported through the debug callback only.

        Returns:
            The background task, or None if there is nothing to save
        """
        if self._retrieval is None:
            self._debug("warning", "No retrieval gateway configured; conversation not saved")
            return None

        transcript = session.history.to_transcript()
        if not transcript:
            return None

        task = asyncio.create_task(self._ingest_transcript(session, transcript))
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        return task

    async def _ingest_transcript(self, session: Session, transcript: str) -> IngestAck | None:
        source_id = f"conversation-{session.session_id}"
        metadata = session.scope.to_metadata() if session.scope else {}
        metadata["kind"] = "conversation"
        try:
            ack = await self._retrieval.ingest(transcript, source_id, metadata=metadata)
        except Exception as e:
            self._debug("error", f"Saving conversation failed: {e}")
            return None
        self._debug("info", f"Saved conversation as {ack.source_id}")
        return ack

    async def close(self) -> None:
        """Wait for background saves and close the gateways."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)
        await self._gate.close()
        await self._model.close()
        if self._retrieval is not None:
            await self._retrieval.close()

    # Internals

    def _finish(self, session: Session, handle: TurnHandle, outcome: TurnOutcome) -> None:
        if handle.done():
            return
        self._release(session, handle)

        if outcome.status == TurnStatus.COMPLETED:
            kind = DisplayEventKind.TURN_COMPLETED
        elif outcome.status == TurnStatus.CANCELLED:
            kind = DisplayEventKind.TURN_CANCELLED
        else:
            kind = DisplayEventKind.TURN_FAILED

        self._debug("info", f"Turn {handle.turn_id} {outcome.status.value}")
        self._emit(
            session,
            kind,
            handle.turn_id,
            error=outcome.error.value if outcome.error else None,
            detail=outcome.detail
        )
        handle.set_result(outcome)

    def _release(self, session: Session, handle: TurnHandle) -> None:
        """Drop the in-progress guard and any proposal the turn still holds."""
        proposal = session.pending_proposal
        if session.active_turn is handle:
            session._active_turn = None
            if proposal is not None and proposal.proposal_id in handle.proposal_ids:
                self._gate.cancel(proposal.proposal_id)
                session.pending_proposal = None

    def _on_handle_done(self, session: Session, handle: TurnHandle) -> None:
        # handle.cancel() from a caller, e.g. asyncio.wait_for timing out
        if not handle.cancelled():
            return
        self._release(session, handle)
        if handle._background_task is not None:
            handle._background_task.cancel()
        self._emit(session, DisplayEventKind.TURN_CANCELLED, handle.turn_id)

    def _on_poll_tick(self, session: Session, handle: TurnHandle, tick: PollPending) -> None:
        self._emit(
            session,
            DisplayEventKind.APPROVAL_POLLING,
            handle.turn_id,
            attempt=tick.attempt,
            error=tick.transient_error
        )

    def _check_single_proposal(self, session: Session) -> None:
        tracked = self._gate.tracked_for_session(session.session_id)
        if len(tracked) > 1:
            raise ConcurrentProposalError(
                f"Session {session.session_id} has {len(tracked)} proposals outstanding"
            )

    def _append(self, session: Session, message: Message, turn_id: str) -> None:
        session.history.append(message)
        self._emit(
            session,
            DisplayEventKind.MESSAGE_APPENDED,
            turn_id,
            message=DisplayMessage(role=message.role, content=message.content)
        )

    def _log_tool(
        self,
        session: Session,
        handle: TurnHandle,
        proposal: ToolProposal,
        status: ToolStatus,
        output: str | None = None
    ) -> None:
        entry = TurnLogEntry(
            tool=proposal.tool,
            args=proposal.args,
            status=status,
            output_preview=preview(output) if output is not None else None,
            proposal_id=proposal.proposal_id
        )
        self._emit(session, DisplayEventKind.TOOL_EVENT, handle.turn_id, entry=entry)

    def _emit(self, session: Session, kind: DisplayEventKind, turn_id: str | None, **fields: Any) -> None:
        session.display.emit(DisplayEvent(
            kind=kind,
            session_id=session.session_id,
            turn_id=turn_id,
            **fields
        ))

    def _outcome(
        self,
        handle: TurnHandle,
        status: TurnStatus,
        content: str | None = None,
        error: TurnErrorKind | None = None,
        detail: str | None = None
    ) -> TurnOutcome:
        return TurnOutcome(
            turn_id=handle.turn_id,
            session_id=handle.session.session_id,
            status=status,
            content=content,
            error=error,
            detail=detail,
            proposal_ids=list(handle.proposal_ids)
        )

    def _failed(self, handle: TurnHandle, kind: TurnErrorKind, error: Exception | str) -> TurnOutcome:
        self._debug("error", f"Turn {handle.turn_id} failed ({kind.value}): {error}")
        return self._outcome(handle, TurnStatus.FAILED, error=kind, detail=str(error))
