"""Approval gate.

Tracks outstanding tool proposals and polls the approval authority until
each one reaches a terminal decision.

Hidden design decisions:
- Polling cadence and absolute deadline
- Treatment of transient read failures (swallowed, retried next tick)
- Cancellation of in-flight polling without leaking background work

Polling runs inside the consumer's task as a lazy async iterator, so
cancelling that task or the handle stops all further status reads.
"""

import asyncio
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import aclosing
from typing import Any

from ..errors import ApprovalCancelledError
from .authority import ApprovalAuthority
from .models import (
    ApprovalDecision,
    ApprovalState,
    Approved,
    PollEvent,
    PollPending,
    Rejected,
    TimedOut,
    ToolProposal,
)

DEFAULT_POLL_INTERVAL = 3.0
DEFAULT_APPROVAL_DEADLINE = 300.0


class PollHandle:
    """Tracking record for one registered proposal.

    Attributes:
        proposal: The proposal being decided
        session_id: Session that owns the proposal
        registered_at: Clock reading at registration
        deadline: Clock reading at which the proposal times out
        attempts: Number of status reads issued so far
        decision: Terminal decision, once reached
    """

    def __init__(
        self,
        proposal: ToolProposal,
        session_id: str,
        registered_at: float,
        deadline: float
    ):
        self.proposal = proposal
        self.session_id = session_id
        self.registered_at = registered_at
        self.deadline = deadline
        self.attempts = 0
        self.decision: ApprovalDecision | None = None
        self._cancelled = asyncio.Event()

    @property
    def proposal_id(self) -> str:
        return self.proposal.proposal_id

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def finished(self) -> bool:
        return self.decision is not None or self.cancelled

    def __repr__(self) -> str:
        return (
            f"PollHandle(proposal_id={self.proposal_id!r}, session_id={self.session_id!r}, "
            f"attempts={self.attempts}, decision={self.decision!r}, cancelled={self.cancelled})"
        )


class ApprovalGate:
    """Registers proposals and polls for their decisions.

    One gate may serve many sessions. The tracked set is only touched from
    the event loop, and cancellation is keyed by proposal or session so one
    session never affects another's proposals.
    """

    def __init__(
        self,
        authority: ApprovalAuthority,
        interval: float = DEFAULT_POLL_INTERVAL,
        deadline: float = DEFAULT_APPROVAL_DEADLINE,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        debug_callback: Any | None = None
    ):
        """Initialize the gate.

        Args:
            authority: Approval authority to poll
            interval: Seconds between status reads
            deadline: Seconds from registration until a proposal times out
            clock: Monotonic clock, injectable for tests
            sleep: Sleep coroutine, injectable for tests
            debug_callback: Optional callable(level, component, message)
        """
        if interval <= 0:
            raise ValueError("interval must be positive")
        if deadline <= 0:
            raise ValueError("deadline must be positive")

        self._authority = authority
        self._interval = interval
        self._deadline = deadline
        self._clock = clock
        self._sleep = sleep
        self._debug_callback = debug_callback
        self._tracked: dict[str, PollHandle] = {}

    def set_debug_callback(self, callback: Any) -> None:
        self._debug_callback = callback

    def _debug(self, level: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, "ApprovalGate", message)

    @property
    def authority(self) -> ApprovalAuthority:
        return self._authority

    @property
    def tracked_ids(self) -> set[str]:
        """IDs of proposals currently awaiting a decision."""
        return set(self._tracked)

    def is_tracked(self, proposal_id: str) -> bool:
        return proposal_id in self._tracked

    def tracked_for_session(self, session_id: str) -> list[PollHandle]:
        return [h for h in self._tracked.values() if h.session_id == session_id]

    async def register(self, proposal: ToolProposal, session_id: str) -> PollHandle:
        """Start tracking a proposal.

        The deadline is measured from this call. Announcing the proposal to
        the authority is best-effort.

        Raises:
            ValueError: If the proposal is already tracked
        """
        if proposal.proposal_id in self._tracked:
            raise ValueError(f"Proposal {proposal.proposal_id} is already tracked")

        now = self._clock()
        handle = PollHandle(proposal, session_id, registered_at=now, deadline=now + self._deadline)
        self._tracked[proposal.proposal_id] = handle
        self._debug("info", f"Registered {proposal.tool} proposal {proposal.proposal_id}")

        try:
            await self._authority.announce(proposal)
        except asyncio.CancelledError:
            self.cancel(proposal.proposal_id)
            raise
        except Exception as e:
            self._debug("warning", f"Announce failed for {proposal.proposal_id}: {e}")

        return handle

    async def poll(self, handle: PollHandle) -> AsyncIterator[PollEvent]:
        """Poll the authority for a proposal's decision.

        Yields a ``PollPending`` per non-terminal read and finishes with
        exactly one decision. Yields nothing for a handle that is already
        finished or no longer tracked, and stops silently on cancellation.
        """
        if handle.finished or self._tracked.get(handle.proposal_id) is not handle:
            return

        while True:
            remaining = handle.deadline - self._clock()
            if remaining <= 0:
                decision: ApprovalDecision = TimedOut()
                break

            if await self._wait_or_cancel(handle, min(self._interval, remaining)):
                return
            if self._clock() >= handle.deadline:
                decision = TimedOut()
                break

            handle.attempts += 1
            try:
                status = await self._authority.status(handle.proposal_id)
            except Exception as e:
                if handle.cancelled:
                    return
                self._debug(
                    "debug",
                    f"Transient poll failure for {handle.proposal_id} "
                    f"(attempt {handle.attempts}): {e}"
                )
                yield PollPending(
                    proposal_id=handle.proposal_id,
                    attempt=handle.attempts,
                    transient_error=str(e)
                )
                continue

            if handle.cancelled:
                return
            if status.state == ApprovalState.APPROVED:
                decision = Approved(token=status.token)
                break
            if status.state == ApprovalState.REJECTED:
                decision = Rejected()
                break

            yield PollPending(proposal_id=handle.proposal_id, attempt=handle.attempts)

        self._retire(handle, decision)
        yield decision

    async def decision(
        self,
        handle: PollHandle,
        on_tick: Callable[[PollPending], None] | None = None
    ) -> ApprovalDecision:
        """Wait for the terminal decision of a proposal.

        Args:
            handle: Handle returned by ``register``
            on_tick: Optional callback for each non-terminal poll

        Returns:
            The terminal decision

        Raises:
            ApprovalCancelledError: If polling was cancelled first
        """
        if handle.decision is not None:
            return handle.decision

        async with aclosing(self.poll(handle)) as events:
            async for event in events:
                if isinstance(event, PollPending):
                    if on_tick is not None:
                        on_tick(event)
                    continue
                return event

        raise ApprovalCancelledError(
            f"Polling for proposal {handle.proposal_id} was cancelled"
        )

    def cancel(self, proposal_id: str) -> bool:
        """Stop polling for a proposal and forget it.

        Returns:
            True if the proposal was being tracked
        """
        handle = self._tracked.pop(proposal_id, None)
        if handle is None:
            return False
        handle._cancelled.set()
        self._debug("info", f"Cancelled polling for {proposal_id}")
        return True

    def cancel_session(self, session_id: str) -> int:
        """Cancel every proposal owned by a session.

        Returns:
            Number of proposals cancelled
        """
        ids = [h.proposal_id for h in self.tracked_for_session(session_id)]
        for proposal_id in ids:
            self.cancel(proposal_id)
        return len(ids)

    async def close(self) -> None:
        """Cancel all tracked proposals and close the authority."""
        for proposal_id in list(self._tracked):
            self.cancel(proposal_id)
        await self._authority.close()

    def _retire(self, handle: PollHandle, decision: ApprovalDecision) -> None:
        handle.decision = decision
        if self._tracked.get(handle.proposal_id) is handle:
            del self._tracked[handle.proposal_id]
        self._debug("info", f"Proposal {handle.proposal_id} decided: {decision.kind}")

    async def _wait_or_cancel(self, handle: PollHandle, timeout: float) -> bool:
        """Sleep for ``timeout`` unless the handle is cancelled first.

        Returns:
            True if the handle was cancelled
        """
        if handle.cancelled:
            return True

        sleeper = asyncio.ensure_future(self._sleep(timeout))
        waiter = asyncio.ensure_future(handle._cancelled.wait())
        try:
            await asyncio.wait({sleeper, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            sleeper.cancel()
            waiter.cancel()
        return handle.cancelled
