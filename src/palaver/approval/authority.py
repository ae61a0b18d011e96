"""Approval authorities: the systems of record for approve/reject decisions."""

import uuid
from abc import ABC, abstractmethod

from ..service import ServiceClient
from .models import ApprovalState, ApprovalStatus, ToolProposal


class ApprovalAuthority(ABC):
    """Abstract approval authority.

    This module hides where decisions are made (a remote service, a
    human at a terminal, a test script). The gate only ever reads status.
    """

    @abstractmethod
    async def status(self, proposal_id: str) -> ApprovalStatus:
        """Read the current status of a proposal.

        May raise any exception on transient failure; the gate retries.
        """
        pass

    async def announce(self, proposal: ToolProposal) -> None:
        """Make a new proposal known to the authority (optional)."""

    async def close(self) -> None:
        """Release any resources held by the authority."""


class InMemoryApprovalAuthority(ApprovalAuthority):
    """Decisions recorded in process by ``approve`` / ``reject``.

    Unknown proposals read as pending.
    """

    def __init__(self) -> None:
        self._statuses: dict[str, ApprovalStatus] = {}
        self._proposals: dict[str, ToolProposal] = {}

    async def status(self, proposal_id: str) -> ApprovalStatus:
        return self._statuses.get(proposal_id, ApprovalStatus(state=ApprovalState.PENDING))

    async def announce(self, proposal: ToolProposal) -> None:
        self._proposals[proposal.proposal_id] = proposal
        self._statuses.setdefault(
            proposal.proposal_id, ApprovalStatus(state=ApprovalState.PENDING)
        )

    def approve(self, proposal_id: str, token: str | None = None) -> str:
        """Approve a proposal and return the issued token."""
        token = token or uuid.uuid4().hex
        self._statuses[proposal_id] = ApprovalStatus(state=ApprovalState.APPROVED, token=token)
        return token

    def reject(self, proposal_id: str) -> None:
        self._statuses[proposal_id] = ApprovalStatus(state=ApprovalState.REJECTED)

    def pending(self) -> list[ToolProposal]:
        """Announced proposals that have not been decided yet."""
        return [
            proposal for pid, proposal in self._proposals.items()
            if self._statuses[pid].state == ApprovalState.PENDING
        ]


class ServiceApprovalAuthority(ApprovalAuthority):
    """Approval authority exposed by the chat service.

    Hidden design decisions:
    - ``POST /approvals`` to announce, ``GET /approvals/{id}`` to read
    - Payload field names
    """

    def __init__(self, client: ServiceClient):
        self._client = client

    async def status(self, proposal_id: str) -> ApprovalStatus:
        raw = await self._client.request(f"/approvals/{proposal_id}") or {}
        return ApprovalStatus(
            state=ApprovalState(str(raw.get("status", "pending")).lower()),
            token=raw.get("token")
        )

    async def announce(self, proposal: ToolProposal) -> None:
        await self._client.request(
            "/approvals",
            method="POST",
            json=proposal.model_dump(mode="json")
        )

    async def close(self) -> None:
        await self._client.close()
