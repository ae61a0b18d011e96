"""Approval module.

Holds tool proposals until an external authority approves or rejects
them, or until they time out.
"""

from .authority import ApprovalAuthority, InMemoryApprovalAuthority, ServiceApprovalAuthority
from .gate import DEFAULT_APPROVAL_DEADLINE, DEFAULT_POLL_INTERVAL, ApprovalGate, PollHandle
from .models import (
    ApprovalDecision,
    ApprovalState,
    ApprovalStatus,
    Approved,
    PollEvent,
    PollPending,
    Rejected,
    TimedOut,
    ToolProposal,
)

__all__ = [
    "DEFAULT_APPROVAL_DEADLINE",
    "DEFAULT_POLL_INTERVAL",
    "ApprovalAuthority",
    "ApprovalDecision",
    "ApprovalGate",
    "ApprovalState",
    "ApprovalStatus",
    "Approved",
    "InMemoryApprovalAuthority",
    "PollEvent",
    "PollHandle",
    "PollPending",
    "Rejected",
    "ServiceApprovalAuthority",
    "TimedOut",
    "ToolProposal",
]
