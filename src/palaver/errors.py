"""Exception hierarchy for palaver.

Only failures that interrupt control flow are exceptions. Expected turn
endings (rejected proposal, approval timeout, cancellation) are reported as
``TurnOutcome`` values instead.
"""

from typing import Any


class PalaverError(Exception):
    """Base class for all palaver errors."""


class RetrievalFailedError(PalaverError):
    """The retrieval gateway could not produce grounding context.

    Always recovered by the orchestrator: the turn proceeds without context.
    """


class ModelUnavailableError(PalaverError):
    """The model gateway failed to produce a response.

    Attributes:
        executed: On a continuation, the approved tool run that already
            happened before the model call failed (None otherwise)
    """

    executed: Any = None


class InvalidProposalError(PalaverError):
    """The model proposed a tool call that fails validation.

    Attributes:
        executed: As for ModelUnavailableError
    """

    executed: Any = None


class ConcurrentProposalError(PalaverError):
    """A second tool proposal arrived while one is still outstanding."""


class TurnInProgressError(PalaverError):
    """A turn was submitted to a session that is already mid-turn."""


class ApprovalCancelledError(PalaverError):
    """Polling for a proposal was cancelled before a decision was reached."""


class ServiceError(PalaverError):
    """The chat service API answered with a non-2xx status."""

    def __init__(self, status: int, reason: str, body: str = ""):
        self.status = status
        self.reason = reason
        self.body = body
        super().__init__(f"{status} {reason}: {body}")
