"""Model gateway module.

Turns a conversation into either a final answer or a tool proposal, and
resumes the model after a proposal is approved.
"""

from .base import ModelGateway
from .models import (
    FinalAnswer,
    ModelResult,
    ProposalResult,
    ToolExecution,
    UsageSummary,
)
from .provider import ProviderModelGateway, format_context

__all__ = [
    "FinalAnswer",
    "ModelGateway",
    "ModelResult",
    "ProposalResult",
    "ProviderModelGateway",
    "ToolExecution",
    "UsageSummary",
    "format_context",
]
