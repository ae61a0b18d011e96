"""
Palaver: retrieval-grounded chat with human-approved tool calls.

This package follows Parnas's information hiding principles,
where each module hides a specific design decision.
"""

__version__ = "0.1.0"

from .approval import ApprovalGate, InMemoryApprovalAuthority, ToolProposal
from .config import ChatSettings
from .errors import PalaverError
from .gateway import ModelGateway, ProviderModelGateway
from .history import ConversationHistory, Message, Role
from .orchestrator import ConversationOrchestrator, Session, TurnOutcome, TurnStatus
from .retrieval import RetrievalGateway, create_retrieval_gateway

__all__ = [
    "ApprovalGate",
    "ChatSettings",
    "ConversationHistory",
    "ConversationOrchestrator",
    "InMemoryApprovalAuthority",
    "Message",
    "ModelGateway",
    "PalaverError",
    "ProviderModelGateway",
    "RetrievalGateway",
    "Role",
    "Session",
    "ToolProposal",
    "TurnOutcome",
    "TurnStatus",
    "create_retrieval_gateway",
]
