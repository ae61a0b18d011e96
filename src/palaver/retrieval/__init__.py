"""Retrieval gateway module.

Supplies grounding context for chat turns and accepts documents for
ingestion. The ranking engine behind it is opaque to the rest of palaver.
"""

from .base import RetrievalGateway
from .factory import create_retrieval_gateway
from .in_memory import InMemoryRetrievalGateway
from .models import IngestAck, RetrievalScope, Snippet
from .service import ServiceRetrievalGateway

__all__ = [
    "IngestAck",
    "InMemoryRetrievalGateway",
    "RetrievalGateway",
    "RetrievalScope",
    "ServiceRetrievalGateway",
    "Snippet",
    "create_retrieval_gateway",
]
