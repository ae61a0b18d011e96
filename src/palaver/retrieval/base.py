from abc import ABC, abstractmethod
from typing import Any

from .models import IngestAck, RetrievalScope, Snippet


class RetrievalGateway(ABC):
    """Abstract base class for retrieval gateways.

    This module hides the design decision of where grounding context comes
    from. Ranking, storage and embedding are the backend's concern; callers
    only see ordered snippets.
    """

    @abstractmethod
    async def query(
        self,
        text: str,
        scope: RetrievalScope | None = None,
        limit: int = 3
    ) -> list[Snippet]:
        """Return snippets relevant to ``text``, best first.

        Args:
            text: Query text
            scope: Optional scope metadata narrowing the search
            limit: Maximum number of snippets

        Returns:
            Ordered list of snippets

        Raises:
            RetrievalFailedError: If the backend cannot answer
        """
        pass

    @abstractmethod
    async def ingest(
        self,
        text: str,
        source_id: str,
        metadata: dict[str, Any] | None = None
    ) -> IngestAck:
        """Add a document to the retrieval backend.

        Args:
            text: Document text
            source_id: Identifier for the document
            metadata: Optional metadata stored with the document

        Returns:
            IngestAck for the document

        Raises:
            RetrievalFailedError: If the backend rejects the document
        """
        pass

    async def close(self) -> None:
        """Release any resources held by the gateway."""
