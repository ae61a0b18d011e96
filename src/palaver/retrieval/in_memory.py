"""In-memory retrieval gateway.

Ranks documents by query term overlap. Data is lost when the process
exits; suitable for tests and offline use.
"""

import re
from typing import Any

from ..errors import RetrievalFailedError
from .base import RetrievalGateway
from .models import IngestAck, RetrievalScope, Snippet

_TOKEN_RE = re.compile(r"[a-z0-9_]+")


def _terms(text: str) -> set[str]:
    return set(_TOKEN_RE.findall(text.lower()))


class InMemoryRetrievalGateway(RetrievalGateway):
    """Dict-backed retrieval gateway."""

    def __init__(self) -> None:
        self._documents: dict[str, tuple[str, dict[str, Any]]] = {}

    async def query(
        self,
        text: str,
        scope: RetrievalScope | None = None,
        limit: int = 3
    ) -> list[Snippet]:
        query_terms = _terms(text)
        if not query_terms:
            return []

        wanted = scope.to_metadata() if scope else {}
        scored: list[Snippet] = []
        for source_id, (content, metadata) in self._documents.items():
            if any(metadata.get(k) != v for k, v in wanted.items()):
                continue
            overlap = len(query_terms & _terms(content))
            if overlap:
                scored.append(Snippet(
                    content=content,
                    source_id=source_id,
                    score=overlap / len(query_terms)
                ))

        # Stable on ties: insertion order
        scored.sort(key=lambda s: s.score or 0.0, reverse=True)
        return scored[:limit]

    async def ingest(
        self,
        text: str,
        source_id: str,
        metadata: dict[str, Any] | None = None
    ) -> IngestAck:
        if not source_id:
            raise RetrievalFailedError("source_id is required")
        self.add(text, source_id, metadata)
        return IngestAck(source_id=source_id)

    def add(self, text: str, source_id: str, metadata: dict[str, Any] | None = None) -> None:
        """Store a document synchronously, replacing any with the same source_id."""
        self._documents[source_id] = (text, dict(metadata or {}))

    def __len__(self) -> int:
        return len(self._documents)
