"""Retrieval gateway backed by the chat service RAG endpoints."""

from typing import Any

import httpx

from ..errors import RetrievalFailedError, ServiceError
from ..service import ServiceClient
from .base import RetrievalGateway
from .models import IngestAck, RetrievalScope, Snippet


class ServiceRetrievalGateway(RetrievalGateway):
    """Retrieval over HTTP.

    Hidden design decisions:
    - Endpoint paths and payload shapes of the RAG API
    - Tolerance for loosely shaped results (``source`` or ``source_id``)
    """

    def __init__(self, client: ServiceClient):
        self._client = client

    async def query(
        self,
        text: str,
        scope: RetrievalScope | None = None,
        limit: int = 3
    ) -> list[Snippet]:
        payload: dict[str, Any] = {"query": text, "limit": limit}
        if scope is not None:
            payload["metadata"] = scope.to_metadata()

        try:
            raw = await self._client.request("/rag/query", method="POST", json=payload)
        except (ServiceError, httpx.HTTPError) as e:
            raise RetrievalFailedError(f"RAG query failed: {e}") from e

        results = (raw or {}).get("results") or []
        snippets = []
        for item in results:
            content = item.get("content")
            if not content:
                continue
            snippets.append(Snippet(
                content=content,
                source_id=str(item.get("source_id") or item.get("source") or ""),
                score=item.get("score")
            ))
        return snippets[:limit]

    async def ingest(
        self,
        text: str,
        source_id: str,
        metadata: dict[str, Any] | None = None
    ) -> IngestAck:
        payload = {"content": text, "source": source_id, "metadata": metadata or {}}
        try:
            raw = await self._client.request("/rag/upload", method="POST", json=payload)
        except (ServiceError, httpx.HTTPError) as e:
            raise RetrievalFailedError(f"Upload failed: {e}") from e

        raw = raw or {}
        return IngestAck(
            source_id=str(raw.get("source_id") or source_id),
            accepted=raw.get("status", "ok") not in ("error", "failed"),
            detail=raw.get("detail") or raw.get("message")
        )

    async def close(self) -> None:
        await self._client.close()
