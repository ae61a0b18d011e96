"""Unit tests for the retrieval module."""
import json

import httpx
import pytest
from hypothesis import given
from hypothesis import strategies as st

from palaver.errors import RetrievalFailedError
from palaver.retrieval import (
    InMemoryRetrievalGateway,
    RetrievalGateway,
    RetrievalScope,
    ServiceRetrievalGateway,
    create_retrieval_gateway,
)
from palaver.service import ServiceClient

BASE = "http://chat.test/mcp/api/proxy?path=api"


def service_gateway(handler) -> ServiceRetrievalGateway:
    client = ServiceClient(BASE, transport=httpx.MockTransport(handler))
    return ServiceRetrievalGateway(client)


class TestRetrievalGateway:
    """Tests for RetrievalGateway interface."""

    def test_retrieval_gateway_is_abstract(self):
        """Test that RetrievalGateway cannot be instantiated directly."""
        with pytest.raises(TypeError):
            RetrievalGateway()  # type: ignore


class TestRetrievalScope:
    """Tests for RetrievalScope model."""

    def test_to_metadata(self):
        """Test that the project id joins the extra metadata."""
        scope = RetrievalScope(project_id="p1", extra={"lang": "en"})
        assert scope.to_metadata() == {"lang": "en", "project_id": "p1"}
        assert RetrievalScope().to_metadata() == {}


class TestInMemoryRetrievalGateway:
    """Tests for InMemoryRetrievalGateway."""

    @pytest.mark.asyncio
    async def test_ranking(self):
        """Test that snippets are ranked by term overlap."""
        gateway = InMemoryRetrievalGateway()
        await gateway.ingest("python packaging with pyproject", "a")
        await gateway.ingest("python async io", "b")
        await gateway.ingest("gardening tips", "c")

        snippets = await gateway.query("python async tips")

        assert [s.source_id for s in snippets] == ["b", "a", "c"]
        assert snippets[0].score == pytest.approx(2 / 3)

    @pytest.mark.asyncio
    async def test_scope_filters(self, retrieval):
        """Test that scope metadata must match."""
        assert await retrieval.query("refunds", scope=RetrievalScope(project_id="shop"))
        assert await retrieval.query("refunds", scope=RetrievalScope(project_id="blog")) == []

    @pytest.mark.asyncio
    async def test_empty_query(self, retrieval):
        """Test that a query without terms finds nothing."""
        assert await retrieval.query("?!") == []

    @pytest.mark.asyncio
    async def test_ingest_requires_source(self):
        """Test that ingesting without a source id fails."""
        with pytest.raises(RetrievalFailedError):
            await InMemoryRetrievalGateway().ingest("text", "")

    @pytest.mark.asyncio
    async def test_ingest_replaces(self):
        """Test that re-ingesting a source replaces it."""
        gateway = InMemoryRetrievalGateway()
        await gateway.ingest("old words", "doc")
        ack = await gateway.ingest("new words", "doc")

        assert ack.accepted
        assert len(gateway) == 1
        assert (await gateway.query("words"))[0].content == "new words"

    @given(st.integers(min_value=1, max_value=10))
    def test_limit_respected(self, limit: int):
        """Property test: never more snippets than the limit."""
        import asyncio

        gateway = InMemoryRetrievalGateway()
        for i in range(8):
            gateway.add(f"shared term {i}", f"d{i}")
        snippets = asyncio.run(gateway.query("shared", limit=limit))
        assert len(snippets) == min(limit, 8)


class TestServiceRetrievalGateway:
    """Tests for ServiceRetrievalGateway over a mock transport."""

    @pytest.mark.asyncio
    async def test_query(self):
        """Test the query payload and result parsing."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"results": [
                {"content": "first", "source_id": "a.md", "score": 0.9},
                {"content": "second", "source": "b.md"},
                {"content": "", "source": "skipped.md"},
            ]})

        gateway = service_gateway(handler)
        snippets = await gateway.query("hello", scope=RetrievalScope(project_id="p"), limit=3)
        await gateway.close()

        assert seen["url"].endswith("path=api/rag/query")
        assert seen["body"] == {"query": "hello", "limit": 3, "metadata": {"project_id": "p"}}
        assert [(s.source_id, s.score) for s in snippets] == [("a.md", 0.9), ("b.md", None)]

    @pytest.mark.asyncio
    async def test_query_failure(self):
        """Test that HTTP errors become RetrievalFailedError."""
        gateway = service_gateway(lambda request: httpx.Response(503, text="down"))
        with pytest.raises(RetrievalFailedError):
            await gateway.query("hello")

    @pytest.mark.asyncio
    async def test_transport_failure(self):
        """Test that connection errors become RetrievalFailedError."""
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(RetrievalFailedError):
            await service_gateway(handler).query("hello")

    @pytest.mark.asyncio
    async def test_ingest(self):
        """Test the upload payload and acknowledgement."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"status": "ok", "source_id": "doc-7"})

        ack = await service_gateway(handler).ingest("text", "notes.md", {"project_id": "p"})

        assert seen["url"].endswith("path=api/rag/upload")
        assert seen["body"] == {"content": "text", "source": "notes.md", "metadata": {"project_id": "p"}}
        assert ack.source_id == "doc-7"
        assert ack.accepted

    @pytest.mark.asyncio
    async def test_ingest_refused(self):
        """Test that an error status in the body is not accepted."""
        gateway = service_gateway(
            lambda request: httpx.Response(200, json={"status": "error", "message": "too large"})
        )
        ack = await gateway.ingest("text", "big.md")

        assert not ack.accepted
        assert ack.detail == "too large"


class TestRetrievalFactory:
    """Tests for retrieval gateway factory."""

    def test_memory(self):
        """Test creating an in-memory gateway."""
        assert isinstance(create_retrieval_gateway("memory"), InMemoryRetrievalGateway)

    def test_service(self):
        """Test creating a service gateway from a base URL."""
        assert isinstance(create_retrieval_gateway("service", base_url=BASE), ServiceRetrievalGateway)

    @given(st.text(min_size=1))
    def test_unknown_backend(self, backend: str):
        """Property test: only known backends are accepted."""
        if backend in ("memory", "service"):
            return
        with pytest.raises(ValueError):
            create_retrieval_gateway(backend)
