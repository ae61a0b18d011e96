"""Tests for the command line interface."""
import json

import httpx
import pytest
from typer.testing import CliRunner

from conftest import ScriptedModelGateway, final, proposal, wait_until
from palaver.approval import ApprovalGate, ApprovalState, InMemoryApprovalAuthority
from palaver.cli import app as cli_app
from palaver.gateway import ToolExecution
from palaver.orchestrator import TurnStatus
from palaver.service import ServiceClient

BASE = "http://chat.test/mcp/api/proxy?path=api"

runner = CliRunner()


@pytest.fixture
def service(monkeypatch):
    """Route the CLI's service client to a scripted handler.

    Set ``service.routes[path] = (status, payload)`` before invoking.
    """
    class Service:
        routes: dict[str, tuple[int, dict]] = {}
        requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        Service.requests.append(request)
        path = str(request.url).split("path=api", 1)[1]
        status, payload = Service.routes.get(path, (404, {"detail": "not found"}))
        return httpx.Response(status, json=payload)

    Service.routes = {}
    Service.requests = []
    monkeypatch.setattr(
        cli_app,
        "get_service_client",
        lambda settings: ServiceClient(BASE, transport=httpx.MockTransport(handler))
    )
    return Service


class TestHealthCommand:
    """Tests for `palaver health`."""

    def test_healthy(self, service):
        """Test a healthy service."""
        service.routes["/health"] = (200, {"status": "healthy", "version": "1.2.0"})

        result = runner.invoke(cli_app.app, ["health"])

        assert result.exit_code == 0
        assert "1.2.0" in result.output

    def test_degraded(self, service):
        """Test that a non-ok status exits non-zero."""
        service.routes["/health"] = (200, {"status": "degraded"})
        assert runner.invoke(cli_app.app, ["health"]).exit_code == 1

    def test_unreachable(self, service):
        """Test that an error response exits non-zero."""
        service.routes["/health"] = (502, {"detail": "bad gateway"})

        result = runner.invoke(cli_app.app, ["health"])

        assert result.exit_code == 1
        assert "FAILED" in result.output


class TestModelsCommand:
    """Tests for `palaver models`."""

    def test_lists_models(self, service):
        """Test the model table and missing models."""
        service.routes["/models/status"] = (200, {
            "status": "degraded",
            "available_models": ["llama3"],
            "configured_models": ["llama3", "qwen"],
            "missing_models": ["qwen"],
        })

        result = runner.invoke(cli_app.app, ["models"])

        assert result.exit_code == 0
        assert "llama3" in result.output
        assert "Missing: qwen" in result.output

    def test_unknown_when_unreachable(self, service):
        """Test that a failing service reports an unknown status."""
        result = runner.invoke(cli_app.app, ["models"])

        assert result.exit_code == 0
        assert "unknown" in result.output


class TestIngestCommand:
    """Tests for `palaver ingest`."""

    def test_ingest_file(self, service, tmp_path):
        """Test uploading a file under a project."""
        service.routes["/rag/upload"] = (200, {"status": "ok", "source_id": "notes.md"})
        document = tmp_path / "notes.md"
        document.write_text("Refunds take 14 days.", encoding="utf-8")

        result = runner.invoke(cli_app.app, ["ingest", str(document), "--project", "shop"])

        assert result.exit_code == 0
        body = json.loads(service.requests[0].content)
        assert body == {
            "content": "Refunds take 14 days.",
            "source": "notes.md",
            "metadata": {"project_id": "shop"},
        }

    def test_ingest_refused(self, service, tmp_path):
        """Test that a refused upload exits non-zero."""
        service.routes["/rag/upload"] = (200, {"status": "error", "message": "too large"})
        document = tmp_path / "big.md"
        document.write_text("x", encoding="utf-8")

        result = runner.invoke(cli_app.app, ["ingest", str(document)])

        assert result.exit_code == 1
        assert "too large" in result.output

    def test_missing_file(self, tmp_path):
        """Test that a missing file is rejected by argument validation."""
        result = runner.invoke(cli_app.app, ["ingest", str(tmp_path / "absent.md")])
        assert result.exit_code != 0


class TestApprovalPrompt:
    """Tests for answers typed at the local approval prompt."""

    @pytest.mark.asyncio
    async def test_answer_recorded_while_pending(self, make_orchestrator):
        """Test that a timely yes approves the pending proposal."""
        authority = InMemoryApprovalAuthority()
        model = ScriptedModelGateway(
            complete=[proposal()],
            continuations=[final("read", executed=ToolExecution(tool="read_file", content="hi"))]
        )
        gate = ApprovalGate(authority, interval=0.01, deadline=60.0)
        orchestrator = make_orchestrator(model, gate=gate)
        session = orchestrator.open_session()

        handle = orchestrator.submit_turn(session, "read it")
        await wait_until(lambda: session.pending_proposal is not None)
        proposal_id = session.pending_proposal.proposal_id

        assert cli_app._record_local_answer(orchestrator, session, handle, authority, proposal_id, " Y ")
        assert (await handle).content == "read"

    @pytest.mark.asyncio
    async def test_late_answer_ignored(self, make_orchestrator, make_gate):
        """Test that a yes typed after the proposal timed out is dropped."""
        authority = InMemoryApprovalAuthority()
        model = ScriptedModelGateway(complete=[proposal()])
        orchestrator = make_orchestrator(model, gate=make_gate(authority, deadline=1.0))
        session = orchestrator.open_session()

        handle = orchestrator.submit_turn(session, "read it")
        outcome = await handle
        proposal_id = outcome.proposal_ids[0]

        assert outcome.status == TurnStatus.TIMED_OUT
        assert not cli_app._record_local_answer(orchestrator, session, handle, authority, proposal_id, "y")
        assert (await authority.status(proposal_id)).state == ApprovalState.PENDING
