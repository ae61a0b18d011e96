"""Pytest configuration and shared fixtures."""
import asyncio
import os
from typing import Any

import pytest

from palaver.approval import (
    ApprovalAuthority,
    ApprovalGate,
    ApprovalState,
    ApprovalStatus,
    ToolProposal,
)
from palaver.gateway import FinalAnswer, ModelGateway, ProposalResult, ToolExecution
from palaver.llm import ChatMessage, LLMProvider, LLMResponse
from palaver.orchestrator import ConversationOrchestrator
from palaver.retrieval import InMemoryRetrievalGateway

PENDING = ApprovalStatus(state=ApprovalState.PENDING)
REJECTED = ApprovalStatus(state=ApprovalState.REJECTED)


def approved(token: str = "tok-1") -> ApprovalStatus:
    return ApprovalStatus(state=ApprovalState.APPROVED, token=token)


class FakeClock:
    """Monotonic clock advanced only by its own sleep."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)


class ScriptedAuthority(ApprovalAuthority):
    """Answers status reads from a script; the last entry repeats.

    Entries are ApprovalStatus values or exceptions to raise.
    """

    def __init__(self, script: list[Any] | None = None):
        self.script = list(script or [PENDING])
        self.reads: list[str] = []
        self.announced: list[ToolProposal] = []

    async def status(self, proposal_id: str) -> ApprovalStatus:
        self.reads.append(proposal_id)
        item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(item, Exception):
            raise item
        return item

    async def announce(self, proposal: ToolProposal) -> None:
        self.announced.append(proposal)


class StalledAnnounceAuthority(ScriptedAuthority):
    """Scripted authority whose first announce hangs until released."""

    def __init__(self, script: list[Any] | None = None):
        super().__init__(script)
        self.entered = asyncio.Event()
        self.release = asyncio.Event()

    async def announce(self, proposal: ToolProposal) -> None:
        await super().announce(proposal)
        if len(self.announced) == 1:
            self.entered.set()
            await self.release.wait()


class ScriptedModelGateway(ModelGateway):
    """Model gateway returning scripted results and recording its calls.

    Script entries are ModelResult values or exceptions to raise.
    """

    def __init__(
        self,
        complete: list[Any] | None = None,
        continuations: list[Any] | None = None
    ):
        self.complete_script = list(complete or [])
        self.continue_script = list(continuations or [])
        self.complete_calls: list[dict[str, Any]] = []
        self.continue_calls: list[dict[str, Any]] = []
        self.closed = False

    async def complete(self, history, context=None, tools_enabled=True):
        self.complete_calls.append({
            "history": tuple(history),
            "context": list(context or []),
            "tools_enabled": tools_enabled,
        })
        return self._next(self.complete_script)

    async def continue_with_tool(self, history, tool, args, approval_token):
        self.continue_calls.append({
            "history": tuple(history),
            "tool": tool,
            "args": args,
            "token": approval_token,
        })
        return self._next(self.continue_script)

    async def close(self) -> None:
        self.closed = True

    @staticmethod
    def _next(script: list[Any]) -> Any:
        if not script:
            raise AssertionError("Model gateway called more often than scripted")
        item = script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item


class FakeLLMProvider(LLMProvider):
    """LLM provider returning queued responses and recording requests."""

    def __init__(self, responses: list[Any] | None = None, model: str = "fake-model"):
        self.responses = list(responses or [])
        self.requests: list[dict[str, Any]] = []
        self._model = model
        self.closed = False

    @property
    def model(self) -> str:
        return self._model

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        tools: list[dict[str, Any]] | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        self.requests.append({
            "messages": list(messages),
            "model": model,
            "temperature": temperature,
            "max_tokens": max_tokens,
            "tools": tools,
        })
        item = self.responses.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        self.closed = True


def final(content: str, executed: ToolExecution | None = None) -> FinalAnswer:
    return FinalAnswer(content=content, executed=executed)


def proposal(tool: str = "read_file", **args: Any) -> ProposalResult:
    return ProposalResult(proposal=ToolProposal(tool=tool, args=args or {"path": "notes.txt"}))


async def wait_until(predicate, timeout: float = 2.0) -> None:
    """Yield to the event loop until predicate() holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("Condition not reached in time")
        await asyncio.sleep(0.001)


@pytest.fixture(scope="session")
def api_keys():
    """Return API keys from environment."""
    return {
        "openai": os.getenv("OPENAI_API_KEY"),
        "deepseek": os.getenv("DEEPSEEK_API_KEY"),
        "anthropic": os.getenv("ANTHROPIC_API_KEY")
    }


@pytest.fixture
def clock():
    """Return a fake clock whose sleep advances time instantly."""
    return FakeClock()


@pytest.fixture
def make_gate(clock):
    """Return a factory for approval gates on the fake clock."""
    def _make(authority: ApprovalAuthority, interval: float = 3.0, deadline: float = 300.0, **kwargs):
        return ApprovalGate(
            authority,
            interval=interval,
            deadline=deadline,
            clock=clock,
            sleep=clock.sleep,
            **kwargs
        )
    return _make


@pytest.fixture
def make_orchestrator(make_gate):
    """Return a factory wiring a scripted gateway and authority into an orchestrator."""
    def _make(
        model: ScriptedModelGateway,
        authority: ApprovalAuthority | None = None,
        retrieval: Any = None,
        gate: ApprovalGate | None = None,
        **kwargs: Any
    ) -> ConversationOrchestrator:
        gate = gate or make_gate(authority or ScriptedAuthority())
        return ConversationOrchestrator(model, gate, retrieval=retrieval, **kwargs)
    return _make


@pytest.fixture
def retrieval():
    """Return an in-memory retrieval gateway with two documents."""
    gateway = InMemoryRetrievalGateway()
    gateway.add("Refunds are issued within 14 days of purchase.", "policy.md", {"project_id": "shop"})
    gateway.add("The warehouse ships orders every weekday.", "shipping.md", {"project_id": "shop"})
    return gateway
