"""Model gateway backed by an LLM provider with native tool calling."""

from collections.abc import Sequence
from typing import Any

from ..approval import ToolProposal
from ..errors import InvalidProposalError, ModelUnavailableError
from ..history import Message, Role
from ..llm import ChatMessage, LLMProvider, LLMToolCall
from ..retrieval import Snippet
from ..tools import ToolCall, ToolRegistry
from .base import ModelGateway
from .models import FinalAnswer, ModelResult, ProposalResult, ToolExecution, UsageSummary


def format_context(snippets: Sequence[Snippet]) -> str:
    """Format grounding snippets as numbered documents."""
    parts = []
    for i, snippet in enumerate(snippets, 1):
        parts.append(
            f"[Document {i}]\n"
            f"Source: {snippet.source_id}\n"
            f"Content:\n{snippet.content}\n"
        )
    return "\n---\n\n".join(parts)


class ProviderModelGateway(ModelGateway):
    """Model gateway that talks to an LLM provider directly.

    Hidden design decisions:
    - Prompt layout (system prompt, grounding block, history)
    - Mapping of history roles onto provider roles
    - Validation of proposals against the tool registry
    - Execution of approved tools before resuming the model
    """

    def __init__(
        self,
        llm: LLMProvider,
        tools: ToolRegistry | None = None,
        system_prompt: str | None = None,
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = 2048,
        debug_callback: Any | None = None
    ):
        """Initialize the gateway.

        Args:
            llm: LLM provider for generation
            tools: Tools the model may propose (None disables tool calling)
            system_prompt: Optional custom system prompt (or loaded from prompts/system.txt)
            model: Model override (None uses the provider's default)
            temperature: Sampling temperature
            max_tokens: Maximum tokens per response
            debug_callback: Optional callable(level, component, message)
        """
        self._llm = llm
        self._tools = tools
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._debug_callback = debug_callback
        self._usage = UsageSummary()

        if system_prompt is None:
            from ..prompts import get_system_prompt
            system_prompt = get_system_prompt()
        self._system_prompt = system_prompt

    @property
    def usage(self) -> UsageSummary:
        return self._usage

    @property
    def tools(self) -> ToolRegistry | None:
        return self._tools

    def set_debug_callback(self, callback: Any) -> None:
        self._debug_callback = callback
        if self._tools is not None:
            self._tools.set_debug_callback(callback)

    def _debug(self, level: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, "ModelGateway", message)

    async def complete(
        self,
        history: Sequence[Message],
        context: Sequence[Snippet] | None = None,
        tools_enabled: bool = True
    ) -> ModelResult:
        messages = self._build_messages(history, context)
        return await self._call(messages, tools_enabled)

    async def continue_with_tool(
        self,
        history: Sequence[Message],
        tool: str,
        args: dict[str, Any],
        approval_token: str | None
    ) -> ModelResult:
        if self._tools is None:
            raise InvalidProposalError(f"No tools available to run '{tool}'")

        call = ToolCall(tool_name=tool, arguments=args, approval_token=approval_token)
        self._debug("info", f"Executing approved tool {tool}")
        result = await self._tools.execute(call)
        executed = ToolExecution(tool=tool, content=result.content, error=result.error)

        messages = self._build_messages(history, None)
        messages.append(ChatMessage(
            role="assistant",
            tool_calls=[LLMToolCall(id=call.id_, name=tool, arguments=args)]
        ))
        messages.append(ChatMessage(role="tool", content=result.content, tool_call_id=call.id_))

        try:
            model_result = await self._call(messages, tools_enabled=True)
        except (ModelUnavailableError, InvalidProposalError) as e:
            # The tool has run; the caller must still record it
            e.executed = executed
            raise
        return model_result.model_copy(update={"executed": executed})

    async def close(self) -> None:
        await self._llm.close()

    def _build_messages(
        self,
        history: Sequence[Message],
        context: Sequence[Snippet] | None
    ) -> list[ChatMessage]:
        messages = [ChatMessage(role="system", content=self._system_prompt)]

        if context:
            from ..prompts import get_grounding_prompt
            messages.append(ChatMessage(
                role="system",
                content=get_grounding_prompt(format_context(context))
            ))

        for message in history:
            if message.role == Role.TOOL:
                # Earlier tool results have no live call id; replay them as text
                messages.append(ChatMessage(role="user", content=f"[Tool result]\n{message.content}"))
            else:
                messages.append(ChatMessage(role=message.role.value, content=message.content))

        return messages

    async def _call(self, messages: list[ChatMessage], tools_enabled: bool) -> ModelResult:
        specs = self._tools.specs() if (tools_enabled and self._tools) else None

        try:
            response = await self._llm.chat_completion(
                messages,
                model=self._model,
                temperature=self._temperature,
                max_tokens=self._max_tokens,
                tools=specs
            )
        except InvalidProposalError:
            raise
        except Exception as e:
            self._debug("error", f"Model call failed: {type(e).__name__}: {e}")
            raise ModelUnavailableError(f"Model call failed: {e}") from e

        if response.usage:
            self._usage.add_usage(
                response.model,
                response.usage.get("prompt_tokens", 0),
                response.usage.get("completion_tokens", 0)
            )

        if not response.tool_calls:
            return FinalAnswer(content=response.content)

        if not specs:
            raise InvalidProposalError("Model proposed a tool call while tools are disabled")

        call = response.tool_calls[0]
        if len(response.tool_calls) > 1:
            self._debug(
                "warning",
                f"Model proposed {len(response.tool_calls)} tool calls; only '{call.name}' is kept"
            )

        args = self._tools.validate(call.name, call.arguments)
        self._debug("info", f"Model proposed {call.name}({args})")
        return ProposalResult(
            proposal=ToolProposal(tool=call.name, args=args),
            preamble=response.content
        )
