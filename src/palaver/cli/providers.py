"""Provider factory functions for CLI.

Centralizes creation of the LLM provider, service client, retrieval
gateway, approval authority and orchestrator from ``ChatSettings``.
Hides configuration details from command implementations.
"""

import os
from typing import Any

from rich.console import Console

from ..approval import (
    ApprovalAuthority,
    ApprovalGate,
    InMemoryApprovalAuthority,
    ServiceApprovalAuthority,
)
from ..config import ChatSettings
from ..gateway import ProviderModelGateway
from ..llm import LLMProvider, create_llm_provider
from ..orchestrator import ConversationOrchestrator
from ..retrieval import RetrievalGateway, create_retrieval_gateway
from ..service import ServiceClient
from ..tools import default_registry

# Default console for output
_console = Console()

# Provider name -> (API key variable, model variable)
_PROVIDER_ENV = {
    "openai": ("OPENAI_API_KEY", "OPENAI_CHAT_MODEL"),
    "deepseek": ("DEEPSEEK_API_KEY", "DEEPSEEK_MODEL"),
    "anthropic": ("ANTHROPIC_API_KEY", "ANTHROPIC_MODEL"),
    "claude": ("ANTHROPIC_API_KEY", "ANTHROPIC_MODEL"),
}


def get_llm(settings: ChatSettings, console: Console | None = None) -> LLMProvider | None:
    """Create LLM provider from settings and provider API key variables.

    Args:
        settings: Chat settings
        console: Optional Rich console for output

    Returns:
        LLM provider instance, or None if not configured

    Environment variables:
        OLLAMA_BASE_URL: Ollama endpoint (default: http://localhost:11434/v1)
        OPENAI_API_KEY / OPENAI_CHAT_MODEL: for the openai provider
        DEEPSEEK_API_KEY / DEEPSEEK_MODEL: for the deepseek provider
        ANTHROPIC_API_KEY / ANTHROPIC_MODEL: for the anthropic provider
    """
    con = console or _console
    provider = settings.llm_provider

    if provider == "ollama":
        config: dict[str, Any] = {}
        if settings.model:
            config["model"] = settings.model
        if os.getenv("OLLAMA_BASE_URL"):
            config["base_url"] = os.getenv("OLLAMA_BASE_URL")
        return create_llm_provider("ollama", **config)

    if provider not in _PROVIDER_ENV:
        con.print(f"[red]Error: Unknown LLM_PROVIDER '{provider}'[/red]")
        return None

    key_var, model_var = _PROVIDER_ENV[provider]
    api_key = os.getenv(key_var)
    if not api_key:
        con.print(f"[yellow]Warning: {key_var} not set, LLM features disabled[/yellow]")
        return None

    config = {"api_key": api_key}
    model = settings.model or os.getenv(model_var)
    if model:
        config["model"] = model
    return create_llm_provider(provider, **config)


def get_service_client(settings: ChatSettings) -> ServiceClient:
    """Create the chat service client."""
    return ServiceClient(settings.api_base)


def get_retrieval(settings: ChatSettings, client: ServiceClient) -> RetrievalGateway | None:
    """Create the retrieval gateway, or None when retrieval is off."""
    if settings.retrieval == "off":
        return None
    if settings.retrieval == "memory":
        return create_retrieval_gateway("memory")
    return create_retrieval_gateway("service", client=client)


def get_approval_authority(settings: ChatSettings, client: ServiceClient) -> ApprovalAuthority:
    """Create the approval authority.

    ``local`` decisions are entered at the chat prompt; ``service`` decisions
    are read from the chat service.
    """
    if settings.approval == "service":
        return ServiceApprovalAuthority(client)
    return InMemoryApprovalAuthority()


def build_orchestrator(
    settings: ChatSettings,
    llm: LLMProvider,
    authority: ApprovalAuthority,
    retrieval: RetrievalGateway | None,
    debug_callback: Any | None = None
) -> ConversationOrchestrator:
    """Wire gateways, tools and the approval gate into an orchestrator."""
    tools = default_registry(settings.workspace, retrieval)
    tools.set_debug_callback(debug_callback)

    gateway = ProviderModelGateway(
        llm,
        tools=tools,
        model=settings.model,
        temperature=settings.temperature,
        max_tokens=settings.max_tokens,
        debug_callback=debug_callback
    )
    gate = ApprovalGate(
        authority,
        interval=settings.approval_interval,
        deadline=settings.approval_deadline,
        debug_callback=debug_callback
    )
    return ConversationOrchestrator(
        gateway,
        gate,
        retrieval=retrieval,
        retrieval_limit=settings.retrieval_limit,
        max_tool_rounds=settings.max_tool_rounds,
        debug_callback=debug_callback
    )
