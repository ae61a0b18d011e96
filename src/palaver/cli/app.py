"""Main CLI application using Typer."""
import asyncio
from pathlib import Path

import httpx
import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from ..approval import ApprovalAuthority, InMemoryApprovalAuthority
from ..config import ChatSettings
from ..errors import RetrievalFailedError, ServiceError
from ..orchestrator import ConversationOrchestrator, Session, TurnHandle
from ..retrieval import RetrievalScope, create_retrieval_gateway
from .display import ChatRenderer, console_debug_callback, print_usage
from .providers import (
    build_orchestrator,
    get_approval_authority,
    get_llm,
    get_retrieval,
    get_service_client,
)

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="palaver",
    help="Retrieval-grounded chat with human-approved tool calls",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()

HELP_TEXT = (
    "[dim]Commands: /reset (new conversation), /save (store transcript), "
    "/quit (leave)[/dim]"
)


def _load_settings() -> ChatSettings:
    try:
        return ChatSettings.from_env()
    except ValidationError as e:
        console.print(f"[red]Error: invalid configuration[/red]\n{e}")
        raise typer.Exit(code=1)


def _record_local_answer(
    orchestrator: ConversationOrchestrator,
    session: Session,
    handle: TurnHandle,
    authority: InMemoryApprovalAuthority,
    proposal_id: str,
    answer: str
) -> bool:
    """Apply a y/n/c answer typed at the approval prompt.

    The prompt blocks on stdin, so the turn may have timed out or been
    cancelled meanwhile. Answers for a proposal the gate no longer tracks
    are dropped.

    Returns:
        False if the answer came too late and was ignored
    """
    if handle.done() or not orchestrator.gate.is_tracked(proposal_id):
        return False

    answer = answer.strip().lower()
    if answer in ("y", "yes"):
        authority.approve(proposal_id)
    elif answer in ("c", "cancel"):
        orchestrator.cancel_turn(session)
    else:
        authority.reject(proposal_id)
    return True


async def _wait_for_turn(
    orchestrator: ConversationOrchestrator,
    session: Session,
    handle: TurnHandle,
    renderer: ChatRenderer,
    authority: ApprovalAuthority
) -> None:
    """Wait for a turn, asking for local approval when a proposal is pending."""
    while not handle.done():
        waiter = asyncio.ensure_future(renderer.approval_requested.wait())
        try:
            await asyncio.wait({handle, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
        if handle.done():
            break

        renderer.approval_requested.clear()
        proposal = session.pending_proposal
        if proposal is None or not isinstance(authority, InMemoryApprovalAuthority):
            continue

        answer = await asyncio.to_thread(
            console.input,
            "[bold yellow]Approve?[/bold yellow] [dim](y)es / (n)o / (c)ancel turn[/dim] "
        )
        if not _record_local_answer(
            orchestrator, session, handle, authority, proposal.proposal_id, answer
        ):
            console.print("[dim]Proposal already settled; answer ignored[/dim]")

    try:
        await handle
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")


@app.command()
def chat(
    project: str | None = typer.Option(
        None,
        "--project",
        "-p",
        help="Project ID to scope retrieval to"
    ),
    no_rag: bool = typer.Option(
        False,
        "--no-rag",
        help="Answer without retrieved context"
    ),
    no_tools: bool = typer.Option(
        False,
        "--no-tools",
        help="Do not let the model propose tool calls"
    ),
    log_level: str = typer.Option(
        "warning",
        "--log-level",
        "-l",
        help="Least severe log level shown (debug, info, warning, error)"
    )
):
    """Interactive chat with retrieval grounding and approved tool calls."""
    async def _chat():
        settings = _load_settings()
        llm = get_llm(settings, console)

        if not llm:
            console.print("[red]Error: LLM provider not configured[/red]")
            raise typer.Exit(code=1)

        debug_callback = console_debug_callback(console, log_level)
        client = get_service_client(settings)
        retrieval = get_retrieval(settings, client)
        authority = get_approval_authority(settings, client)
        orchestrator = build_orchestrator(settings, llm, authority, retrieval, debug_callback)

        renderer = ChatRenderer(console)
        session = orchestrator.open_session(
            project_id=project,
            retrieval_enabled=settings.retrieval_enabled and not no_rag,
            tools_enabled=not no_tools
        )
        session.subscribe(renderer)

        try:
            console.print("[bold cyan]Palaver Chat[/bold cyan]")
            if project:
                console.print(f"[dim]Project: {project}[/dim]")
            console.print(HELP_TEXT + "\n")

            while True:
                try:
                    user_input = await asyncio.to_thread(
                        console.input, "[bold yellow]You:[/bold yellow] "
                    )
                except (KeyboardInterrupt, EOFError):
                    console.print("\n[dim]Goodbye![/dim]")
                    break

                text = user_input.strip()
                if not text:
                    continue

                command = text.lower()
                if command in ("/quit", "/exit", "exit", "quit", "q"):
                    console.print("[dim]Goodbye![/dim]")
                    break
                if command == "/help":
                    console.print(HELP_TEXT)
                    continue
                if command == "/reset":
                    session = orchestrator.reset_session(session)
                    session.subscribe(renderer)
                    console.print("[dim]Started a new conversation[/dim]")
                    continue
                if command == "/save":
                    if orchestrator.save_conversation(session) is None:
                        console.print("[yellow]Nothing to save[/yellow]")
                    else:
                        console.print("[dim]Saving conversation...[/dim]")
                    continue

                handle = orchestrator.submit_turn(session, text)
                await _wait_for_turn(orchestrator, session, handle, renderer, authority)

        except Exception as e:
            console.print(f"[red]Error: {e}[/red]")
            import traceback
            console.print(f"[dim]{traceback.format_exc()}[/dim]")
            raise typer.Exit(code=1)
        finally:
            orchestrator.close_session(session)
            if hasattr(orchestrator.model_gateway, "usage"):
                print_usage(console, orchestrator.model_gateway.usage)
            await orchestrator.close()
            await client.close()

    asyncio.run(_chat())


@app.command()
def ingest(
    file: Path = typer.Argument(
        ...,
        exists=True,
        file_okay=True,
        dir_okay=False,
        help="Text file to add to the knowledge base"
    ),
    project: str | None = typer.Option(
        None,
        "--project",
        "-p",
        help="Project ID to file the document under"
    )
):
    """Upload a document to the retrieval service."""
    async def _ingest():
        settings = _load_settings()
        async with get_service_client(settings) as client:
            retrieval = create_retrieval_gateway("service", client=client)
            try:
                text = file.read_text(encoding="utf-8")
                ack = await retrieval.ingest(
                    text,
                    file.name,
                    metadata=RetrievalScope(project_id=project).to_metadata()
                )
            except (OSError, UnicodeDecodeError, RetrievalFailedError) as e:
                console.print(f"[red]Error: {e}[/red]")
                raise typer.Exit(code=1)

        if ack.accepted:
            console.print(f"[green]Ingested {ack.source_id}[/green]")
        else:
            console.print(f"[yellow]Not accepted: {ack.detail or 'no detail'}[/yellow]")
            raise typer.Exit(code=1)

    asyncio.run(_ingest())


@app.command()
def health():
    """Check chat service health."""
    async def _health():
        settings = _load_settings()
        async with get_service_client(settings) as client:
            try:
                status = await client.health()
            except (ServiceError, httpx.HTTPError) as e:
                console.print(f"[red]x[/red] Chat service: FAILED ({e})")
                raise typer.Exit(code=1)

        table = Table(show_header=False, box=None)
        table.add_column("Component", style="bold cyan", width=15)
        table.add_column("Status")

        table.add_row("Service", status.status)
        table.add_row("Version", status.version)
        table.add_row("Ollama", status.ollama)
        table.add_row("MCP", status.mcp)
        table.add_row("Database", f"{status.database.status} ({status.database.documents} documents)")
        console.print(table)

        if status.status.lower() not in ("ok", "healthy"):
            raise typer.Exit(code=1)

    asyncio.run(_health())


@app.command()
def models():
    """Show which configured models are available."""
    async def _models():
        settings = _load_settings()
        async with get_service_client(settings) as client:
            status = await client.models_status()

        console.print(f"Status: [bold]{status.status}[/bold]")
        table = Table()
        table.add_column("Model", style="cyan")
        table.add_column("Configured")
        table.add_column("Available")

        names = sorted(set(status.configured_models) | set(status.available_models))
        for name in names:
            table.add_row(
                name,
                "yes" if name in status.configured_models else "",
                "[green]yes[/green]" if name in status.available_models else "[red]no[/red]"
            )
        if names:
            console.print(table)
        else:
            console.print("[dim]No models reported[/dim]")

        if status.missing_models:
            console.print(f"[yellow]Missing: {', '.join(status.missing_models)}[/yellow]")

    asyncio.run(_models())


if __name__ == "__main__":
    app()
