"""Console rendering for the chat command.

Hides how display events and debug messages are shown on the terminal.
"""

import asyncio
import json
from collections.abc import Callable

from rich.console import Console
from rich.markup import escape

from ..gateway import UsageSummary
from ..history import Role
from ..turnlog import DisplayEvent, DisplayEventKind, ToolStatus


class LogLevel:
    """Log level constants with numeric values for comparison.

    Standard logging hierarchy: DEBUG < INFO < WARNING < ERROR
    Lower numeric value = more verbose (shows more messages).
    """

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40

    _names = {
        DEBUG: "DEBUG",
        INFO: "INFO",
        WARNING: "WARNING",
        ERROR: "ERROR",
    }

    _from_string = {
        "debug": DEBUG,
        "info": INFO,
        "warning": WARNING,
        "error": ERROR,
    }

    _styles = {
        DEBUG: "dim",
        INFO: "cyan",
        WARNING: "yellow",
        ERROR: "red",
    }

    @classmethod
    def name(cls, level: int) -> str:
        """Get the name for a log level."""
        return cls._names.get(level, "UNKNOWN")

    @classmethod
    def from_string(cls, level_str: str) -> int:
        """Convert string to log level. Returns DEBUG if invalid."""
        return cls._from_string.get(level_str.lower(), cls.DEBUG)

    @classmethod
    def style(cls, level: int) -> str:
        return cls._styles.get(level, "dim")


def console_debug_callback(
    console: Console,
    min_level: str = "warning"
) -> Callable[[str, str, str], None]:
    """Build a debug callback that prints to the console.

    Args:
        console: Rich console for output
        min_level: Least severe level shown

    Returns:
        Callable(level, component, message)
    """
    threshold = LogLevel.from_string(min_level)

    def callback(level: str, component: str, message: str) -> None:
        value = LogLevel.from_string(level)
        if value < threshold:
            return
        style = LogLevel.style(value)
        console.print(
            f"[{style}]\\[{LogLevel.name(value)}] {escape(component)}: {escape(message)}[/{style}]"
        )

    return callback


def print_usage(console: Console, usage: UsageSummary) -> None:
    """Print token usage gathered over a chat, if any model call was made."""
    if not usage.total_calls:
        return

    console.print(f"[dim]Model calls: {usage.total_calls}[/dim]")
    console.print(f"[dim]Input tokens: {usage.total_input_tokens:,}[/dim]")
    console.print(f"[dim]Output tokens: {usage.total_output_tokens:,}[/dim]")
    if len(usage.model_breakdown) > 1:
        for model, counts in usage.model_breakdown.items():
            console.print(
                f"[dim]  {escape(model)}: {counts['calls']} call(s), "
                f"{counts['input_tokens']:,} in / {counts['output_tokens']:,} out[/dim]"
            )


class ChatRenderer:
    """Prints session display events and signals pending approvals.

    Used as a session listener: ``session.subscribe(renderer)``.
    """

    _TOOL_STYLES = {
        ToolStatus.PENDING_APPROVAL: "yellow",
        ToolStatus.DISPATCHED: "cyan",
        ToolStatus.SUCCESS: "green",
        ToolStatus.ERROR: "red",
    }

    def __init__(self, console: Console, show_polling: bool = True):
        self.console = console
        self.show_polling = show_polling
        self.approval_requested = asyncio.Event()

    def __call__(self, event: DisplayEvent) -> None:
        kind = event.kind

        if kind == DisplayEventKind.MESSAGE_APPENDED and event.message is not None:
            if event.message.role == Role.ASSISTANT:
                self.console.print(f"[bold green]Assistant:[/bold green] {escape(event.message.content)}\n")
            elif event.message.role == Role.TOOL:
                self.console.print("[dim]Tool result recorded[/dim]")

        elif kind == DisplayEventKind.RETRIEVAL_FAILED:
            self.console.print(
                f"[yellow]![/yellow] Retrieval unavailable, answering without context "
                f"[dim]({escape(event.detail or '')})[/dim]"
            )

        elif kind == DisplayEventKind.APPROVAL_PENDING and event.proposal is not None:
            proposal = event.proposal
            if event.detail:
                self.console.print(f"[dim]{escape(event.detail)}[/dim]")
            self.console.print(
                f"[bold yellow]Approval required:[/bold yellow] {escape(proposal.tool)}"
                f"({escape(json.dumps(proposal.args, ensure_ascii=False))}) "
                f"[dim]{proposal.proposal_id}[/dim]"
            )
            self.approval_requested.set()

        elif kind == DisplayEventKind.APPROVAL_POLLING and self.show_polling:
            note = f" [yellow](retrying: {escape(event.error)})[/yellow]" if event.error else ""
            self.console.print(f"[dim]Waiting for approval... poll {event.attempt}[/dim]{note}")

        elif kind == DisplayEventKind.TOOL_EVENT and event.entry is not None:
            entry = event.entry
            style = self._TOOL_STYLES.get(entry.status, "dim")
            line = f"[{style}]{entry.status.value}[/{style}] {escape(entry.tool)}"
            if entry.output_preview and entry.status != ToolStatus.PENDING_APPROVAL:
                line += f" [dim]{escape(entry.output_preview)}[/dim]"
            self.console.print(line)

        elif kind == DisplayEventKind.TURN_FAILED:
            self.approval_requested.clear()
            self.console.print(
                f"[red]Turn ended: {escape(event.error or 'error')}[/red]"
                + (f" [dim]{escape(event.detail)}[/dim]" if event.detail else "")
            )

        elif kind == DisplayEventKind.TURN_CANCELLED:
            self.approval_requested.clear()
            self.console.print("[dim]Turn cancelled[/dim]")

        elif kind == DisplayEventKind.TURN_COMPLETED:
            self.approval_requested.clear()
