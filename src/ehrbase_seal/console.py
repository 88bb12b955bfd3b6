"""Rich console utilities for styled terminal output.

This module provides a consistent interface for all CLI output using the
Rich library: status lines, progress bars, summary panels and the
validation report table.
"""

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
)
from rich.table import Table
from rich.theme import Theme

from ehrbase_seal.models import CheckStatus, ValidationReport

# Custom theme with consistent colors
_THEME = Theme(
    {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red bold",
        "highlight": "cyan bold",
        "muted": "dim",
    }
)

_STATUS_MARKUP = {
    CheckStatus.PASS: "[success]✓ pass[/success]",
    CheckStatus.WARN: "[warning]⚠ warn[/warning]",
    CheckStatus.FAIL: "[error]✗ fail[/error]",
}

# Shared console instance
console = Console(theme=_THEME)


def info(message: str) -> None:
    """Print an informational message."""
    console.print(f"[info]ℹ[/info] {message}")


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]✓[/success] {message}")


def warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[warning]⚠[/warning] {message}")


def error(message: str) -> None:
    """Print an error message."""
    console.print(f"[error]✗[/error] {message}")


def action(message: str) -> None:
    """Print an action/progress message."""
    console.print(f"[info]→[/info] {message}")


def step(message: str) -> None:
    """Print a sub-step message."""
    console.print(f"[muted]•[/muted] {message}")


def highlight(text: str) -> str:
    """Return text wrapped in highlight markup.

    Args:
        text: The text to highlight.

    Returns:
        Text wrapped in Rich markup for highlighting.

    """
    return f"[highlight]{text}[/highlight]"


def create_task_progress() -> Progress:
    """Create a progress bar configured for task processing.

    Returns:
        A configured Progress instance for batch operations.

    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        TextColumn("[muted]{task.completed}/{task.total}[/muted]"),
        console=console,
        transient=True,
    )


def summary_panel(title: str, items: dict[str, str], *, border_style: str = "green") -> None:
    """Print a summary panel with key-value pairs.

    Args:
        title: Title for the panel.
        items: Dictionary of label -> value pairs to display.
        border_style: Rich style for the panel border.

    """
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column(style="cyan")

    for label, value in items.items():
        table.add_row(f"{label}:", value)

    console.print(Panel(table, title=f"[bold]{title}[/bold]", border_style=border_style))


def report_table(report: ValidationReport) -> None:
    """Print every result of a validation report as a table.

    Args:
        report: The report to render.

    """
    table = Table(title="Sealed secrets validation", show_lines=False)
    table.add_column("Status", no_wrap=True)
    table.add_column("Check", style="muted", no_wrap=True)
    table.add_column("Target", style="cyan")
    table.add_column("Kind", style="bold")
    table.add_column("Message")

    for result in report.results:
        table.add_row(
            _STATUS_MARKUP[result.status],
            result.check.value,
            result.target,
            result.kind.value if result.kind else "",
            result.message,
        )

    console.print(table)


def newline() -> None:
    """Print an empty line."""
    console.print()
