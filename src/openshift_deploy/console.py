"""Rich console utilities for pipeline output.

All user-facing output of the deployment pipeline goes through this module
so that step banners, warnings and summaries share one theme. Secrets must
never be passed to these helpers.
"""

from collections.abc import Generator
from contextlib import contextmanager

from rich.console import Console
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.table import Table
from rich.theme import Theme

_THEME = Theme(
    {
        "info": "cyan",
        "success": "green",
        "warning": "yellow",
        "error": "red bold",
        "highlight": "cyan bold",
        "muted": "dim",
        "stage": "magenta bold",
    }
)

console = Console(theme=_THEME)


def info(message: str) -> None:
    """Print an informational message.

    Args:
        message: The message to display.

    """
    console.print(f"[info]ℹ[/info] {message}")


def success(message: str) -> None:
    """Print a success message.

    Args:
        message: The message to display.

    """
    console.print(f"[success]✓[/success] {message}")


def warning(message: str) -> None:
    """Print a warning message.

    Args:
        message: The message to display.

    """
    console.print(f"[warning]⚠[/warning] {message}")


def error(message: str) -> None:
    """Print an error message.

    Args:
        message: The message to display.

    """
    console.print(f"[error]✗[/error] {message}")


def action(message: str) -> None:
    """Print an action/progress message.

    Args:
        message: The message to display.

    """
    console.print(f"[info]→[/info] {message}")


def step(message: str) -> None:
    """Print a sub-step message.

    Args:
        message: The message to display.

    """
    console.print(f"[muted]•[/muted] {message}")


def stage(index: int, total: int, name: str) -> None:
    """Print the banner that opens a pipeline step.

    Args:
        index: 1-based position of the step.
        total: Number of steps in the pipeline.
        name: Step name.

    """
    console.print(f"[stage][{index}/{total}][/stage] [bold]{name}[/bold]")


def highlight(text: str) -> str:
    """Return text wrapped in highlight markup.

    Args:
        text: The text to highlight.

    Returns:
        Text wrapped in Rich markup for highlighting.

    """
    return f"[highlight]{text}[/highlight]"


@contextmanager
def spinner(message: str) -> Generator[None, None, None]:
    """Display a spinner while a blocking command runs.

    Args:
        message: The status message to display.

    Yields:
        None

    """
    with console.status(f"[info]{message}[/info]", spinner="dots"):
        yield


def create_download_progress() -> Progress:
    """Create a progress bar configured for the oc client download.

    Returns:
        A configured Progress instance for download operations.

    """
    return Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeRemainingColumn(),
        console=console,
    )


def summary_panel(title: str, items: dict[str, str], *, failed: bool = False) -> None:
    """Print a summary panel with key-value pairs.

    Args:
        title: Title for the panel.
        items: Dictionary of label -> value pairs to display.
        failed: Render the border in the error colour.

    """
    table = Table.grid(padding=(0, 2))
    table.add_column(style="bold")
    table.add_column(style="cyan")

    for label, value in items.items():
        table.add_row(f"{label}:", value)

    console.print(Panel(table, title=f"[bold]{title}[/bold]", border_style="red" if failed else "green"))


def newline() -> None:
    """Print an empty line."""
    console.print()
