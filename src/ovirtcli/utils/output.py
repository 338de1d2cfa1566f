"""Output formatting utilities using Rich."""

import json
from typing import Any

import yaml
from rich.console import Console
from rich.markup import escape
from rich.prompt import Confirm
from rich.table import Table

console = Console()


def print_error(msg: str) -> None:
    """Print an error message to the console.

    Args:
        msg: The error message to display.
    """
    console.print(f"[bold red]Error:[/bold red] {escape(msg)}")


def print_success(msg: str) -> None:
    """Print a success message to the console.

    Args:
        msg: The success message to display.
    """
    console.print(f"[bold green]✓[/bold green] {escape(msg)}")


def print_warning(msg: str) -> None:
    """Print a warning message to the console.

    Args:
        msg: The warning message to display.
    """
    console.print(f"[bold yellow]Warning:[/bold yellow] {escape(msg)}")


def print_info(msg: str) -> None:
    """Print an info message to the console."""
    console.print(f"[cyan]{escape(msg)}[/cyan]")


def print_cancelled(msg: str = "Cancelled") -> None:
    """Print a cancellation message to the console."""
    console.print(f"[yellow]{escape(msg)}[/yellow]")


def print_data(data: Any, fmt: str) -> None:
    """Print structured data as JSON or YAML.

    Args:
        data: JSON-compatible data
        fmt: ``json`` or ``yaml``
    """
    if fmt == "json":
        console.print_json(json.dumps(data))
    else:
        console.print(
            yaml.safe_dump(data, default_flow_style=False, sort_keys=False),
            end="",
            markup=False,
            highlight=False,
            soft_wrap=True,
        )


def create_table(
    title: str | None = None,
    columns: list[tuple[str, str]] | None = None,
    rows: list[list[str]] | None = None,
    show_header: bool = True,
) -> Table:
    """Create a Rich table.

    Args:
        title: Optional table title.
        columns: List of (column_name, column_style) tuples.
        rows: List of row data.
        show_header: Whether to show the header row.

    Returns:
        A configured Rich Table instance.
    """
    table = Table(title=title, show_header=show_header, header_style="bold cyan")

    if columns:
        for col_name, col_style in columns:
            table.add_column(col_name, style=col_style)

    if rows:
        for row in rows:
            table.add_row(*row)

    return table


def confirm(message: str, default: bool = False) -> bool:
    """Prompt user for confirmation.

    Args:
        message: The confirmation message to display.
        default: Default choice if user just presses enter.

    Returns:
        True if user confirmed, False otherwise.
    """
    return Confirm.ask(message, default=default)


def format_bytes(bytes_value: float) -> str:
    """Format bytes to human-readable string (e.g. '1.5 GB')."""
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if bytes_value < 1024.0:
            return f"{bytes_value:.1f} {unit}"
        bytes_value /= 1024.0
    return f"{bytes_value:.1f} PB"

