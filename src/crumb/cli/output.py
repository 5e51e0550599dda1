"""
Output formatting utilities for the CLI.

Status messages go through rich consoles; machine-readable output (keys,
values, export lines) is written raw with typer.echo so rich markup never
touches secret values.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

# Global console instances
console = Console()
err_console = Console(stderr=True)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]✓[/green] {escape(message)}", highlight=False)


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[red]✗[/red] {escape(message)}", highlight=False)


def print_warning(message: str) -> None:
    """Print a warning message to stderr."""
    err_console.print(f"[yellow]![/yellow] {escape(message)}", highlight=False)


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]i[/blue] {escape(message)}", highlight=False)


def print_cancelled(message: str = "Operation cancelled.") -> None:
    console.print(f"[dim]{escape(message)}[/dim]", highlight=False)


def setup_logging(verbose: bool = False) -> None:
    """Route crumb logs to stderr through rich."""
    handler = RichHandler(console=err_console, show_path=False, rich_tracebacks=False)
    root = logging.getLogger("crumb")
    root.handlers = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.propagate = False
