"""Rich display utilities for the artifact CLI."""

import logging

from rich.console import Console
from rich.logging import RichHandler

from artifact.transfer import TransferStats

console = Console()
err_console = Console(stderr=True)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[bold green]✓[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[bold red]✗[/] {message}")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[bold blue]ℹ[/] {message}")


def format_bytes(size: int) -> str:
    """Format a byte count with binary units, e.g. 1536 -> '1.5 KB'."""
    unit = 1024
    if size < unit:
        return f"{size} B"
    div, exp = unit, 0
    n = size // unit
    while n >= unit:
        div *= unit
        exp += 1
        n //= unit
    return f"{size / div:.1f} {'KMGTPE'[exp]}B"


def pluralize(count: int, singular: str, plural: str) -> str:
    return singular if count == 1 else plural


def print_transfer_summary(verb: str, stats: TransferStats) -> None:
    """Print 'Pushed 3 files. Total of 1.2 KB'."""
    console.print(
        f"{verb} {stats.file_count} {pluralize(stats.file_count, 'file', 'files')}. "
        f"Total of {format_bytes(stats.total_size)}"
    )


def configure_logging(verbose: bool) -> None:
    """Route library debug logs through rich when --verbose is set."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
