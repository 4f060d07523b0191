"""Console output for the CLI.

Shared Rich consoles, the trash listing table and one-line status printers.
"""

from __future__ import annotations

import sys
from datetime import datetime
from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from refuse.core.theme import get_theme
from refuse.utils.units import format_age, format_size

if TYPE_CHECKING:
    from refuse.models.entry import TrashedEntry


def _detect_color_system() -> str | None:
    """Use truecolor on interactive terminals, let Rich decide otherwise."""
    if sys.stdout.isatty():
        return "truecolor"
    return None


# stdout for results, stderr for diagnostics
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def create_entry_table(title: str = "Trash") -> Table:
    """Create a pre-configured table for trashed entries.

    Args:
        title: Table title.

    Returns:
        Rich Table with index, name, original path, age and size columns.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    table.add_column("#", style="muted", justify="right")
    table.add_column("Name", no_wrap=True)
    table.add_column("Original Path", style="text", overflow="fold")
    table.add_column("Deleted", style="entry.age")
    table.add_column("Size", style="info", justify="right")
    table.add_column("Storage", style="muted")
    return table


def format_entry_row(
    index: int, entry: TrashedEntry, now: datetime | None = None
) -> tuple[str, str, str, str, str, str]:
    """Format an entry as a table row with Rich markup.

    Directories are shown bold with a trailing slash; entries whose
    payload has vanished are struck through.
    """
    label = escape(entry.name)
    if not entry.exists():
        name = f"[entry.missing]{label}[/]"
    elif entry.is_dir:
        name = f"[entry.dir]{label}/[/]"
    else:
        name = f"[entry.file]{label}[/]"

    storage = entry.backend.type.value if entry.backend is not None else "-"
    return (
        str(index),
        name,
        escape(entry.original_path),
        format_age(entry.deleted_at, now),
        format_size(entry.size),
        storage,
    )


def _emit(target: Console, style: str, message: str, label: str = "") -> None:
    if label:
        target.print(f"[{style}]{label}:[/] {message}")
    else:
        target.print(f"[{style}]{message}[/]")


def print_info(message: str) -> None:
    _emit(console, "info", message)


def print_success(message: str) -> None:
    _emit(console, "success", message)


def print_warning(message: str) -> None:
    """Print a warning to stderr."""
    _emit(err_console, "warning", message, label="Warning")


def print_error(message: str) -> None:
    """Print an error to stderr."""
    _emit(err_console, "error", message, label="Error")
