"""List command implementation.

Shows the contents of every configured trash.
"""

import json
from enum import Enum
from typing import Annotated

import typer

from refuse.cli.context import get_manager
from refuse.models.entry import TrashedEntry
from refuse.utils.formatting import console, create_entry_table, format_entry_row, print_info


class OutputFormat(str, Enum):
    """Output format options for list."""

    TABLE = "table"
    JSON = "json"


def list_entries(
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
    show_all: Annotated[
        bool,
        typer.Option(
            "--all",
            "-a",
            help="Ignore the [history] filters from the configuration.",
        ),
    ] = False,
) -> None:
    """List trashed entries, newest first."""
    manager = get_manager()
    entries = manager.list(filtered=not show_all)

    if output_format == OutputFormat.JSON:
        _print_json(entries)
        return

    if not entries:
        print_info("Trash is empty.")
        return

    table = create_entry_table()
    for index, entry in enumerate(entries, start=1):
        table.add_row(*format_entry_row(index, entry))
    console.print(table)


def entry_to_dict(entry: TrashedEntry) -> dict[str, object]:
    """Convert an entry to a JSON-serializable dictionary."""
    return {
        "name": entry.name,
        "original_path": entry.original_path,
        "trash_path": entry.trash_path,
        "deleted_at": entry.deleted_at.isoformat(),
        "size": entry.size,
        "is_dir": entry.is_dir,
        "storage": entry.backend.type.value if entry.backend is not None else None,
    }


def _print_json(entries: list[TrashedEntry]) -> None:
    output = [entry_to_dict(entry) for entry in entries]
    typer.echo(json.dumps(output, indent=2))
