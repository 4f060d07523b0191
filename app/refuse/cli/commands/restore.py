"""Restore command implementation.

Moves a trashed entry back to its original location or a new one.
"""

from pathlib import Path
from typing import Annotated

import typer

from refuse.cli.context import get_manager, is_quiet, resolve_entry
from refuse.core.errors import TrashError
from refuse.utils.formatting import print_error, print_success


def restore(
    ctx: typer.Context,
    query: Annotated[
        str,
        typer.Argument(help="Original name, original path or trash path of the entry."),
    ],
    dest: Annotated[
        Path | None,
        typer.Option(
            "--to",
            "-t",
            help="Restore to this path instead of the original one.",
        ),
    ] = None,
) -> None:
    """Restore a trashed entry.

    If several entries match, the most recently trashed one is restored.
    """
    manager = get_manager()
    entry = resolve_entry(manager, query)
    target = str(dest) if dest is not None else entry.original_path

    try:
        manager.restore(entry, target)
    except TrashError as e:
        print_error(f"Failed to restore {entry.name}: {e}")
        raise typer.Exit(code=1) from e

    if not is_quiet(ctx):
        print_success(f"Restored {entry.name} to {target}")
