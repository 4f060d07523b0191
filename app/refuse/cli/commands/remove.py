"""Remove command implementation.

Permanently deletes a single trashed entry.
"""

from typing import Annotated

import typer

from refuse.cli.context import get_manager, is_quiet, resolve_entry
from refuse.core.errors import TrashError
from refuse.utils.formatting import print_error, print_info, print_success


def remove(
    ctx: typer.Context,
    query: Annotated[
        str,
        typer.Argument(help="Original name, original path or trash path of the entry."),
    ],
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Do not ask for confirmation.",
        ),
    ] = False,
) -> None:
    """Permanently delete a trashed entry.

    If several entries match, the most recently trashed one is removed.
    """
    manager = get_manager()
    entry = resolve_entry(manager, query)

    if not yes:
        confirmed = typer.confirm(f"Permanently delete {entry.trash_path}?")
        if not confirmed:
            print_info("Aborted.")
            raise typer.Exit(code=0)

    try:
        manager.remove(entry)
    except TrashError as e:
        print_error(f"Failed to remove {entry.name}: {e}")
        raise typer.Exit(code=1) from e

    if not is_quiet(ctx):
        print_success(f"Removed {entry.name}")
