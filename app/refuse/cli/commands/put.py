"""Put command implementation.

Moves files and directories into the trash.
"""

from typing import Annotated

import typer

from refuse.cli.context import get_manager, is_quiet
from refuse.utils.formatting import print_error, print_success


def put(
    ctx: typer.Context,
    paths: Annotated[
        list[str],
        typer.Argument(help="Files or directories to move to the trash."),
    ],
) -> None:
    """Move files or directories to the trash.

    Every path is handled independently; a failure for one path never
    stops the others. Exits with code 1 if any path failed.
    """
    manager = get_manager()
    quiet = is_quiet(ctx)

    failed = 0
    for result in manager.put_many(paths):
        if result.success:
            if not quiet:
                storage = result.storage.type.value if result.storage else "trash"
                print_success(f"Trashed {result.path} ({storage})")
        else:
            failed += 1
            print_error(f"{result.path}: {result.error}")

    if failed:
        raise typer.Exit(code=1)
