"""Prune command implementation.

Permanently deletes trashed entries selected by age.
"""

from datetime import timedelta
from typing import Annotated

import typer

from refuse.cli.context import get_manager, is_quiet
from refuse.utils.formatting import (
    console,
    create_entry_table,
    format_entry_row,
    print_error,
    print_info,
    print_success,
)
from refuse.utils.units import parse_duration


def prune(
    ctx: typer.Context,
    durations: Annotated[
        list[str],
        typer.Argument(
            help="Age like '30d' to delete older entries, or two ages like '1w 30d' for a range.",
        ),
    ],
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Do not ask for confirmation.",
        ),
    ] = False,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "-n",
            help="Show what would be deleted without deleting.",
        ),
    ] = False,
) -> None:
    """Permanently delete trashed entries by age.

    With one duration, entries trashed longer ago than that are deleted.
    With two, entries whose age lies between them are deleted.
    """
    older_than, newer_than = _parse_bounds(durations)

    manager = get_manager()
    candidates = manager.prune_candidates(older_than, newer_than)
    if not candidates:
        print_info("No entries to prune.")
        return

    table = create_entry_table(title="Entries to Prune")
    for index, entry in enumerate(candidates, start=1):
        table.add_row(*format_entry_row(index, entry))
    console.print(table)

    if dry_run:
        print_info(f"Dry run: would delete {len(candidates)} entries.")
        return

    if not yes:
        confirmed = typer.confirm(f"Permanently delete {len(candidates)} entries?")
        if not confirmed:
            print_info("Aborted.")
            raise typer.Exit(code=0)

    results = manager.remove_many(candidates)
    failures = [r for r in results if not r.success]
    for result in failures:
        print_error(f"{result.path}: {result.error}")

    if not is_quiet(ctx):
        print_success(f"Deleted {len(results) - len(failures)} entries.")
    if failures:
        raise typer.Exit(code=1)


def _parse_bounds(durations: list[str]) -> tuple[timedelta, timedelta | None]:
    """Turn one or two duration arguments into (older_than, newer_than)."""
    if len(durations) > 2:
        print_error("Expected one or two durations.")
        raise typer.Exit(code=1)

    try:
        parsed = [parse_duration(d) for d in durations]
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if len(parsed) == 1:
        return parsed[0], None
    return max(parsed), min(parsed)
