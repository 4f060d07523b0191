"""Orphans command implementation.

Finds sidecars without payloads (and payloads without sidecars) in the
xdg trash locations.
"""

from typing import Annotated

import typer

from refuse.cli.context import get_manager, is_quiet
from refuse.utils.formatting import console, print_info, print_success, print_warning


def orphans(
    ctx: typer.Context,
    prune: Annotated[
        bool,
        typer.Option(
            "--prune",
            help="Delete sidecars whose payload is missing.",
        ),
    ] = False,
    yes: Annotated[
        bool,
        typer.Option(
            "--yes",
            "-y",
            help="Do not ask for confirmation.",
        ),
    ] = False,
) -> None:
    """Report orphaned trash files.

    Payloads without a sidecar are only reported, never deleted.
    """
    manager = get_manager()
    report = manager.find_orphans()

    if report.is_empty:
        print_info("No orphaned files found.")
        return

    if report.sidecars:
        console.print(f"[header]Sidecars without payload ({len(report.sidecars)}):[/]")
        for path in report.sidecars:
            console.print(f"  {path}")
    if report.payloads:
        console.print(f"[header]Payloads without sidecar ({len(report.payloads)}):[/]")
        for path in report.payloads:
            console.print(f"  {path}")

    if not prune:
        return
    if not report.sidecars:
        print_warning("Nothing to prune: only payloads without sidecar were found.")
        return

    if not yes:
        confirmed = typer.confirm(f"Delete {len(report.sidecars)} orphaned sidecars?")
        if not confirmed:
            print_info("Aborted.")
            raise typer.Exit(code=0)

    removed = manager.prune_orphans()
    if not is_quiet(ctx):
        print_success(f"Deleted {len(removed)} orphaned sidecars.")
