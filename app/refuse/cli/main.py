"""Entry point of the refuse command.

Builds the Typer application, its global options and the command table.
"""

from typing import Annotated

import typer

from refuse import __version__
from refuse.cli.commands import config, listing, orphans, prune, put, remove, restore
from refuse.cli.context import configure_logging

app = typer.Typer(
    name="refuse",
    help="Move files to the trash instead of deleting them.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    if not value:
        return
    typer.echo(f"refuse {__version__}")
    raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option("--version", "-V", callback=version_callback, is_eager=True, help="Print the version."),
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Log debug details to stderr.")] = False,
    quiet: Annotated[bool, typer.Option("--quiet", "-q", help="Print errors only.")] = False,
) -> None:
    """refuse - a crash-safe trash for the command line.

    Trashed objects go to the freedesktop.org trash of their device (or
    a legacy single-directory trash) and can be listed, restored or
    deleted for good later.
    """
    # Commands read these back through ctx.find_root().obj
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    configure_logging(verbose=verbose, quiet=quiet)


# Commands taking positional paths are plain commands; config is a group
app.command(name="put")(put.put)
app.command(name="list")(listing.list_entries)
app.command(name="restore")(restore.restore)
app.command(name="remove")(remove.remove)
app.command(name="prune")(prune.prune)
app.command(name="orphans")(orphans.orphans)
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
