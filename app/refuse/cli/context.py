"""Shared helpers for CLI commands.

Loads the configuration, builds the Manager and installs logging, turning
setup failures into a clean error message and exit code 1.
"""

import logging

import typer
from rich.logging import RichHandler

from refuse.backends.factory import create_manager
from refuse.core.config import ConfigError, RefuseConfig, load_config
from refuse.core.errors import TrashError
from refuse.core.manager import Manager
from refuse.models.entry import TrashedEntry
from refuse.utils.formatting import err_console, print_error


def configure_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Route log records to stderr through Rich.

    Args:
        verbose: Show debug records.
        quiet: Show errors only.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False, show_time=verbose)],
        force=True,
    )


def get_config() -> RefuseConfig:
    """Load the configuration or exit with an error."""
    try:
        return load_config()
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def get_manager() -> Manager:
    """Build the Manager from the configuration or exit with an error."""
    config = get_config()
    try:
        return create_manager(config)
    except TrashError as e:
        print_error(f"Failed to open trash: {e}")
        raise typer.Exit(code=1) from e


def resolve_entry(manager: Manager, query: str) -> TrashedEntry:
    """Find the newest entry matching a name or path, or exit with an error."""
    matches = manager.find(query)
    if not matches:
        print_error(f"Not found in trash: {query}")
        raise typer.Exit(code=1)
    return matches[0]


def is_quiet(ctx: typer.Context) -> bool:
    """Check if --quiet was given on the main command."""
    obj = ctx.find_root().obj
    return bool(obj and obj.get("quiet"))
