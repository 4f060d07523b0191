"""CLI package for refuse.

This package contains the Typer application and all subcommands.
"""

from refuse.cli.main import app

__all__ = ["app"]
