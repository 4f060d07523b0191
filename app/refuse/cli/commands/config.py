"""Configuration commands.

Shows, creates and locates the refuse configuration file.
"""

from typing import Annotated

import tomli_w
import typer

from refuse.cli.context import get_config
from refuse.core.config import ConfigError, RefuseConfig, config_to_dict, save_config
from refuse.core.paths import get_config_path
from refuse.utils.formatting import print_error, print_info, print_success

app = typer.Typer(
    help="Inspect and create the configuration file.",
    no_args_is_help=True,
)


@app.command()
def show() -> None:
    """Print the effective configuration as TOML."""
    config = get_config()
    typer.echo(tomli_w.dumps(config_to_dict(config)), nl=False)


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            "-f",
            help="Overwrite an existing configuration file.",
        ),
    ] = False,
) -> None:
    """Write a configuration file with default settings."""
    path = get_config_path()
    if path.exists() and not force:
        print_info(f"Configuration already exists: {path}")
        print_info("Use --force to overwrite.")
        raise typer.Exit(code=1)

    try:
        saved = save_config(RefuseConfig(), path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Configuration written to {saved}")


@app.command()
def path() -> None:
    """Print the configuration file path."""
    typer.echo(str(get_config_path()))
