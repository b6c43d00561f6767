"""Config commands.

Show the effective settings and write a default configuration file.
"""

from typing import Annotated

import tomli_w
import typer

from dupectl.core.config import ConfigError, DupeConfig, load_config_or_default, save_config
from dupectl.core.paths import get_config_path
from dupectl.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    name="config",
    help="Show or initialize the dupectl configuration.",
    no_args_is_help=True,
)


@app.command()
def show() -> None:
    """Show the effective configuration as TOML."""
    path = get_config_path()
    try:
        config = load_config_or_default(path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if path.exists():
        print_info(f"Config file: {path}")
    else:
        print_info(f"Showing defaults (no config file at {path}).")
    console.print(tomli_w.dumps(config.model_dump()), markup=False, highlight=False)


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing config file."),
    ] = False,
) -> None:
    """Write a config file with default settings."""
    path = get_config_path()
    if path.exists() and not force:
        print_error(f"Config already exists: {path} (use --force to overwrite)")
        raise typer.Exit(code=1)

    try:
        saved = save_config(DupeConfig(), path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Config written to {saved}")
