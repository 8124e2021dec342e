# ABOUTME: The `bookmux config` command group for inspecting and creating config files.
# ABOUTME: `show` prints the effective config as JSON; `init` writes a default file.

import json
from pathlib import Path

import click
from rich.console import Console

from bookmux.cli.options import config_option
from bookmux.config import (
    ConfigError,
    config_to_dict,
    default_config,
    load_config,
    resolve_config_path,
    save_config,
)


@click.group("config")
def config() -> None:
    """Inspect or create the aggregator config file."""


@config.command("show")
@config_option
def show(config_path: Path | None) -> None:
    """Print the effective config (defaults if no file exists)."""
    console = Console()
    try:
        loaded = load_config(config_path)
    except ConfigError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        for detail in exc.details:
            console.print(f"  - {detail}")
        raise SystemExit(1) from exc

    click.echo(json.dumps(config_to_dict(loaded), indent=2))


@config.command("init")
@config_option
@click.option("--force", is_flag=True, default=False, help="Overwrite an existing config file.")
def init(config_path: Path | None, force: bool) -> None:
    """Write a default config with every built-in provider enabled."""
    console = Console()
    target = resolve_config_path(config_path)
    if target.exists() and not force:
        console.print(f"[red]Config already exists:[/red] {target} (use --force to overwrite)")
        raise SystemExit(1)

    written = save_config(default_config(), target)
    console.print(f"[green]Wrote config:[/green] {written}")
