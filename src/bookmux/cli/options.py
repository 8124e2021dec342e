# ABOUTME: Shared Click options for bookmux CLI commands.
# ABOUTME: Provides reusable decorators for common flags like --config.

from pathlib import Path

import click

from bookmux.config import CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH

config_option = click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help=f"Path to config file (default: ${CONFIG_ENV_VAR} or {DEFAULT_CONFIG_PATH})",
)
