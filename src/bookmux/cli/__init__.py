# ABOUTME: CLI package for bookmux, built on Click.
# ABOUTME: Defines the root command group, logging setup, and registers subcommands.

import logging

import click

from bookmux.cli.commands import config_cmd, providers_cmd, search_cmd

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _configure_logging(verbosity: int) -> None:
    """WARNING by default, INFO with -v, DEBUG with -vv."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=_LOG_FORMAT)


@click.group()
@click.version_option(package_name="bookmux")
@click.option("-v", "--verbose", count=True, help="Increase log output (-v info, -vv debug).")
def cli(verbose: int) -> None:
    """bookmux - aggregated book and audiobook metadata search."""
    _configure_logging(verbose)


cli.add_command(search_cmd.search)
cli.add_command(providers_cmd.providers)
cli.add_command(config_cmd.config)
