# ABOUTME: The `bookmux providers` command listing configured providers.
# ABOUTME: Shows enabled state, priority, caps, concurrency, and supported languages.

import asyncio
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from bookmux.cli.options import config_option
from bookmux.config import ConfigError, load_config
from bookmux.core.registry import PROVIDER_FACTORIES, ProviderRegistry


@click.command("providers")
@config_option
def providers(config_path: Path | None) -> None:
    """List configured providers and their settings."""
    console = Console()

    try:
        config = load_config(config_path)
    except ConfigError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    registry = ProviderRegistry(config)
    table_data = registry.snapshot().table
    asyncio.run(registry.aclose())

    table = Table()
    table.add_column("Provider", style="bold")
    table.add_column("Enabled")
    table.add_column("Priority", justify="right")
    table.add_column("Max results", justify="right")
    table.add_column("Concurrency", justify="right")
    table.add_column("Languages")

    for name, settings in config.providers.items():
        entry = table_data.get(name)
        if name not in PROVIDER_FACTORIES:
            enabled = "[red]unknown[/red]"
        elif entry is None:
            enabled = "[dim]no[/dim]"
        else:
            enabled = "[green]yes[/green]"

        if entry is not None:
            concurrency = str(settings.concurrency or entry.provider.concurrency or "-")
            languages = ", ".join(entry.provider.supported_languages) or "any"
        else:
            concurrency = str(settings.concurrency or "-")
            languages = "-"

        table.add_row(
            name,
            enabled,
            str(settings.priority),
            str(settings.max_results or "unlimited"),
            concurrency,
            languages,
        )

    console.print(table)
