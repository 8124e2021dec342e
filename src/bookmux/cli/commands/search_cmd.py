# ABOUTME: The `bookmux search` command for one aggregated provider search.
# ABOUTME: Renders ranked matches and per-provider diagnostics as a Rich table or JSON.

import asyncio
import json
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from bookmux.cli.options import config_option
from bookmux.config import AggregatorConfig, ConfigError, load_config
from bookmux.core.aggregator import QueryError, SearchAggregator, SearchResponse
from bookmux.core.mapping import response_to_dict
from bookmux.core.registry import ProviderRegistry
from bookmux.metadata.candidate import MERGED_PROVIDER


def _create_registry(config: AggregatorConfig) -> ProviderRegistry:
    """Create the provider registry for a config (built-in providers)."""
    return ProviderRegistry(config)


async def _run_search(
    registry: ProviderRegistry, query: str, author: str | None, language: str | None
) -> SearchResponse:
    try:
        return await SearchAggregator(registry).search(query, author, language)
    finally:
        await registry.aclose()


def _render(console: Console, response: SearchResponse) -> None:
    if not response.matches:
        console.print("[yellow]No matches found.[/yellow]")
    else:
        table = Table()
        table.add_column("#", style="dim", width=3)
        table.add_column("Title", style="bold")
        table.add_column("Author")
        table.add_column("Type", width=9)
        table.add_column("Provider")
        table.add_column("Similarity", justify="right")

        for i, match in enumerate(response.matches, start=1):
            record = match.record
            provider = match.provider
            if provider == MERGED_PROVIDER:
                provider = f"[magenta]{provider}[/magenta]"
            table.add_row(
                str(i),
                record.title,
                record.author or "[dim]unknown[/dim]",
                record.type,
                provider,
                f"{match.similarity:.0%}",
            )
        console.print(table)

    for diag in response.providers:
        if diag.ok:
            console.print(
                f"[dim]{diag.provider}: {diag.snippets} snippet(s) "
                f"in {diag.elapsed_ms:.0f} ms[/dim]"
            )
        else:
            console.print(f"[red]{diag.provider}: {diag.error}[/red]")


@click.command("search")
@click.argument("query")
@click.option("-a", "--author", default=None, help="Author name to weigh into matching.")
@click.option(
    "-l",
    "--language",
    default=None,
    help="Language hint passed to providers (overrides per-provider config).",
)
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the response as JSON.")
@config_option
def search(
    query: str,
    author: str | None,
    language: str | None,
    as_json: bool,
    config_path: Path | None,
) -> None:
    """Search every enabled provider for QUERY and show ranked matches."""
    console = Console()

    try:
        config = load_config(config_path)
    except ConfigError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    registry = _create_registry(config)
    try:
        response = asyncio.run(_run_search(registry, query, author, language))
    except QueryError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        raise SystemExit(1) from exc

    if as_json:
        click.echo(json.dumps(response_to_dict(response), indent=2, ensure_ascii=False))
        return

    _render(console, response)
