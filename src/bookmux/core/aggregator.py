# ABOUTME: The aggregated search operation: fan out, score, select, enrich, rank, merge.
# ABOUTME: Partial failures are isolated per provider and reported as diagnostics, never raised.

import asyncio
import logging
import time
from dataclasses import dataclass, field, replace

from bookmux.core.enrichment import enrich_candidates
from bookmux.core.merge import maybe_merge
from bookmux.core.ranking import rank_results
from bookmux.core.registry import ProviderEntry, ProviderRegistry, RegistrySnapshot
from bookmux.core.selector import select_candidates
from bookmux.metadata.candidate import Candidate
from bookmux.metadata.scoring import score_snippet
from bookmux.metadata.types import BookRecord, split_authors

logger = logging.getLogger(__name__)


class QueryError(ValueError):
    """Raised when a search is attempted without a query."""


@dataclass
class ProviderDiagnostics:
    """Outcome of one provider's search call within a request."""

    provider: str
    snippets: int = 0
    error: str | None = None
    elapsed_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SearchResponse:
    """Ranked matches (merged result first, if any) plus per-provider diagnostics."""

    matches: list[Candidate] = field(default_factory=list)
    providers: list[ProviderDiagnostics] = field(default_factory=list)


@dataclass
class _ProviderHits:
    diagnostics: ProviderDiagnostics
    records: list[BookRecord] = field(default_factory=list)


async def _search_provider(
    entry: ProviderEntry, query: str, author: str | None, language: str | None
) -> _ProviderHits:
    """Run one provider's search, turning any exception into a diagnostic."""
    start = time.perf_counter()
    diagnostics = ProviderDiagnostics(provider=entry.name)
    records: list[BookRecord] = []
    try:
        records = list(await entry.provider.search(query, author, language))
        diagnostics.snippets = len(records)
    except Exception as exc:
        logger.warning("Search failed for provider %s: %s", entry.name, exc)
        diagnostics.error = str(exc) or type(exc).__name__
    diagnostics.elapsed_ms = (time.perf_counter() - start) * 1000
    return _ProviderHits(diagnostics=diagnostics, records=records)


def _normalize_snippet(record: BookRecord) -> BookRecord:
    """Make authors a clean list so scoring never trips over provider quirks."""
    return replace(record, authors=split_authors(record.authors))


class SearchAggregator:
    """Aggregates one search across every enabled provider.

    Each call leases a single registry snapshot up front; a config reload
    during the request does not affect it.
    """

    def __init__(self, registry: ProviderRegistry) -> None:
        self._registry = registry

    async def search(
        self, query: str, author: str | None = None, language: str | None = None
    ) -> SearchResponse:
        """Search all providers and return ranked, optionally merged matches.

        Args:
            query: Title to search for. Required.
            author: Optional author to weigh into similarity.
            language: Optional language hint; overrides per-provider language settings.

        Raises:
            QueryError: If query is missing or blank. No other failure raises.
        """
        if not query or not query.strip():
            raise QueryError("query required")

        async with self._registry.acquire() as snapshot:
            return await self._search(snapshot, query, author, language)

    async def _search(
        self,
        snapshot: RegistrySnapshot,
        query: str,
        author: str | None,
        language: str | None,
    ) -> SearchResponse:
        hits = await self._fan_out(snapshot, query, author, language)

        counts = {h.diagnostics.provider: h.diagnostics.snippets for h in hits}
        logger.info("Provider snippets: %s", counts)

        scored = self._score(snapshot, hits, query, author)
        selected = select_candidates(scored, snapshot.config)
        logger.info(
            "Candidates: %s plannedFullFetches=%d",
            {name: len(group) for name, group in selected.items()},
            sum(1 for group in selected.values() for c in group if not c.record.full_fetched),
        )

        enriched = await enrich_candidates(selected, snapshot.table)
        ranked = rank_results(enriched)
        matches = maybe_merge(ranked, snapshot.config.settings)

        return SearchResponse(matches=matches, providers=[h.diagnostics for h in hits])

    async def _fan_out(
        self,
        snapshot: RegistrySnapshot,
        query: str,
        author: str | None,
        language: str | None,
    ) -> list[_ProviderHits]:
        tasks = [
            _search_provider(entry, query, author, language or entry.settings.language)
            for entry in snapshot.table
        ]
        return list(await asyncio.gather(*tasks))

    @staticmethod
    def _score(
        snapshot: RegistrySnapshot,
        hits: list[_ProviderHits],
        query: str,
        author: str | None,
    ) -> list[Candidate]:
        """Tag every snippet with its provider and priority and score it."""
        title_weight = snapshot.config.settings.title_weight_fraction
        candidates: list[Candidate] = []
        for hit in hits:
            name = hit.diagnostics.provider
            priority = snapshot.config.provider(name).priority
            for record in hit.records:
                record = _normalize_snippet(record)
                candidates.append(
                    Candidate(
                        record=record,
                        provider=name,
                        similarity=score_snippet(record, query, author, title_weight),
                        priority=priority,
                    )
                )
        return candidates
