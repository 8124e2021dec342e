# ABOUTME: Bounded-concurrency enrichment of selected candidates, one worker pool per provider.
# ABOUTME: Per-item failures are logged and dropped without affecting sibling fetches.

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import replace
from typing import TypeVar

from bookmux.core.registry import ProviderEntry, ProviderTable
from bookmux.metadata.candidate import Candidate

logger = logging.getLogger(__name__)

DEFAULT_CONCURRENCY = 5

T = TypeVar("T")
R = TypeVar("R")


async def map_with_concurrency(
    items: Sequence[T],
    fn: Callable[[T], Awaitable[R]],
    limit: int = DEFAULT_CONCURRENCY,
) -> list[R | None]:
    """Apply an async function to every item with at most `limit` calls in flight.

    Workers pull the next index from a shared cursor until the items run
    out, so no item is processed twice. Results keep input order; an item
    whose call raised gets None.
    """
    results: list[R | None] = [None] * len(items)
    cursor = 0

    async def worker() -> None:
        nonlocal cursor
        while cursor < len(items):
            idx = cursor
            cursor += 1
            try:
                results[idx] = await fn(items[idx])
            except Exception:
                logger.exception("Error processing item %d", idx)
                results[idx] = None

    workers = max(1, min(limit, len(items)))
    await asyncio.gather(*(worker() for _ in range(workers)))
    return results


def pool_size(entry: ProviderEntry) -> int:
    """Worker count for a provider: 1 without batch support, else config, hint, or default."""
    provider = entry.provider
    if not provider.supports_batch_enrichment:
        return 1
    return entry.settings.concurrency or provider.concurrency or DEFAULT_CONCURRENCY


async def enrich_provider_group(
    entry: ProviderEntry, candidates: list[Candidate]
) -> list[Candidate]:
    """Enrich one provider's candidates, returning already-full ones first.

    Candidates already fetched in full, and all candidates of providers
    without an enrich capability, pass through unchanged.
    """
    provider = entry.provider
    if not provider.supports_enrichment:
        return list(candidates)

    already_full = [c for c in candidates if c.record.full_fetched]
    to_fetch = [c for c in candidates if not c.record.full_fetched]

    async def fetch(candidate: Candidate) -> Candidate | None:
        try:
            record = await provider.enrich(candidate.record)
        except Exception as exc:
            logger.warning(
                "Error fetching metadata for provider %s (%s): %s",
                entry.name,
                candidate.record.title,
                exc,
            )
            return None
        return replace(candidate, record=record)

    fetched = await map_with_concurrency(to_fetch, fetch, pool_size(entry))
    return already_full + [c for c in fetched if c is not None]


async def enrich_candidates(
    grouped: dict[str, list[Candidate]], table: ProviderTable
) -> list[Candidate]:
    """Enrich every provider group concurrently and flatten the results.

    Groups whose provider is not in the table contribute nothing.
    """
    tasks = []
    for provider_name, candidates in grouped.items():
        entry = table.get(provider_name)
        if entry is None:
            logger.warning(
                "No loaded provider %s; dropping %d candidates", provider_name, len(candidates)
            )
            continue
        tasks.append(enrich_provider_group(entry, candidates))

    nested = await asyncio.gather(*tasks)
    return [candidate for group in nested for candidate in group]
