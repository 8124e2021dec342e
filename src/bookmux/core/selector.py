# ABOUTME: Candidate selection: type filtering, per-provider caps, and the similarity threshold.
# ABOUTME: Decides which scored snippets are worth a detail fetch, grouped by provider.

from collections.abc import Iterable

from bookmux.config import AggregatorConfig
from bookmux.metadata.candidate import Candidate


def group_by_provider(candidates: Iterable[Candidate]) -> dict[str, list[Candidate]]:
    """Group candidates by provider id, preserving first-seen provider order."""
    grouped: dict[str, list[Candidate]] = {}
    for candidate in candidates:
        grouped.setdefault(candidate.provider, []).append(candidate)
    return grouped


def filter_types(
    candidates: Iterable[Candidate], *, allow_books: bool, allow_audiobooks: bool
) -> list[Candidate]:
    """Drop audiobooks and/or everything else according to the global allow flags.

    Records with an unknown type count as books.
    """
    kept = []
    for candidate in candidates:
        allowed = allow_audiobooks if candidate.record.is_audiobook else allow_books
        if allowed:
            kept.append(candidate)
    return kept


def cap_per_provider(
    grouped: dict[str, list[Candidate]], config: AggregatorConfig
) -> dict[str, list[Candidate]]:
    """Sort each provider's candidates by similarity and keep its top maxResults.

    A maxResults of 0 means unlimited. Ties keep their original order.
    """
    capped: dict[str, list[Candidate]] = {}
    for provider, candidates in grouped.items():
        ordered = sorted(candidates, key=lambda c: c.similarity, reverse=True)
        limit = config.provider(provider).max_results
        capped[provider] = ordered[:limit] if limit > 0 else ordered
    return capped


def select_candidates(
    candidates: Iterable[Candidate], config: AggregatorConfig
) -> dict[str, list[Candidate]]:
    """Pick the candidates to enrich, grouped by provider.

    Order matters: type filter, then per-provider cap, then threshold. The
    cap runs before the threshold so a noisy provider is limited to its
    maxResults even when more of its hits clear the threshold.

    Returns:
        Provider id -> candidates in descending similarity. Providers left
        with no candidates are omitted.
    """
    settings = config.settings
    typed = filter_types(
        candidates,
        allow_books=settings.allow_books,
        allow_audiobooks=settings.allow_audiobooks,
    )
    capped = cap_per_provider(group_by_provider(typed), config)

    threshold = settings.threshold_fraction
    selected: dict[str, list[Candidate]] = {}
    for provider, group in capped.items():
        kept = [c for c in group if c.similarity >= threshold]
        if kept:
            selected[provider] = kept
    return selected
