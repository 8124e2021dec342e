# ABOUTME: Final ordering of enriched results across providers.
# ABOUTME: Similarity first, then audiobooks over books, then operator-configured provider priority.

from collections.abc import Iterable

from bookmux.metadata.candidate import Candidate


def rank_key(candidate: Candidate) -> tuple[float, int, int, str, str]:
    """Sort key: similarity desc, audiobook first, priority desc, then provider and id.

    The provider/id tail makes the order total, so any permutation of the
    same results ranks identically.
    """
    return (
        -candidate.similarity,
        0 if candidate.record.is_audiobook else 1,
        -candidate.priority,
        candidate.provider,
        candidate.record.id,
    )


def rank_results(results: Iterable[Candidate]) -> list[Candidate]:
    """Return results in ranked order. Does not modify the input."""
    return sorted(results, key=rank_key)
