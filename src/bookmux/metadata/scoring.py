# ABOUTME: Similarity scoring of provider snippets against the search query.
# ABOUTME: Combines title and best-author bigram similarity with an operator-configured weight.

import re
from collections import Counter

from bookmux.metadata.types import BookRecord

DEFAULT_TITLE_WEIGHT = 0.6

_WHITESPACE_RE = re.compile(r"\s+")


def _bigrams(text: str) -> Counter[str]:
    return Counter(text[i : i + 2] for i in range(len(text) - 1))


def string_similarity(a: str, b: str) -> float:
    """Sorensen-Dice coefficient over character bigrams, whitespace ignored.

    Identical strings score 1.0. Strings too short to form a bigram score 0.0
    unless identical. Comparison is case-sensitive; callers lowercase first.
    """
    first = _WHITESPACE_RE.sub("", a)
    second = _WHITESPACE_RE.sub("", b)

    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    first_bigrams = _bigrams(first)
    intersection = 0
    for bigram, count in _bigrams(second).items():
        intersection += min(count, first_bigrams.get(bigram, 0))

    return (2.0 * intersection) / (len(first) + len(second) - 2)


def score_snippet(
    record: BookRecord,
    query: str,
    author: str | None = None,
    title_weight: float = DEFAULT_TITLE_WEIGHT,
) -> float:
    """Score how well a snippet matches the query title and optional author.

    Title similarity alone when no author was requested or the snippet has
    none; otherwise title_weight * title + (1 - title_weight) * best author.
    Returns a float clamped to [0.0, 1.0].
    """
    cleaned_query = query.strip().lower()
    cleaned_author = author.strip().lower() if author else ""

    title_sim = string_similarity((record.title or "").lower(), cleaned_query)

    score = title_sim
    if cleaned_author and record.authors:
        author_sim = max(string_similarity(a.lower(), cleaned_author) for a in record.authors)
        score = title_weight * title_sim + (1.0 - title_weight) * author_sim

    return max(0.0, min(1.0, score))
