# ABOUTME: Builds one synthetic best-of-breed result from results tied at the top of the ranking.
# ABOUTME: Every field is resolved preferred-provider-first, then in tie-group resolution order.

import logging
from collections.abc import Callable, Sequence
from typing import Any

from bookmux.config import GlobalSettings
from bookmux.metadata.candidate import MERGED_PROVIDER, Candidate, MergedCandidate, MergeSource
from bookmux.metadata.types import (
    AUDIOBOOK,
    BOOK,
    UNKNOWN,
    BookRecord,
    SeriesEntry,
    SourceInfo,
    has_value,
)

logger = logging.getLogger(__name__)

EPSILON = 1e-6

MERGED_SOURCE = SourceInfo(id=MERGED_PROVIDER, description="Merged result")

FieldSource = str | list[str]
Getter = Callable[[BookRecord], Any]


def _published_year(record: BookRecord) -> str | None:
    if record.published_year:
        return record.published_year
    date = record.published_date or ""
    year = date[:4]
    return year if len(year) == 4 and year.isdigit() else None


# Single-valued output fields, keyed by their public (mergePreferences) name.
SINGLE_VALUED_FIELDS: dict[str, Getter] = {
    "title": lambda r: r.title,
    "subtitle": lambda r: r.subtitle,
    "authors": lambda r: r.authors,
    "narrator": lambda r: r.narrator,
    "description": lambda r: r.description,
    "cover": lambda r: r.cover,
    "publisher": lambda r: r.publisher,
    "publishedYear": _published_year,
    "url": lambda r: r.url,
    "id": lambda r: r.id,
    "rating": lambda r: r.rating,
    "type": lambda r: r.type if r.type != UNKNOWN else None,
    "duration": lambda r: r.duration,
    "language": lambda r: r.language,
    "isbn": lambda r: r.isbn,
    "asin": lambda r: r.asin,
    "source": lambda r: r.source,
}

# Single-valued fields BookRecord derives from identifiers or languages.
_DERIVED_FIELDS = ("isbn", "asin", "language")

# Fields counted when ordering a tie group by metadata richness.
_RICHNESS_FIELDS: tuple[Getter, ...] = (
    lambda r: r.title,
    lambda r: r.authors,
    lambda r: r.narrator,
    lambda r: r.description,
    lambda r: r.cover,
    lambda r: r.type if r.type != UNKNOWN else None,
    lambda r: r.url,
    lambda r: r.id,
    lambda r: r.languages,
    lambda r: r.publisher,
    lambda r: r.published_date or r.published_year,
    lambda r: r.series,
    lambda r: r.genres,
    lambda r: r.tags,
    lambda r: r.identifiers,
)

# Fields the top organic result must already have for a merge to be redundant.
_REDUNDANCY_FIELDS = (
    "narrator",
    "description",
    "cover",
    "languages",
    "identifiers",
    "genres",
    "tags",
)


def count_non_empty(record: BookRecord) -> int:
    """Number of populated metadata fields, used to break priority ties in the group."""
    return sum(1 for getter in _RICHNESS_FIELDS if has_value(getter(record)))


def find_tie_group(ranked: Sequence[Candidate]) -> list[Candidate]:
    """All results within EPSILON of the top similarity, in ranked order."""
    if not ranked:
        return []
    top = ranked[0].similarity
    return [c for c in ranked if abs(c.similarity - top) <= EPSILON]


def resolution_order(group: Sequence[Candidate]) -> list[Candidate]:
    """Order a tie group for field picking: priority desc, then richness desc (stable)."""
    return sorted(group, key=lambda c: (-c.priority, -count_non_empty(c.record)))


def pick_field(
    group: Sequence[Candidate], getter: Getter, preferred: str | None
) -> tuple[Any, Candidate | None]:
    """Resolve one field: the preferred provider's value if it has one, else the first non-empty.

    Returns (value, contributing candidate), or (None, None) if no member has a value.
    """
    if preferred:
        for candidate in group:
            if candidate.provider == preferred:
                value = getter(candidate.record)
                if has_value(value):
                    return value, candidate
    for candidate in group:
        value = getter(candidate.record)
        if has_value(value):
            return value, candidate
    return None, None


def _normalize_tag(value: str) -> str:
    return str(value).strip().lower()


def pick_list_field(
    group: Sequence[Candidate], field: str, preferred: str | None
) -> tuple[list[str], FieldSource | None]:
    """Resolve genres or tags.

    A preferred provider's non-empty list is used verbatim. Otherwise the
    lists of all members are unioned after trimming and case-folding.
    """
    if preferred:
        for candidate in group:
            values = getattr(candidate.record, field)
            if candidate.provider == preferred and values:
                return list(values), preferred

    union: list[str] = []
    seen: set[str] = set()
    contributors: list[str] = []
    for candidate in group:
        values = getattr(candidate.record, field)
        if values and candidate.provider not in contributors:
            contributors.append(candidate.provider)
        for value in values:
            normalized = _normalize_tag(value)
            if normalized and normalized not in seen:
                seen.add(normalized)
                union.append(normalized)
    return union, (contributors or None)


def pick_series(
    group: Sequence[Candidate], preferred: str | None
) -> tuple[list[SeriesEntry], str | None]:
    """Resolve the canonical series entry; its sequence comes from the same contributor."""
    value, contributor = pick_field(group, lambda r: r.series, preferred)
    if contributor is None:
        return [], None
    return [value[0]], contributor.provider


def merge_identifiers(group: Sequence[Candidate]) -> tuple[dict[str, str], list[str]]:
    """Key-by-key merge: the first non-empty value per key in resolution order wins."""
    identifiers: dict[str, str] = {}
    contributors: list[str] = []
    for candidate in group:
        for key, value in candidate.record.identifiers.items():
            if value and key not in identifiers:
                identifiers[key] = value
                if candidate.provider not in contributors:
                    contributors.append(candidate.provider)
    return identifiers, contributors


def union_languages(group: Sequence[Candidate]) -> tuple[list[str], list[str]]:
    """Union of every member's languages, exact-match de-duplication."""
    languages: list[str] = []
    contributors: list[str] = []
    for candidate in group:
        for language in candidate.record.languages:
            if language not in languages:
                languages.append(language)
                if candidate.provider not in contributors:
                    contributors.append(candidate.provider)
    return languages, contributors


def build_merged(
    tie_group: Sequence[Candidate], preferences: dict[str, str]
) -> MergedCandidate:
    """Synthesize a merged candidate from a tie group of two or more results.

    Raises:
        ValueError: If the group does not hold two distinct (provider, id) pairs.
    """
    ordered = resolution_order(tie_group)
    values: dict[str, Any] = {}
    sources: dict[str, FieldSource] = {}

    for name, getter in SINGLE_VALUED_FIELDS.items():
        value, contributor = pick_field(ordered, getter, preferences.get(name))
        if contributor is not None:
            values[name] = value
            sources[name] = contributor.provider

    year_source = next(
        (c for c in ordered if c.provider == sources.get("publishedYear")), None
    )
    published_date = year_source.record.published_date if year_source else None

    genres, genre_source = pick_list_field(ordered, "genres", preferences.get("genres"))
    tags, tag_source = pick_list_field(ordered, "tags", preferences.get("tags"))
    if genre_source:
        sources["genres"] = genre_source
    if tag_source:
        sources["tags"] = tag_source

    series, series_source = pick_series(ordered, preferences.get("series"))
    if series_source:
        sources["series"] = series_source

    identifiers, id_sources = merge_identifiers(ordered)
    if id_sources:
        sources["identifiers"] = id_sources

    languages, language_sources = union_languages(ordered)
    if language_sources:
        sources["languages"] = language_sources

    picked = {key: values[key] for key in _DERIVED_FIELDS if key in values}

    record_type = values.get("type") or (
        AUDIOBOOK if any(c.record.is_audiobook for c in tie_group) else BOOK
    )

    record = BookRecord(
        id=values.get("id", ""),
        title=values.get("title", ""),
        authors=list(values.get("authors", [])),
        url=values.get("url"),
        cover=values.get("cover"),
        rating=values.get("rating"),
        type=record_type,
        source=values.get("source") or MERGED_SOURCE,
        subtitle=values.get("subtitle"),
        narrator=values.get("narrator"),
        description=values.get("description"),
        publisher=values.get("publisher"),
        published_year=values.get("publishedYear"),
        published_date=published_date,
        genres=genres,
        tags=tags,
        series=series,
        identifiers=identifiers,
        languages=languages,
        duration=values.get("duration"),
        full_fetched=True,
    )

    return MergedCandidate(
        record=record,
        provider=MERGED_PROVIDER,
        similarity=tie_group[0].similarity,
        priority=max(c.priority for c in tie_group) + 1,
        merged_from=tuple(MergeSource(c.provider, c.record.id or None) for c in tie_group),
        field_sources=sources,
        picked=picked,
    )


def is_redundant(top: Candidate, merged: MergedCandidate) -> bool:
    """Whether the top organic result already carries everything the merge would add.

    True when titles and ordered authors match and, for every redundancy
    field the merged record has, the top result has a non-empty value too.
    """
    if top.record.title != merged.record.title or top.record.authors != merged.record.authors:
        return False
    for name in _REDUNDANCY_FIELDS:
        if has_value(getattr(merged.record, name)) and not has_value(getattr(top.record, name)):
            return False
    return True


def maybe_merge(ranked: Sequence[Candidate], settings: GlobalSettings) -> list[Candidate]:
    """Prepend a merged result when two or more results tie at the top.

    Identity when merging is disabled, nothing ties, or the merged record
    would be redundant. Never raises: any failure is logged and the ranked
    results are returned unmerged.
    """
    results = list(ranked)
    if not settings.merge_best_results or len(results) < 2:
        return results

    try:
        tie_group = find_tie_group(results)
        if len(tie_group) < 2:
            return results

        merged = build_merged(tie_group, settings.merge_preferences)

        if settings.merge_debug:
            logger.debug(
                "Merge tie group: %s",
                [
                    (c.provider, c.priority, count_non_empty(c.record))
                    for c in resolution_order(tie_group)
                ],
            )
            logger.debug("Merged record: %r", merged)

        providers = ",".join(dict.fromkeys(c.provider for c in tie_group))
        logger.info("Merged from providers: %s fieldSources=%s", providers, merged.field_sources)

        if is_redundant(results[0], merged):
            logger.info("Merged result adds nothing over the top result; not inserted")
            return results

        return [merged, *results]
    except Exception:
        logger.exception("Error during mergeBestResults; returning unmerged results")
        return results
