# ABOUTME: Converts candidates and search responses into the JSON shape catalog consumers expect.
# ABOUTME: Omits empty optional fields; merged results carry provenance keys.

from typing import Any

from bookmux.core.aggregator import ProviderDiagnostics, SearchResponse
from bookmux.metadata.candidate import Candidate, MergedCandidate
from bookmux.metadata.types import SourceInfo, has_value


def source_to_dict(source: SourceInfo) -> dict[str, Any]:
    data: dict[str, Any] = {"id": source.id, "description": source.description}
    if source.link:
        data["link"] = source.link
    return data


def candidate_to_response(candidate: Candidate) -> dict[str, Any]:
    """Convert a candidate to a response dict.

    Always includes title, authors, type, similarity, and provider tags.
    author is the ", "-joined authors. Other fields appear only when set.
    """
    record = candidate.record
    optional: dict[str, Any] = {
        "id": record.id,
        "subtitle": record.subtitle,
        "author": record.author,
        "narrator": record.narrator,
        "description": record.description,
        "cover": record.cover,
        "url": record.url,
        "source": source_to_dict(record.source) if record.source else None,
        "languages": list(record.languages),
        "language": record.language,
        "publisher": record.publisher,
        "publishedYear": record.published_year,
        "rating": record.rating,
        "series": [
            {"series": s.series, "sequence": s.sequence} if s.sequence else {"series": s.series}
            for s in record.series
        ],
        "genres": list(record.genres),
        "tags": list(record.tags),
        "identifiers": dict(record.identifiers),
        "isbn": record.isbn,
        "asin": record.asin,
        "duration": record.duration,
    }
    if isinstance(candidate, MergedCandidate):
        optional.update(candidate.picked)

    data: dict[str, Any] = {
        "title": record.title,
        "authors": list(record.authors),
        "type": record.type,
        "similarity": candidate.similarity,
        "_provider": candidate.provider,
        "_providerPriority": candidate.priority,
    }
    data.update({key: value for key, value in optional.items() if has_value(value)})

    if isinstance(candidate, MergedCandidate):
        data["_mergedFrom"] = [{"provider": s.provider, "id": s.id} for s in candidate.merged_from]
        data["_mergedFieldSources"] = {
            key: list(value) if isinstance(value, list) else value
            for key, value in candidate.field_sources.items()
        }

    return data


def diagnostics_to_dict(diagnostics: ProviderDiagnostics) -> dict[str, Any]:
    data: dict[str, Any] = {
        "provider": diagnostics.provider,
        "snippets": diagnostics.snippets,
        "elapsedMs": round(diagnostics.elapsed_ms, 1),
    }
    if diagnostics.error is not None:
        data["error"] = diagnostics.error
    return data


def response_to_dict(response: SearchResponse) -> dict[str, Any]:
    """Full response: {"matches": [...], "providers": [...]}."""
    return {
        "matches": [candidate_to_response(c) for c in response.matches],
        "providers": [diagnostics_to_dict(d) for d in response.providers],
    }
