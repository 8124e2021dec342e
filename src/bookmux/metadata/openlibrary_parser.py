# ABOUTME: Parsing functions for Open Library API JSON responses.
# ABOUTME: Converts OL search docs into snippet BookRecords and extracts enrichment fields.

import re
from typing import Any

from bookmux.metadata.types import BOOK, BookRecord, SeriesEntry, SourceInfo, split_authors

OL_BASE = "https://openlibrary.org"
_COVERS_BASE_URL = "https://covers.openlibrary.org/b/id"
_MAX_GENRES = 10

# "Name ; 3", "Name, no. 3", "Name #3", "Name, book 3"
_SERIES_RE = re.compile(
    r"^(.+?)\s*(?:;|,|#)\s*(?:(?:book|vol\.?|volume|no\.?)\s*)?(\d+(?:\.\d+)?)$",
    re.IGNORECASE,
)

OPENLIBRARY_SOURCE = SourceInfo(id="openlibrary", description="Open Library", link=OL_BASE)


def build_cover_url(cover_id: int | str, size: str = "L") -> str:
    """Build an Open Library cover image URL for a cover id.

    Args:
        cover_id: The numeric cover id from a search doc or edition.
        size: Image size: "S" (small), "M" (medium), or "L" (large).
    """
    return f"{_COVERS_BASE_URL}/{cover_id}-{size}.jpg"


def parse_search_results(data: dict[str, Any]) -> list[BookRecord]:
    """Parse an Open Library Search API response into snippet records.

    Each doc contributes title, authors, work key (as id), cover, and first
    publish year. Docs without a work key are skipped since they cannot be
    enriched or linked.
    """
    docs = data.get("docs", [])
    results: list[BookRecord] = []

    for doc in docs:
        work_key = doc.get("key")
        if not work_key:
            continue

        cover_id = doc.get("cover_i")
        year = doc.get("first_publish_year")
        isbns = doc.get("isbn", [])

        identifiers = {"openlibrary": work_key}
        if isbns:
            identifiers["isbn"] = isbns[0]

        results.append(
            BookRecord(
                id=work_key.rsplit("/", 1)[-1],
                title=doc.get("title", "Unknown"),
                authors=split_authors(doc.get("author_name", [])),
                url=f"{OL_BASE}{work_key}",
                cover=build_cover_url(cover_id) if cover_id else None,
                type=BOOK,
                source=OPENLIBRARY_SOURCE,
                published_year=str(year) if year else None,
                languages=list(doc.get("language", [])),
                identifiers=identifiers,
            )
        )

    return results


def parse_works_response(data: dict[str, Any]) -> str | None:
    """Extract the description from an Open Library Works response.

    Handles the OL quirk where description can be either a plain string
    or a dict with {"type": ..., "value": "actual text"}.
    """
    desc = data.get("description")
    if desc is None:
        return None
    if isinstance(desc, str):
        return desc
    if isinstance(desc, dict):
        return desc.get("value")
    return None


def parse_works_subjects(data: dict[str, Any]) -> list[str]:
    """Extract up to ten subjects from a Works response for use as genres."""
    subjects = data.get("subjects", [])
    return [s.strip() for s in subjects if isinstance(s, str) and s.strip()][:_MAX_GENRES]


# Format preference for edition selection (lower = better).
_FORMAT_RANK: dict[str, int] = {
    "hardcover": 0,
    "paperback": 1,
    "trade paperback": 1,
    "mass market paperback": 1,
    "electronic resource": 2,
    "ebook": 2,
    "audio cd": 3,
    "audio cassette": 3,
}
_FORMAT_RANK_DEFAULT = 2


def parse_edition_series(values: list[str]) -> list[SeriesEntry]:
    """Parse OL edition series strings such as "Foundation series ; 1" or "Discworld #2"."""
    entries: list[SeriesEntry] = []
    for value in values:
        if not isinstance(value, str) or not value.strip():
            continue
        match = _SERIES_RE.match(value.strip())
        if match:
            entries.append(SeriesEntry(match.group(1).strip(), match.group(2)))
        else:
            entries.append(SeriesEntry(value.strip()))
    return entries


def select_best_edition(entries: list[dict[str, Any]]) -> dict[str, Any] | None:
    """Pick the best edition from a list of Open Library edition entries.

    Prefers physical formats with ISBN-13s. Returns a dict with 'isbn',
    'publisher', 'publish_date', and 'series' keys, or None if no edition
    has an ISBN.
    """
    scored: list[tuple[int, int, dict[str, Any]]] = []

    for entry in entries:
        isbn_13 = entry.get("isbn_13", [])
        isbn_10 = entry.get("isbn_10", [])
        isbn = isbn_13[0] if isbn_13 else (isbn_10[0] if isbn_10 else None)
        if not isbn:
            continue

        publishers = entry.get("publishers", [])
        fmt = (entry.get("physical_format") or "").lower()
        format_rank = _FORMAT_RANK.get(fmt, _FORMAT_RANK_DEFAULT)
        isbn_rank = 0 if isbn_13 else 1

        scored.append(
            (
                format_rank,
                isbn_rank,
                {
                    "isbn": isbn,
                    "publisher": publishers[0] if publishers else None,
                    "publish_date": entry.get("publish_date"),
                    "series": parse_edition_series(entry.get("series", [])),
                },
            )
        )

    if not scored:
        return None

    scored.sort(key=lambda item: (item[0], item[1]))
    return scored[0][2]
