# ABOUTME: Open Library metadata provider implementation.
# ABOUTME: Searches openlibrary.org for snippets and enriches them from works and editions.

import logging
import re
from dataclasses import replace

from bookmux.metadata.http import HttpClient, MetadataFetchError
from bookmux.metadata.openlibrary_parser import (
    OL_BASE,
    parse_search_results,
    parse_works_response,
    parse_works_subjects,
    select_best_edition,
)
from bookmux.metadata.types import BookRecord

logger = logging.getLogger(__name__)

_SEARCH_LIMIT = 10
_DEFAULT_CONCURRENCY = 3

# Matches a colon followed by a space and remaining text (subtitle pattern).
_SUBTITLE_RE = re.compile(r"\s*:\s+.+$")
_YEAR_RE = re.compile(r"\b(\d{4})\b")


def _strip_subtitle(title: str) -> str | None:
    """Remove subtitle from a title string (text after ": ").

    Returns the stripped title, or None if no subtitle was found or
    stripping would produce an identical or empty string.
    """
    stripped = _SUBTITLE_RE.sub("", title).strip()
    if stripped and stripped != title.strip():
        return stripped
    return None


class OpenLibraryProvider:
    """Metadata provider backed by the Open Library API.

    search hits the search endpoint only; enrich follows up with the works
    endpoint (description, subjects) and the editions endpoint (ISBN,
    publisher). Uses dependency-injected HttpClient for testability.
    """

    supported_languages: tuple[str, ...] = ()

    def __init__(self, http_client: HttpClient, *, concurrency: int | None = None) -> None:
        self._http = http_client
        self._concurrency = concurrency or _DEFAULT_CONCURRENCY

    @property
    def name(self) -> str:
        return "openlibrary"

    @property
    def display_name(self) -> str:
        return "Open Library"

    @property
    def supports_enrichment(self) -> bool:
        return True

    @property
    def supports_batch_enrichment(self) -> bool:
        return True

    @property
    def concurrency(self) -> int | None:
        return self._concurrency

    async def search(
        self, query: str, author: str | None = None, language: str | None = None
    ) -> list[BookRecord]:
        """Search Open Library by title and optional author.

        If the initial search returns nothing and the title contains a
        subtitle (text after ": "), retries with the subtitle stripped.
        """
        records = await self._search_ol(query, author, language)
        if not records:
            stripped = _strip_subtitle(query)
            if stripped:
                records = await self._search_ol(stripped, author, language)
        return records

    async def _search_ol(
        self, title: str, author: str | None, language: str | None
    ) -> list[BookRecord]:
        params: dict[str, str] = {"title": title, "limit": str(_SEARCH_LIMIT)}
        if author:
            params["author"] = author
        if language:
            params["language"] = language

        try:
            data = await self._http.get(f"{OL_BASE}/search.json", params=params)
        except MetadataFetchError as exc:
            logger.warning("Search failed for title=%s author=%s: %s", title, author, exc)
            return []

        return parse_search_results(data)

    async def enrich(self, record: BookRecord) -> BookRecord:
        """Fetch works and edition data for a snippet.

        Works failures propagate (the record cannot be meaningfully
        enriched); a failed editions lookup only leaves ISBN and publisher
        as they were.
        """
        works_key = record.identifiers.get("openlibrary")
        if not works_key:
            return replace(record, full_fetched=True)

        works_data = await self._http.get(f"{OL_BASE}{works_key}.json")
        description = parse_works_response(works_data)
        genres = parse_works_subjects(works_data)

        identifiers = dict(record.identifiers)
        publisher = record.publisher
        published_date = record.published_date
        try:
            editions_data = await self._http.get(f"{OL_BASE}{works_key}/editions.json")
        except MetadataFetchError as exc:
            logger.warning("Editions lookup failed for %s: %s", works_key, exc)
            editions_data = {}

        series = record.series
        best = select_best_edition(editions_data.get("entries", []))
        if best:
            if best["isbn"]:
                identifiers["isbn"] = best["isbn"]
            publisher = publisher or best["publisher"]
            published_date = published_date or best["publish_date"]
            series = series or best["series"]

        published_year = record.published_year
        if not published_year and published_date:
            match = _YEAR_RE.search(published_date)
            published_year = match.group(1) if match else None

        return replace(
            record,
            description=description or record.description,
            genres=genres or record.genres,
            identifiers=identifiers,
            publisher=publisher,
            published_date=published_date,
            published_year=published_year,
            series=series,
            full_fetched=True,
        )
