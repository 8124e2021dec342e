# ABOUTME: Storytel metadata provider implementation.
# ABOUTME: Searches the Storytel API for snippets and enriches them from book-info payloads.

import logging

from bookmux.metadata.http import HttpClient, MetadataFetchError
from bookmux.metadata.storytel_parser import (
    STORYTEL_BASE,
    parse_book_info,
    parse_search_results,
)
from bookmux.metadata.types import BookRecord

logger = logging.getLogger(__name__)

_SEARCH_LIMIT = 5
_DEFAULT_CONCURRENCY = 5
_DEFAULT_LOCALE = "en"


class StorytelProvider:
    """Metadata provider backed by the Storytel web API.

    Storytel serves many regional catalogs; the request locale picks one.
    The language passed to search wins over the configured default locale.
    """

    supported_languages: tuple[str, ...] = (
        "ar", "bg", "da", "de", "en", "es", "fi", "fr", "he", "hi",
        "id", "is", "nl", "pl", "pt", "sv", "th", "tr",
    )  # fmt: skip

    def __init__(
        self,
        http_client: HttpClient,
        *,
        locale: str | None = None,
        concurrency: int | None = None,
    ) -> None:
        self._http = http_client
        self._locale = locale or _DEFAULT_LOCALE
        self._concurrency = concurrency or _DEFAULT_CONCURRENCY

    @property
    def name(self) -> str:
        return "storytel"

    @property
    def display_name(self) -> str:
        return "Storytel"

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
        """Search Storytel; anything after a colon in the query is ignored."""
        locale = language or self._locale
        clean_query = query.split(":")[0].strip()
        params = {"request_locale": locale, "q": clean_query}

        try:
            data = await self._http.get(f"{STORYTEL_BASE}/api/search.action", params=params)
        except MetadataFetchError as exc:
            logger.warning("Search failed for query=%s locale=%s: %s", clean_query, locale, exc)
            return []

        records = parse_search_results(data or {}, locale)[:_SEARCH_LIMIT]
        logger.debug("Storytel returned %d books for %r", len(records), clean_query)
        return records

    async def enrich(self, record: BookRecord) -> BookRecord:
        locale = record.language or self._locale
        data = await self._http.get(
            f"{STORYTEL_BASE}/api/getBookInfoForContent.action",
            params={"bookId": record.id, "request_locale": locale},
        )
        enriched = parse_book_info(data or {}, record, locale)
        if enriched is None:
            raise MetadataFetchError(f"No audio or ebook edition for Storytel book {record.id}")
        return enriched
