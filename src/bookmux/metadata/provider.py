# ABOUTME: MetadataProvider protocol defining the contract for catalog sources.
# ABOUTME: Providers expose cheap search, single-item enrich, and declared capabilities.

from typing import Protocol, runtime_checkable

from bookmux.metadata.types import BookRecord


@runtime_checkable
class MetadataProvider(Protocol):
    """Protocol for catalog search services.

    search must stay cheap (no detail-page fetches) and may return an empty
    list. enrich fetches full metadata for one snippet and raises on failure
    so the enrichment pool can isolate it.

    Capabilities are declared, not sniffed: supports_enrichment says whether
    enrich does anything beyond returning its input, and
    supports_batch_enrichment whether enrich may be called concurrently
    (bounded by concurrency). Without batch support, the pipeline enriches
    sequentially.
    """

    @property
    def name(self) -> str: ...

    @property
    def display_name(self) -> str: ...

    @property
    def supports_enrichment(self) -> bool: ...

    @property
    def supports_batch_enrichment(self) -> bool: ...

    @property
    def concurrency(self) -> int | None: ...

    @property
    def supported_languages(self) -> tuple[str, ...]: ...

    async def search(
        self, query: str, author: str | None = None, language: str | None = None
    ) -> list[BookRecord]: ...

    async def enrich(self, record: BookRecord) -> BookRecord: ...
