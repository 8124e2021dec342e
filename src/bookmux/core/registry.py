# ABOUTME: Immutable provider table built from config, swapped atomically on reload.
# ABOUTME: Requests take one snapshot (config + table) and never see a later reload.

import logging
from collections.abc import AsyncIterator, Callable, Iterable, Iterator, Mapping
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from types import MappingProxyType

from bookmux.config import AggregatorConfig, ProviderSettings
from bookmux.metadata.http import BookmuxHttpClient, HttpClient
from bookmux.metadata.openlibrary import OpenLibraryProvider
from bookmux.metadata.provider import MetadataProvider
from bookmux.metadata.storytel import StorytelProvider

logger = logging.getLogger(__name__)

ProviderFactory = Callable[[ProviderSettings, HttpClient], MetadataProvider]


def _openlibrary(settings: ProviderSettings, http: HttpClient) -> MetadataProvider:
    return OpenLibraryProvider(http, concurrency=settings.concurrency)


def _storytel(settings: ProviderSettings, http: HttpClient) -> MetadataProvider:
    return StorytelProvider(http, locale=settings.language, concurrency=settings.concurrency)


PROVIDER_FACTORIES: Mapping[str, ProviderFactory] = MappingProxyType(
    {
        "openlibrary": _openlibrary,
        "storytel": _storytel,
    }
)


@dataclass(frozen=True)
class ProviderEntry:
    """A loaded provider plus the settings it was built from."""

    name: str
    provider: MetadataProvider
    settings: ProviderSettings


@dataclass(frozen=True)
class ProviderTable:
    """Read-only mapping of provider id to entry, in config order."""

    entries: Mapping[str, ProviderEntry]

    def get(self, name: str) -> ProviderEntry | None:
        return self.entries.get(name)

    def __iter__(self) -> Iterator[ProviderEntry]:
        return iter(self.entries.values())

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def names(self) -> list[str]:
        return list(self.entries)


@dataclass(frozen=True)
class RegistrySnapshot:
    """The config and provider table a single request runs against.

    clients are the HTTP clients the table's providers were built with;
    they are closed once the snapshot is retired and no request holds it.
    """

    config: AggregatorConfig
    table: ProviderTable
    clients: tuple[HttpClient, ...] = field(default=(), compare=False, repr=False)


async def _close_clients(clients: Iterable[HttpClient]) -> None:
    for client in clients:
        if isinstance(client, BookmuxHttpClient):
            await client.aclose()


class ProviderRegistry:
    """Holds the current snapshot and rebuilds it when config changes.

    reload() builds a complete new table before publishing it with a single
    reference assignment, so readers see either the old snapshot or the new
    one, never a partial table. The superseded snapshot is retired; its HTTP
    clients are closed by close_retired() once no acquire() lease holds it.
    """

    def __init__(
        self,
        config: AggregatorConfig,
        *,
        factories: Mapping[str, ProviderFactory] = PROVIDER_FACTORIES,
        http_client_factory: Callable[[], HttpClient] = BookmuxHttpClient,
    ) -> None:
        self._factories = factories
        self._http_client_factory = http_client_factory
        self._retired: list[RegistrySnapshot] = []
        self._leases: dict[int, int] = {}
        self._snapshot = self._build_snapshot(config)

    def snapshot(self) -> RegistrySnapshot:
        return self._snapshot

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[RegistrySnapshot]:
        """Lease the current snapshot for the duration of one request."""
        snapshot = self._snapshot
        key = id(snapshot)
        self._leases[key] = self._leases.get(key, 0) + 1
        try:
            yield snapshot
        finally:
            self._leases[key] -= 1
            if not self._leases[key]:
                del self._leases[key]
            await self.close_retired()

    def reload(self, config: AggregatorConfig) -> RegistrySnapshot:
        """Build a table for the new config and publish it."""
        snapshot = self._build_snapshot(config)
        self._retired.append(self._snapshot)
        self._snapshot = snapshot
        logger.info("Provider table reloaded: %s", ", ".join(snapshot.table.names) or "(none)")
        return snapshot

    async def close_retired(self) -> int:
        """Close the HTTP clients of retired snapshots no request still holds.

        Returns the number of snapshots released.
        """
        idle = [s for s in self._retired if id(s) not in self._leases]
        self._retired = [s for s in self._retired if id(s) in self._leases]
        for snapshot in idle:
            await _close_clients(snapshot.clients)
        if idle:
            logger.debug("Released %d retired provider snapshot(s)", len(idle))
        return len(idle)

    async def aclose(self) -> None:
        """Close every HTTP client of the current and all retired snapshots."""
        snapshots, self._retired = [*self._retired, self._snapshot], []
        for snapshot in snapshots:
            await _close_clients(snapshot.clients)

    def _build_snapshot(self, config: AggregatorConfig) -> RegistrySnapshot:
        entries: dict[str, ProviderEntry] = {}
        clients: list[HttpClient] = []
        for name, settings in config.providers.items():
            if not settings.enabled:
                logger.info("Provider %s is disabled in config", name)
                continue

            factory = self._factories.get(name)
            if factory is None:
                logger.error("Could not load provider %s: no such provider", name)
                continue

            try:
                http_client = self._http_client_factory()
                clients.append(http_client)
                provider = factory(settings, http_client)
            except Exception as exc:
                logger.error("Could not load provider %s: %s", name, exc)
                continue

            entries[name] = ProviderEntry(name=name, provider=provider, settings=settings)
            logger.info("Loaded provider %s", name)

        return RegistrySnapshot(
            config=config,
            table=ProviderTable(entries=MappingProxyType(entries)),
            clients=tuple(clients),
        )
