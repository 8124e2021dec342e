# ABOUTME: Core record structures shared by providers, the aggregation pipeline, and the CLI.
# ABOUTME: BookRecord is the interchange format between provider search, enrichment, and merge.

import re
from dataclasses import dataclass, field
from typing import Any

BOOK = "book"
AUDIOBOOK = "audiobook"
UNKNOWN = "unknown"

_AUTHOR_SPLIT_RE = re.compile(r"\s*(?:,|;| and )\s*")


@dataclass(frozen=True)
class SourceInfo:
    """Where a record came from: provider id, display name, and site link."""

    id: str
    description: str
    link: str | None = None


@dataclass(frozen=True)
class SeriesEntry:
    """One series membership. Sequence is a string like "3" or "2.5", or None."""

    series: str
    sequence: str | None = None


@dataclass
class BookRecord:
    """Metadata for a single catalog hit.

    Starts life as a snippet (only the cheap search fields filled in) and
    becomes a full record once a provider's enrich call has populated the
    remaining fields. Everything except title is optional.
    """

    title: str
    id: str = ""
    authors: list[str] = field(default_factory=list)
    url: str | None = None
    cover: str | None = None
    rating: float | None = None
    type: str = UNKNOWN
    source: SourceInfo | None = None
    subtitle: str | None = None
    narrator: str | None = None
    description: str | None = None
    publisher: str | None = None
    published_year: str | None = None
    published_date: str | None = None
    genres: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    series: list[SeriesEntry] = field(default_factory=list)
    identifiers: dict[str, str] = field(default_factory=dict)
    languages: list[str] = field(default_factory=list)
    duration: int | None = None
    full_fetched: bool = False

    @property
    def author(self) -> str:
        """Convenience property: joined author string for display."""
        return ", ".join(self.authors) if self.authors else ""

    @property
    def is_audiobook(self) -> bool:
        return self.type == AUDIOBOOK

    @property
    def isbn(self) -> str | None:
        return self.identifiers.get("isbn") or None

    @property
    def asin(self) -> str | None:
        return self.identifiers.get("asin") or None

    @property
    def language(self) -> str | None:
        return self.languages[0] if self.languages else None


def split_authors(value: Any) -> list[str]:
    """Normalize an authors value into a list of trimmed, non-empty names.

    Accepts a list (entries are stringified and trimmed) or a joined string
    such as "Terry Pratchett and Neil Gaiman", which is split on commas,
    semicolons, and " and ". Anything else yields an empty list.
    """
    if isinstance(value, (list, tuple)):
        names = [str(a).strip() for a in value if a is not None]
        return [n for n in names if n]
    if isinstance(value, str):
        return [part.strip() for part in _AUTHOR_SPLIT_RE.split(value) if part.strip()]
    return []


def _coerce_sequence(value: Any) -> str | None:
    if value is None or value == "":
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip() or None


def coerce_series(value: Any, sequence: Any = None) -> list[SeriesEntry]:
    """Normalize the various series representations providers return.

    Handles the legacy bare-string form ("Foundation") with an optional
    separate sequence, lists of strings, lists of {"series", "sequence"}
    dicts, and SeriesEntry instances. Empty names are dropped.
    """
    if not value:
        return []
    if isinstance(value, str):
        name = value.strip()
        return [SeriesEntry(name, _coerce_sequence(sequence))] if name else []
    if isinstance(value, SeriesEntry):
        return [value]

    entries: list[SeriesEntry] = []
    if isinstance(value, (list, tuple)):
        for item in value:
            if isinstance(item, SeriesEntry):
                entries.append(item)
            elif isinstance(item, dict):
                name = str(item.get("series") or item.get("name") or "").strip()
                if name:
                    entries.append(SeriesEntry(name, _coerce_sequence(item.get("sequence"))))
            elif isinstance(item, str) and item.strip():
                entries.append(SeriesEntry(item.strip(), _coerce_sequence(sequence)))
    return entries


def has_value(value: Any) -> bool:
    """Whether a field value counts as present: not None, not "", not an empty container."""
    if value is None:
        return False
    if isinstance(value, (str, list, tuple, dict, set)):
        return len(value) > 0
    return True
