# ABOUTME: Parsing functions for Storytel API JSON responses.
# ABOUTME: Converts search hits into snippets and book-info payloads into enrichment fields.

import re
from typing import Any

from bookmux.metadata.types import (
    AUDIOBOOK,
    BOOK,
    BookRecord,
    SeriesEntry,
    SourceInfo,
    split_authors,
)

STORYTEL_BASE = "https://www.storytel.com"

STORYTEL_SOURCE = SourceInfo(id="storytel", description="Storytel", link=STORYTEL_BASE)

# Episode/volume/part markers Storytel prepends to titles, e.g. "Saga, Part 3: Title".
_VOLUME_PREFIX_RE = re.compile(
    r"^.*?,\s*(?:Episode|Part|Volume|Book|Deel|Aflevering|Del|Bind|Osa|Tom|Tome|Teil|Band|"
    r"Folge|Episodio|Volumen|Parte|Avsnitt|Odcinek|Część)\s*\d+:\s*",
    re.IGNORECASE,
)
_ABRIDGED_SUFFIX_RE = re.compile(
    r"\s*\((?:Ungekürzt|Gekürzt|Unabridged|Abridged)\)\s*$", re.IGNORECASE
)
_SUBTITLE_SPLIT_RE = re.compile(r"[:\-]")


def _text(value: Any) -> str:
    """Stringify and trim, mapping None to an empty string."""
    if value is None:
        return ""
    return str(value).strip()


def upgrade_cover_url(path: str | None) -> str | None:
    """Turn a relative 320px cover path into an absolute 640px URL."""
    if not path:
        return None
    return f"{STORYTEL_BASE}{path.replace('320x320', '640x640')}"


def split_genre(genre: str) -> list[str]:
    """Split a category title like "Crime / Thriller" into separate genres."""
    if not genre:
        return []
    parts = [g.strip() for g in re.split(r"[/,]", genre)]
    return ["Science-Fiction" if g == "Sci-Fi" else g for g in parts if g]


def clean_title(name: str, series_name: str | None = None) -> tuple[str, str | None]:
    """Strip volume markers and series names from a title, splitting off a subtitle.

    Returns (title, subtitle); subtitle is None when nothing was split off.
    """
    title = _VOLUME_PREFIX_RE.sub("", name)
    title = _ABRIDGED_SUFFIX_RE.sub("", title)

    if series_name and series_name in title:
        before = re.match(rf"^(.+?)[-,]\s*{re.escape(series_name)}", title, re.IGNORECASE)
        if before:
            title = before.group(1).strip()
        title = title.replace(series_name, "")

    subtitle = None
    if ":" in title or "-" in title:
        parts = _SUBTITLE_SPLIT_RE.split(title)
        if len(parts) > 1 and len(parts[1].strip()) >= 3:
            title = parts[0].strip()
            subtitle = parts[1].strip()

    return title.strip(), subtitle


def parse_search_results(data: dict[str, Any], locale: str) -> list[BookRecord]:
    """Parse a Storytel search response into snippet records.

    Hits without a book id are skipped. Type is audiobook when an audio
    edition exists, book when only an ebook does.
    """
    results: list[BookRecord] = []
    for hit in data.get("books", []) or []:
        book = hit.get("book") or {}
        book_id = book.get("id")
        if not book_id:
            continue

        record_type = AUDIOBOOK if hit.get("abook") else BOOK
        title, subtitle = clean_title(_text(book.get("name")))
        results.append(
            BookRecord(
                id=str(book_id),
                title=title,
                subtitle=subtitle,
                authors=split_authors(_text(book.get("authorsAsString"))),
                url=f"{STORYTEL_BASE}/{locale}/books/{book_id}",
                cover=upgrade_cover_url(book.get("largeCover")),
                type=record_type,
                source=STORYTEL_SOURCE,
                identifiers={"storytel": str(book_id)},
                languages=[locale],
            )
        )
    return results


def parse_book_info(data: dict[str, Any], record: BookRecord, locale: str) -> BookRecord | None:
    """Merge a getBookInfoForContent payload into a snippet record.

    Returns None when the payload has neither an audio nor an ebook edition.
    Audio edition fields win over ebook fields where both exist.
    """
    slb = data.get("slb") or {}
    book = slb.get("book")
    abook = slb.get("abook")
    ebook = slb.get("ebook")
    if not book or (not abook and not ebook):
        return None

    edition = abook or ebook

    series: list[SeriesEntry] = []
    series_name = None
    book_series = book.get("series") or []
    if book_series and book.get("seriesOrder"):
        series_name = _text(book_series[0].get("name"))
        series = [SeriesEntry(series_name, _text(book.get("seriesOrder")))]

    title, subtitle = clean_title(_text(book.get("name")), series_name)
    if series_name and not subtitle:
        subtitle = f"{series_name} {book.get('seriesOrder')}"

    category = book.get("category") or {}
    language = _text((book.get("language") or {}).get("isoValue")) or locale
    length_ms = abook.get("length") if abook else None
    release = _text(edition.get("releaseDateFormat"))
    isbn = _text(edition.get("isbn"))

    identifiers = dict(record.identifiers)
    if isbn:
        identifiers["isbn"] = isbn

    return BookRecord(
        id=record.id,
        title=title or record.title,
        subtitle=subtitle,
        authors=split_authors(_text(book.get("authorsAsString"))) or record.authors,
        url=record.url,
        cover=upgrade_cover_url(book.get("largeCover")) or record.cover,
        rating=record.rating,
        type=AUDIOBOOK if abook else BOOK,
        source=record.source,
        narrator=(_text(abook.get("narratorAsString")) or None) if abook else None,
        description=_text(edition.get("description")) or None,
        publisher=_text((edition.get("publisher") or {}).get("name")) or None,
        published_year=release[:4] or None,
        published_date=release or None,
        genres=split_genre(_text(category.get("title"))),
        series=series,
        identifiers=identifiers,
        languages=[language] if language else [],
        duration=length_ms // 60000 if length_ms else None,
        full_fetched=True,
    )
