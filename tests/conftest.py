# ABOUTME: Shared pytest fixtures for bookmux tests.
# ABOUTME: Provides sample records and a config file path under tmp_path.

from pathlib import Path

import pytest

from bookmux.metadata.types import AUDIOBOOK, BOOK, BookRecord, SeriesEntry, SourceInfo


@pytest.fixture
def fixtures_dir() -> Path:
    """Path to the test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def foundation_book() -> BookRecord:
    """A fully populated ebook record for Foundation."""
    return BookRecord(
        id="OL46125W",
        title="Foundation",
        authors=["Isaac Asimov"],
        url="https://openlibrary.org/works/OL46125W",
        cover="https://covers.openlibrary.org/b/id/12345-L.jpg",
        type=BOOK,
        source=SourceInfo(id="openlibrary", description="Open Library"),
        description="The Galactic Empire is dying.",
        publisher="Gnome Press",
        published_year="1951",
        genres=["Science Fiction"],
        series=[SeriesEntry("Foundation", "1")],
        identifiers={"openlibrary": "/works/OL46125W", "isbn": "9780553293357"},
        languages=["eng"],
        full_fetched=True,
    )


@pytest.fixture
def foundation_audiobook() -> BookRecord:
    """An audiobook snippet for Foundation, not yet enriched."""
    return BookRecord(
        id="98765",
        title="Foundation",
        authors=["Isaac Asimov"],
        url="https://www.storytel.com/en/books/98765",
        type=AUDIOBOOK,
        source=SourceInfo(id="storytel", description="Storytel"),
        identifiers={"storytel": "98765"},
        languages=["en"],
    )


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """A config file location that does not exist yet."""
    return tmp_path / "bookmux" / "config.json"
