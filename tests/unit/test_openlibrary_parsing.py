# ABOUTME: Unit tests for Open Library API response parsing functions.
# ABOUTME: Validates conversion from OL JSON structures to snippet records and enrichment fields.

from bookmux.metadata.openlibrary_parser import (
    OPENLIBRARY_SOURCE,
    build_cover_url,
    parse_edition_series,
    parse_search_results,
    parse_works_response,
    parse_works_subjects,
    select_best_edition,
)
from bookmux.metadata.types import BOOK, SeriesEntry
from tests.fixtures.openlibrary_responses import (
    EDITIONS_RESPONSE,
    EDITIONS_RESPONSE_EMPTY,
    EDITIONS_RESPONSE_NO_ISBN,
    SEARCH_RESPONSE,
    SEARCH_RESPONSE_EMPTY,
    SEARCH_RESPONSE_MINIMAL,
    SEARCH_RESPONSE_MISSING_KEY,
    WORKS_RESPONSE_DICT_DESCRIPTION,
    WORKS_RESPONSE_MANY_SUBJECTS,
    WORKS_RESPONSE_NO_DESCRIPTION,
    WORKS_RESPONSE_STR_DESCRIPTION,
)

_DESCRIPTION = "The Galactic Empire is dying, and only psychohistory can shorten the dark age."


class TestBuildCoverUrl:
    """Tests for build_cover_url."""

    def test_large_by_default(self) -> None:
        """Cover URLs default to the large size."""
        assert build_cover_url(240727) == "https://covers.openlibrary.org/b/id/240727-L.jpg"

    def test_custom_size(self) -> None:
        """Size can be overridden."""
        assert build_cover_url("42", size="M").endswith("/42-M.jpg")


class TestParseSearchResults:
    """Tests for parse_search_results."""

    def test_returns_one_record_per_doc(self) -> None:
        """Each doc with a work key becomes a snippet."""
        records = parse_search_results(SEARCH_RESPONSE)
        assert [r.title for r in records] == ["Foundation", "Foundation and Empire"]

    def test_snippet_fields(self) -> None:
        """Cheap search fields are mapped onto the record."""
        record = parse_search_results(SEARCH_RESPONSE)[0]
        assert record.id == "OL46125W"
        assert record.authors == ["Isaac Asimov"]
        assert record.url == "https://openlibrary.org/works/OL46125W"
        assert record.cover == "https://covers.openlibrary.org/b/id/240727-L.jpg"
        assert record.type == BOOK
        assert record.source == OPENLIBRARY_SOURCE
        assert record.published_year == "1951"
        assert record.languages == ["eng"]
        assert record.full_fetched is False

    def test_identifiers_hold_work_key_and_first_isbn(self) -> None:
        """The work key and first ISBN are kept as identifiers."""
        record = parse_search_results(SEARCH_RESPONSE)[0]
        assert record.identifiers == {"openlibrary": "/works/OL46125W", "isbn": "9780553293357"}

    def test_minimal_doc(self) -> None:
        """A doc with only key and title still parses."""
        record = parse_search_results(SEARCH_RESPONSE_MINIMAL)[0]
        assert record.title == "Minimal Book"
        assert record.authors == []
        assert record.cover is None
        assert record.published_year is None
        assert record.identifiers == {"openlibrary": "/works/OL999W"}

    def test_docs_without_key_skipped(self) -> None:
        """Docs lacking a work key are dropped."""
        records = parse_search_results(SEARCH_RESPONSE_MISSING_KEY)
        assert [r.id for r in records] == ["OL999W"]

    def test_empty(self) -> None:
        """An empty search yields no records."""
        assert parse_search_results(SEARCH_RESPONSE_EMPTY) == []
        assert parse_search_results({}) == []


class TestParseWorksResponse:
    """Tests for parse_works_response."""

    def test_string_description(self) -> None:
        """Description as plain string is returned."""
        assert parse_works_response(WORKS_RESPONSE_STR_DESCRIPTION) == _DESCRIPTION

    def test_dict_description(self) -> None:
        """Description as {type, value} dict extracts the value."""
        assert parse_works_response(WORKS_RESPONSE_DICT_DESCRIPTION) == _DESCRIPTION

    def test_missing_description(self) -> None:
        """Returns None when description is absent."""
        assert parse_works_response(WORKS_RESPONSE_NO_DESCRIPTION) is None


class TestParseWorksSubjects:
    """Tests for parse_works_subjects."""

    def test_blank_subjects_dropped(self) -> None:
        """Whitespace-only subjects are skipped."""
        assert parse_works_subjects(WORKS_RESPONSE_STR_DESCRIPTION) == [
            "Science fiction",
            "Galactic empires",
            "Psychohistory",
        ]

    def test_capped_at_ten(self) -> None:
        """At most ten subjects are kept."""
        assert len(parse_works_subjects(WORKS_RESPONSE_MANY_SUBJECTS)) == 10

    def test_missing_subjects(self) -> None:
        """No subjects key yields an empty list."""
        assert parse_works_subjects(WORKS_RESPONSE_NO_DESCRIPTION) == []


class TestParseEditionSeries:
    """Tests for parse_edition_series."""

    def test_name_and_number(self) -> None:
        """Common "name ; n" and "name #n" forms split into name and sequence."""
        assert parse_edition_series(["Foundation series ; 1", "Discworld #2"]) == [
            SeriesEntry("Foundation series", "1"),
            SeriesEntry("Discworld", "2"),
        ]

    def test_name_only(self) -> None:
        """A series without a number keeps its whole name."""
        assert parse_edition_series(["The Foundation Trilogy"]) == [
            SeriesEntry("The Foundation Trilogy")
        ]

    def test_blank_entries_skipped(self) -> None:
        """Empty strings are ignored."""
        assert parse_edition_series(["", "  "]) == []


class TestSelectBestEdition:
    """Tests for select_best_edition."""

    def test_prefers_physical_format(self) -> None:
        """Hardcover beats paperback, ebook, and audio editions."""
        best = select_best_edition(EDITIONS_RESPONSE["entries"])
        assert best == {
            "isbn": "0385177259",
            "publisher": "Doubleday",
            "publish_date": "1983",
            "series": [SeriesEntry("Foundation series", "1")],
        }

    def test_prefers_isbn13_within_format(self) -> None:
        """Among equal formats, an ISBN-13 edition wins."""
        entries = [
            {"isbn_10": ["0553293354"], "physical_format": "Paperback"},
            {"isbn_13": ["9780553293357"], "physical_format": "Paperback"},
        ]
        assert select_best_edition(entries)["isbn"] == "9780553293357"

    def test_edition_without_series(self) -> None:
        """Editions with no series yield an empty series list."""
        best = select_best_edition([{"isbn_13": ["9780553293357"]}])
        assert best["series"] == []

    def test_no_isbn_returns_none(self) -> None:
        """Editions without any ISBN are not candidates."""
        assert select_best_edition(EDITIONS_RESPONSE_NO_ISBN["entries"]) is None
        assert select_best_edition(EDITIONS_RESPONSE_EMPTY["entries"]) is None
