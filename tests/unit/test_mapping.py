# ABOUTME: Unit tests for converting candidates and responses to the JSON response shape.
# ABOUTME: Checks required keys, omission of empty fields, and merged provenance keys.

from bookmux.core.aggregator import ProviderDiagnostics, SearchResponse
from bookmux.core.mapping import candidate_to_response, diagnostics_to_dict, response_to_dict
from bookmux.metadata.candidate import MERGED_PROVIDER, Candidate, MergedCandidate, MergeSource
from bookmux.metadata.types import BookRecord, SeriesEntry


class TestCandidateToResponse:
    """Tests for candidate_to_response."""

    def test_full_record(self, foundation_book: BookRecord) -> None:
        """Populated fields are mapped to their camelCase response keys."""
        data = candidate_to_response(
            Candidate(record=foundation_book, provider="openlibrary", similarity=0.9, priority=2)
        )
        assert data["title"] == "Foundation"
        assert data["author"] == "Isaac Asimov"
        assert data["authors"] == ["Isaac Asimov"]
        assert data["type"] == "book"
        assert data["similarity"] == 0.9
        assert data["_provider"] == "openlibrary"
        assert data["_providerPriority"] == 2
        assert data["publishedYear"] == "1951"
        assert data["isbn"] == "9780553293357"
        assert data["language"] == "eng"
        assert data["series"] == [{"series": "Foundation", "sequence": "1"}]
        assert data["source"] == {"id": "openlibrary", "description": "Open Library"}
        assert data["identifiers"]["openlibrary"] == "/works/OL46125W"

    def test_empty_fields_omitted(self) -> None:
        """Unset optional fields do not appear; required keys always do."""
        data = candidate_to_response(
            Candidate(record=BookRecord(title="Bare"), provider="p", similarity=0.1)
        )
        assert data == {
            "title": "Bare",
            "authors": [],
            "type": "unknown",
            "similarity": 0.1,
            "_provider": "p",
            "_providerPriority": 0,
        }

    def test_series_without_sequence(self) -> None:
        """Series entries without a sequence omit the key."""
        record = BookRecord(title="x", series=[SeriesEntry("Discworld")])
        data = candidate_to_response(Candidate(record=record, provider="p", similarity=0.5))
        assert data["series"] == [{"series": "Discworld"}]

    def test_merged_candidate_carries_provenance(self) -> None:
        """Merged results add _mergedFrom and _mergedFieldSources."""
        merged = MergedCandidate(
            record=BookRecord(title="Foundation", narrator="Scott Brick"),
            provider=MERGED_PROVIDER,
            similarity=0.95,
            priority=1,
            merged_from=(MergeSource("a", "1"), MergeSource("b", "2")),
            field_sources={"title": "a", "narrator": "b", "genres": ["a", "b"]},
        )
        data = candidate_to_response(merged)
        assert data["_provider"] == "merged"
        assert data["_mergedFrom"] == [{"provider": "a", "id": "1"}, {"provider": "b", "id": "2"}]
        assert data["_mergedFieldSources"] == {
            "title": "a",
            "narrator": "b",
            "genres": ["a", "b"],
        }

    def test_merged_picks_reported_over_derived_values(self) -> None:
        """A merged result reports its picked isbn and language, not the derived ones."""
        merged = MergedCandidate(
            record=BookRecord(
                title="Foundation", identifiers={"isbn": "111"}, languages=["en", "sv"]
            ),
            provider=MERGED_PROVIDER,
            similarity=0.95,
            priority=1,
            merged_from=(MergeSource("a", "1"), MergeSource("b", "2")),
            picked={"isbn": "222", "language": "sv"},
        )
        data = candidate_to_response(merged)
        assert data["isbn"] == "222"
        assert data["identifiers"] == {"isbn": "111"}
        assert data["language"] == "sv"
        assert data["languages"] == ["en", "sv"]


class TestResponseToDict:
    """Tests for response_to_dict and diagnostics_to_dict."""

    def test_diagnostics_error_only_when_failed(self) -> None:
        """Successful providers have no error key."""
        ok = diagnostics_to_dict(ProviderDiagnostics("a", snippets=3, elapsed_ms=12.34))
        failed = diagnostics_to_dict(ProviderDiagnostics("b", error="timeout"))
        assert ok == {"provider": "a", "snippets": 3, "elapsedMs": 12.3}
        assert failed["error"] == "timeout"

    def test_full_response(self, foundation_book: BookRecord) -> None:
        """The response holds matches and provider diagnostics."""
        response = SearchResponse(
            matches=[Candidate(record=foundation_book, provider="openlibrary", similarity=1.0)],
            providers=[ProviderDiagnostics("openlibrary", snippets=1)],
        )
        data = response_to_dict(response)
        assert [m["title"] for m in data["matches"]] == ["Foundation"]
        assert data["providers"][0]["provider"] == "openlibrary"
