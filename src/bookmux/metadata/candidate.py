# ABOUTME: Candidate wraps a BookRecord with provider tag, priority, and similarity score.
# ABOUTME: MergedCandidate is the synthetic best-of-breed result built from a tie group.

from dataclasses import dataclass, field

from bookmux.metadata.types import BookRecord

MERGED_PROVIDER = "merged"


@dataclass(frozen=True)
class Candidate:
    """A provider search hit tagged for the aggregation pipeline.

    Frozen: pipeline stages derive new candidates with dataclasses.replace
    instead of mutating scored ones.
    """

    record: BookRecord
    provider: str
    similarity: float
    priority: int = 0

    def __post_init__(self) -> None:
        if not self.provider:
            raise ValueError("provider must be a non-empty string")
        if not 0.0 <= self.similarity <= 1.0:
            msg = f"similarity must be between 0.0 and 1.0, got {self.similarity}"
            raise ValueError(msg)


@dataclass(frozen=True)
class MergeSource:
    """One contributing member of a merged result."""

    provider: str
    id: str | None


@dataclass(frozen=True)
class MergedCandidate(Candidate):
    """Synthetic candidate combining fields from several tied results.

    field_sources maps each output field to the provider id (or list of
    provider ids for unions) that supplied it. picked holds resolved values
    for fields BookRecord derives from other data (isbn, asin, language), so
    the identifiers map and languages union stay exactly as merged.
    """

    merged_from: tuple[MergeSource, ...] = ()
    field_sources: dict[str, str | list[str]] = field(default_factory=dict)
    picked: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        super().__post_init__()
        if len(set(self.merged_from)) < 2:
            msg = (
                "merged_from must list at least 2 distinct (provider, id) pairs, "
                f"got {len(set(self.merged_from))}"
            )
            raise ValueError(msg)
