# ABOUTME: Metadata package: record types, provider protocol, scoring, and built-in providers.
# ABOUTME: Exports the core record and candidate types used throughout bookmux.

from bookmux.metadata.candidate import Candidate, MergedCandidate, MergeSource
from bookmux.metadata.provider import MetadataProvider
from bookmux.metadata.types import BookRecord, SeriesEntry, SourceInfo

__all__ = [
    "BookRecord",
    "Candidate",
    "MergeSource",
    "MergedCandidate",
    "MetadataProvider",
    "SeriesEntry",
    "SourceInfo",
]
