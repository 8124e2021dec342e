# ABOUTME: Aggregation pipeline: selection, enrichment, ranking, merge, and the provider registry.
# ABOUTME: Exports SearchAggregator and the response types it returns.

from bookmux.core.aggregator import (
    ProviderDiagnostics,
    QueryError,
    SearchAggregator,
    SearchResponse,
)
from bookmux.core.registry import ProviderRegistry

__all__ = [
    "ProviderDiagnostics",
    "ProviderRegistry",
    "QueryError",
    "SearchAggregator",
    "SearchResponse",
]
