# ABOUTME: bookmux aggregates book and audiobook catalog searches across metadata providers.
# ABOUTME: See bookmux.core.aggregator.SearchAggregator for the main entry point.

__version__ = "0.1.0"
