"""Statistics aggregation and derived metrics."""

from .aggregator import StatsAggregator

__all__ = ["StatsAggregator"]
