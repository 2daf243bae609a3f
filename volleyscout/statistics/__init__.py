"""Statistics aggregation over ledger events."""

from volleyscout.statistics.aggregator import (
    StatisticsAggregator,
    StatLine,
    StatsReport,
    aggregate_events,
    update_report,
)

__all__ = [
    "StatisticsAggregator",
    "StatLine",
    "StatsReport",
    "aggregate_events",
    "update_report",
]
