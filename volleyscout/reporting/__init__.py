"""Report queries and match reports."""

from volleyscout.reporting.query import FilteredReport, ReportFilter, aggregate, query
from volleyscout.reporting.report import MatchReport, PlayerRow, SetSummary, build_report
from volleyscout.reporting.runner import run_queries

__all__ = [
    "FilteredReport",
    "MatchReport",
    "PlayerRow",
    "ReportFilter",
    "SetSummary",
    "aggregate",
    "build_report",
    "query",
    "run_queries",
]
