"""VolleyScout - volleyball match event recorder and statistics engine."""

__version__ = "0.1.0"

from volleyscout.api import aggregate, apply, load, query
from volleyscout.core import (
    ActionType,
    CorruptLedgerError,
    ErrorKind,
    Evaluation,
    Event,
    EventRejected,
    EventType,
    Ledger,
    Match,
    Player,
    Roster,
    TeamSide,
    VolleyScoutError,
)
from volleyscout.recording import MatchSession, new_ledger
from volleyscout.reporting import FilteredReport, ReportFilter, build_report, run_queries
from volleyscout.statistics import StatLine, StatsReport

__all__ = [
    "ActionType",
    "CorruptLedgerError",
    "ErrorKind",
    "Evaluation",
    "Event",
    "EventRejected",
    "EventType",
    "FilteredReport",
    "Ledger",
    "Match",
    "MatchSession",
    "Player",
    "ReportFilter",
    "Roster",
    "StatLine",
    "StatsReport",
    "TeamSide",
    "VolleyScoutError",
    "aggregate",
    "apply",
    "build_report",
    "load",
    "new_ledger",
    "query",
    "run_queries",
]
