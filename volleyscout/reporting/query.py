"""Filtered queries over a ledger.

Filters intersect: an event is kept only if it satisfies every dimension
that is present. Statistics are always recomputed over the kept events,
never sliced out of match totals, because ratios such as efficiency change
with their denominator.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from volleyscout.core.ledger import Ledger
from volleyscout.core.models import Event, EventType, TeamSide
from volleyscout.statistics.aggregator import StatsReport, aggregate_events


def _hashable(value: Any) -> bool:
    try:
        hash(value)
    except TypeError:
        return False
    return True


def _frozen(values: Iterable[Any] | Any | None) -> frozenset[Any] | None:
    """Accepted-value set from an iterable or a single value.

    Any single non-iterable value (``1``, ``1.0``, an enum member) becomes a
    one-element set. Unhashable items can never equal an event field, so
    they are dropped rather than raising.
    """
    if values is None:
        return None
    if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
        values = [values]
    return frozenset(v for v in values if _hashable(v))


@dataclass(frozen=True)
class ReportFilter:
    """Optional accepted-value sets per dimension; ``None`` means unrestricted."""

    players: frozenset[str] | None = None
    event_types: frozenset[EventType] | None = None
    sets: frozenset[int] | None = None
    phases: frozenset[str] | None = None
    rotations: frozenset[int] | None = None
    teams: frozenset[TeamSide] | None = None

    @classmethod
    def build(
        cls,
        players: Iterable[str] | None = None,
        event_types: Iterable[EventType | str] | None = None,
        sets: Iterable[int] | None = None,
        phases: Iterable[str] | None = None,
        rotations: Iterable[int] | None = None,
        teams: Iterable[TeamSide | str] | None = None,
    ) -> ReportFilter:
        """Build a filter from any iterables (or single values)."""
        return cls(
            players=_frozen(players),
            event_types=_frozen(event_types),
            sets=_frozen(sets),
            phases=_frozen(phases),
            rotations=_frozen(rotations),
            teams=_frozen(teams),
        )

    @property
    def is_unrestricted(self) -> bool:
        return all(
            dimension is None
            for dimension in (
                self.players,
                self.event_types,
                self.sets,
                self.phases,
                self.rotations,
                self.teams,
            )
        )

    def matches(self, event: Event) -> bool:
        if self.players is not None:
            refs = {event.player, event.target_player} - {None}
            if not refs & self.players:
                return False
        if self.event_types is not None and event.event_type not in self.event_types:
            return False
        if self.sets is not None and event.set_number not in self.sets:
            return False
        if self.phases is not None and event.phase not in self.phases:
            return False
        if self.rotations is not None and event.rotation not in self.rotations:
            return False
        if self.teams is not None and event.team not in self.teams:
            return False
        return True

    def describe(self) -> dict[str, list[Any]]:
        """Present dimensions as sorted lists, for display and export."""
        described: dict[str, list[Any]] = {}
        for name in ("players", "event_types", "sets", "phases", "rotations", "teams"):
            values = getattr(self, name)
            if values is not None:
                described[name] = sorted(getattr(v, "value", v) for v in values)
        return described


@dataclass(frozen=True)
class FilteredReport:
    """Filtered event subsequence and its statistics."""

    report_filter: ReportFilter
    events: tuple[Event, ...]
    stats: StatsReport
    ledger_version: int

    @property
    def is_empty(self) -> bool:
        return not self.events


def query(
    ledger: Ledger,
    report_filter: ReportFilter | None = None,
    cancel: threading.Event | None = None,
) -> FilteredReport:
    """Apply ``report_filter`` to ``ledger`` and aggregate the kept events.

    An empty selection is a valid result, not an error.
    """
    report_filter = report_filter or ReportFilter()
    events = tuple(e for e in ledger.events if report_filter.matches(e))
    return FilteredReport(
        report_filter=report_filter,
        events=events,
        stats=aggregate_events(events, cancel),
        ledger_version=ledger.version,
    )


def aggregate(
    ledger: Ledger,
    report_filter: ReportFilter | None = None,
    cancel: threading.Event | None = None,
) -> StatsReport:
    """Statistics for the whole ledger, or for the events a filter keeps."""
    if report_filter is None or report_filter.is_unrestricted:
        return aggregate_events(ledger.events, cancel)
    return query(ledger, report_filter, cancel).stats
