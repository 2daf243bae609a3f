"""Statistics aggregation for VolleyScout.

Folds an ordered event sequence into per-player lines, broken down by
phase, rotation and action, plus per-grade counts for scouted skills. The
fold only reads the phase and rotation tags already stamped on each event;
it never re-runs the state machine.

Two modes produce identical reports for the same events:
- ``aggregate``: full recompute from an empty accumulator
- ``update``: fold one more event into an existing accumulator
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass, field, fields, replace
from typing import Any

from volleyscout.core.errors import AggregationCancelled, CorruptLedgerError
from volleyscout.core.models import ActionType, ErrorKind, Evaluation, Event, EventType, TeamSide

logger = logging.getLogger(__name__)

E = Evaluation

# Grades counted as a positive outcome of each skill
POSITIVE_GRADES: dict[ActionType, frozenset[Evaluation]] = {
    ActionType.RECEPTION: frozenset({E.PERFECT, E.POSITIVE}),
    ActionType.ATTACK: frozenset({E.PERFECT, E.POSITIVE}),
    ActionType.DIG: frozenset({E.PERFECT, E.POSITIVE}),
    ActionType.SERVE: frozenset({E.PERFECT, E.POSITIVE, E.OVER}),
    ActionType.BLOCK: frozenset({E.PERFECT, E.POSITIVE}),
}

# (grades scoring +1, grades scoring -1) per skill for grade efficiency
EFFICIENCY_GRADES: dict[ActionType, tuple[frozenset[Evaluation], frozenset[Evaluation]]] = {
    ActionType.RECEPTION: (frozenset({E.PERFECT, E.POSITIVE}), frozenset({E.ERROR, E.OVER})),
    ActionType.ATTACK: (frozenset({E.PERFECT}), frozenset({E.ERROR, E.OVER})),
    ActionType.DIG: (frozenset({E.PERFECT, E.POSITIVE, E.OVER}), frozenset({E.ERROR})),
    ActionType.SERVE: (
        frozenset({E.PERFECT, E.POSITIVE, E.OVER, E.EXCLAMATIVE}),
        frozenset({E.ERROR}),
    ),
    ActionType.BLOCK: (frozenset({E.PERFECT, E.POSITIVE}), frozenset({E.ERROR, E.OVER})),
}

GradeKey = tuple[str, ActionType, Evaluation, str, int]  # (player, action, grade, phase, rotation)


@dataclass
class StatLine:
    """Counters for one player (or team) in one bucket."""

    points: int = 0
    errors: int = 0
    forced_errors: int = 0
    unforced_errors: int = 0
    opponent_errors: int = 0  # Team lines only: errors committed by the other side
    substitutions_in: int = 0
    substitutions_out: int = 0

    @property
    def actions(self) -> int:
        """Counted actions: points and errors."""
        return self.points + self.errors

    @property
    def efficiency(self) -> float:
        """(points - errors) / counted actions, 0 when nothing was counted."""
        if self.actions == 0:
            return 0.0
        return (self.points - self.errors) / self.actions

    def merge(self, other: StatLine) -> None:
        for f in fields(self):
            setattr(self, f.name, getattr(self, f.name) + getattr(other, f.name))

    def copy(self) -> StatLine:
        return replace(self)

    def to_dict(self, digits: int = 3) -> dict[str, Any]:
        return {
            "points": self.points,
            "errors": self.errors,
            "forcedErrors": self.forced_errors,
            "unforcedErrors": self.unforced_errors,
            "opponentErrors": self.opponent_errors,
            "substitutionsIn": self.substitutions_in,
            "substitutionsOut": self.substitutions_out,
            "actions": self.actions,
            "efficiency": round(self.efficiency, digits),
        }


def _merge_buckets(target: dict[Any, StatLine], source: dict[Any, StatLine]) -> None:
    for key, line in source.items():
        if key in target:
            target[key].merge(line)
        else:
            target[key] = line.copy()


@dataclass
class StatsReport:
    """Aggregated statistics over an event sequence."""

    players: dict[str, StatLine] = field(default_factory=dict)
    by_phase: dict[tuple[str, str], StatLine] = field(default_factory=dict)
    by_rotation: dict[tuple[str, int], StatLine] = field(default_factory=dict)
    by_action: dict[tuple[str, ActionType], StatLine] = field(default_factory=dict)
    teams: dict[TeamSide, StatLine] = field(default_factory=dict)
    by_grade: dict[GradeKey, int] = field(default_factory=dict)
    event_count: int = 0
    first_sequence: int | None = None
    last_sequence: int | None = None

    def player(self, player_id: str) -> StatLine:
        """Line for a player; an empty line if the player never appeared."""
        return self.players.get(player_id, StatLine())

    def team(self, team: TeamSide) -> StatLine:
        return self.teams.get(team, StatLine())

    def phases_for(self, player_id: str) -> dict[str, StatLine]:
        return {phase: line for (pid, phase), line in self.by_phase.items() if pid == player_id}

    def rotations_for(self, player_id: str) -> dict[int, StatLine]:
        return {rot: line for (pid, rot), line in self.by_rotation.items() if pid == player_id}

    def grade_counts(
        self,
        action: ActionType | None = None,
        player: str | None = None,
        phase: str | None = None,
        rotation: int | None = None,
    ) -> dict[Evaluation, int]:
        """Graded actions per grade, optionally narrowed to a skill, player, phase or rotation."""
        counts: dict[Evaluation, int] = {}
        for (pid, act, grade, ph, rot), count in self.by_grade.items():
            if action is not None and act is not action:
                continue
            if player is not None and pid != player:
                continue
            if phase is not None and ph != phase:
                continue
            if rotation is not None and rot != rotation:
                continue
            counts[grade] = counts.get(grade, 0) + count
        return counts

    def positiveness(self, action: ActionType, **narrow: Any) -> float:
        """Share of graded ``action`` outcomes that were positive (0 to 1)."""
        counts = self.grade_counts(action, **narrow)
        total = sum(counts.values())
        if total == 0:
            return 0.0
        positive = POSITIVE_GRADES.get(action, frozenset())
        return sum(n for grade, n in counts.items() if grade in positive) / total

    def grade_efficiency(self, action: ActionType, **narrow: Any) -> float:
        """(good - bad) / graded for ``action`` (-1 to 1), 0 when nothing was graded."""
        counts = self.grade_counts(action, **narrow)
        total = sum(counts.values())
        if total == 0:
            return 0.0
        good, bad = EFFICIENCY_GRADES.get(action, (frozenset(), frozenset()))
        score = sum(n for grade, n in counts.items() if grade in good)
        score -= sum(n for grade, n in counts.items() if grade in bad)
        return score / total

    def copy(self) -> StatsReport:
        clone = StatsReport()
        clone.combine(self)
        return clone

    def combine(self, other: StatsReport) -> StatsReport:
        """Merge the report of a disjoint event slice into this one.

        Merging is keyed and commutative, so per-set reports can be
        combined in any order to obtain the match report.
        """
        _merge_buckets(self.players, other.players)
        _merge_buckets(self.by_phase, other.by_phase)
        _merge_buckets(self.by_rotation, other.by_rotation)
        _merge_buckets(self.by_action, other.by_action)
        _merge_buckets(self.teams, other.teams)
        for key, count in other.by_grade.items():
            self.by_grade[key] = self.by_grade.get(key, 0) + count
        self.event_count += other.event_count
        if other.first_sequence is not None:
            if self.first_sequence is None or other.first_sequence < self.first_sequence:
                self.first_sequence = other.first_sequence
        if other.last_sequence is not None:
            if self.last_sequence is None or other.last_sequence > self.last_sequence:
                self.last_sequence = other.last_sequence
        return self

    def to_dict(self, digits: int = 3) -> dict[str, Any]:
        """Convert report to dictionary for JSON export."""
        return {
            "eventCount": self.event_count,
            "teams": {team.value: line.to_dict(digits) for team, line in self.teams.items()},
            "players": {pid: line.to_dict(digits) for pid, line in sorted(self.players.items())},
            "byPhase": [
                {"player": pid, "phase": phase, **line.to_dict(digits)}
                for (pid, phase), line in sorted(self.by_phase.items())
            ],
            "byRotation": [
                {"player": pid, "rotation": rot, **line.to_dict(digits)}
                for (pid, rot), line in sorted(self.by_rotation.items())
            ],
            "byAction": [
                {"player": pid, "action": action.value, **line.to_dict(digits)}
                for (pid, action), line in sorted(self.by_action.items(), key=lambda kv: (kv[0][0], kv[0][1].value))
            ],
            "byGrade": [
                {
                    "player": pid,
                    "action": action.value,
                    "grade": grade.value,
                    "phase": phase,
                    "rotation": rot,
                    "count": count,
                }
                for (pid, action, grade, phase, rot), count in sorted(
                    self.by_grade.items(),
                    key=lambda kv: (kv[0][0], kv[0][1].value, kv[0][2].value, kv[0][3], kv[0][4]),
                )
            ],
        }


class StatisticsAggregator:
    """Aggregates ledger events into StatsReport accumulators."""

    def aggregate(
        self,
        events: Iterable[Event],
        cancel: threading.Event | None = None,
    ) -> StatsReport:
        """
        Full recompute over an ordered event sequence.

        Args:
            events: Events in ledger order
            cancel: Optional flag; when set the fold stops with AggregationCancelled

        Returns:
            StatsReport for the sequence
        """
        report = StatsReport()
        for event in events:
            if cancel is not None and cancel.is_set():
                raise AggregationCancelled("Aggregation cancelled")
            self.update(report, event)

        logger.debug(
            "Aggregated %d events, %d players", report.event_count, len(report.players)
        )
        return report

    def update(self, report: StatsReport, event: Event) -> StatsReport:
        """Fold one event into ``report`` in place and return it."""
        if report.last_sequence is not None and event.sequence <= report.last_sequence:
            raise CorruptLedgerError(
                event.sequence, f"event arrives after #{report.last_sequence} out of order"
            )

        if event.event_type is EventType.POINT:
            for line in self._lines(report, event, event.player):
                line.points += 1
            self._grade(report, event)
        elif event.event_type is EventType.ERROR:
            for line in self._lines(report, event, event.player):
                line.errors += 1
                if event.error_kind is ErrorKind.FORCED:
                    line.forced_errors += 1
                elif event.error_kind is ErrorKind.UNFORCED:
                    line.unforced_errors += 1
            if event.team is not None:
                report.teams.setdefault(event.team.opponent, StatLine()).opponent_errors += 1
            self._grade(report, event)
        elif event.event_type is EventType.SUBSTITUTION:
            for line in self._lines(report, event, event.player):
                line.substitutions_out += 1
            for line in self._lines(report, event, event.target_player, with_team=False):
                line.substitutions_in += 1
            if event.team is not None:
                report.teams.setdefault(event.team, StatLine()).substitutions_in += 1
        elif event.event_type is EventType.SIDE_OUT:
            pass
        elif event.event_type is EventType.SET_START:
            pass
        elif event.event_type is EventType.SET_END:
            pass
        else:
            raise CorruptLedgerError(event.sequence, f"unknown event type {event.event_type!r}")

        report.event_count += 1
        if report.first_sequence is None:
            report.first_sequence = event.sequence
        report.last_sequence = event.sequence
        return report

    def _lines(
        self,
        report: StatsReport,
        event: Event,
        player_id: str | None,
        with_team: bool = True,
    ) -> list[StatLine]:
        """Buckets an event contributes to for one player reference."""
        lines = []
        if with_team and event.team is not None:
            lines.append(report.teams.setdefault(event.team, StatLine()))

        if player_id is None:
            return lines

        if event.phase is None or event.rotation is None:
            raise CorruptLedgerError(
                event.sequence, "player event is missing its phase or rotation tag"
            )

        lines.append(report.players.setdefault(player_id, StatLine()))
        lines.append(report.by_phase.setdefault((player_id, event.phase), StatLine()))
        lines.append(report.by_rotation.setdefault((player_id, event.rotation), StatLine()))
        if event.action is not None:
            lines.append(report.by_action.setdefault((player_id, event.action), StatLine()))
        return lines

    def _grade(self, report: StatsReport, event: Event) -> None:
        # Only a graded skill by a named player is counted
        if event.player is None or event.action is None or event.outcome is None:
            return
        key = (event.player, event.action, event.outcome, event.phase, event.rotation)
        report.by_grade[key] = report.by_grade.get(key, 0) + 1


_default_aggregator = StatisticsAggregator()


def aggregate_events(events: Iterable[Event], cancel: threading.Event | None = None) -> StatsReport:
    """Full recompute with the default aggregator."""
    return _default_aggregator.aggregate(events, cancel)


def update_report(report: StatsReport, event: Event) -> StatsReport:
    """Incremental update with the default aggregator."""
    return _default_aggregator.update(report, event)
