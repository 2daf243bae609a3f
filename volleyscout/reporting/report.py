"""Match reports: set scores, player table and event listing."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any

from volleyscout.core.ledger import Ledger
from volleyscout.core.models import Event, Score, TeamSide
from volleyscout.reporting.query import ReportFilter, query
from volleyscout.statistics.aggregator import StatLine, StatsReport
from volleyscout.storage.schemas import EventModel


@dataclass
class SetSummary:
    """Score line of one set."""

    set_number: int
    score: Score
    closed: bool
    winner: TeamSide | None
    rallies: int
    duration: float

    def to_dict(self) -> dict[str, Any]:
        return {
            "set": self.set_number,
            "score": {"a": self.score.a, "b": self.score.b},
            "closed": self.closed,
            "winner": self.winner.value if self.winner else None,
            "rallies": self.rallies,
            "duration": round(self.duration, 2),
        }


@dataclass
class PlayerRow:
    """One row of the player stat table."""

    player_id: str
    name: str
    team: TeamSide | None
    line: StatLine

    def to_dict(self, digits: int = 3) -> dict[str, Any]:
        return {
            "player": self.player_id,
            "name": self.name,
            "team": self.team.value if self.team else None,
            **self.line.to_dict(digits),
        }


@dataclass
class MatchReport:
    """Report over a ledger version, optionally restricted by a filter."""

    match_id: str
    match_name: str | None
    team_names: dict[TeamSide, str]
    sets: list[SetSummary]
    sets_won: dict[TeamSide, int]
    winner: TeamSide | None
    players: list[PlayerRow]
    events: tuple[Event, ...]
    stats: StatsReport
    report_filter: ReportFilter = field(default_factory=ReportFilter)

    def to_dict(self, digits: int = 3) -> dict[str, Any]:
        """Convert report to dictionary for JSON export."""
        return {
            "matchId": self.match_id,
            "name": self.match_name,
            "teams": {team.value: name for team, name in self.team_names.items()},
            "setsWon": {team.value: won for team, won in self.sets_won.items()},
            "winner": self.winner.value if self.winner else None,
            "filter": self.report_filter.describe(),
            "sets": [s.to_dict() for s in self.sets],
            "players": [row.to_dict(digits) for row in self.players],
            "stats": self.stats.to_dict(digits),
            "events": [
                EventModel.from_event(e).model_dump(mode="json", exclude_none=True)
                for e in self.events
            ],
        }


def _player_rows(ledger: Ledger, stats: StatsReport) -> list[PlayerRow]:
    """Rows in roster order, team A first; players without events are omitted."""
    rows = []
    seen = set()
    for team in TeamSide:
        for player in ledger.match.roster(team):
            if player.player_id in stats.players:
                rows.append(
                    PlayerRow(player.player_id, str(player), team, stats.players[player.player_id])
                )
                seen.add(player.player_id)
    for player_id in sorted(set(stats.players) - seen):
        rows.append(PlayerRow(player_id, player_id, None, stats.players[player_id]))
    return rows


def build_report(
    ledger: Ledger,
    report_filter: ReportFilter | None = None,
    cancel: threading.Event | None = None,
) -> MatchReport:
    """Build a report for ``ledger``.

    Set scores always cover the whole ledger; the player table, stats and
    event listing reflect the filter.
    """
    result = query(ledger, report_filter, cancel)
    state = ledger.state
    match = ledger.match

    sets = [
        SetSummary(
            set_number=record.set_number,
            score=record.score,
            closed=record.closed,
            winner=record.winner,
            rallies=record.rally_count,
            duration=record.duration,
        )
        for record in ledger.sets()
    ]

    return MatchReport(
        match_id=match.match_id,
        match_name=match.name,
        team_names={team: match.roster(team).name for team in TeamSide},
        sets=sets,
        sets_won={team: state.sets_won(team) for team in TeamSide},
        winner=state.winner,
        players=_player_rows(ledger, result.stats),
        events=result.events,
        stats=result.stats,
        report_filter=result.report_filter,
    )
