"""Pydantic models for the VolleyScout match file format."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from volleyscout.core.config import ScoringConfig, get_config
from volleyscout.core.models import (
    ActionType,
    ErrorKind,
    Evaluation,
    Event,
    EventType,
    Match,
    Player,
    Role,
    Roster,
    TeamSide,
)

SCHEMA_VERSION = 1


class PlayerModel(BaseModel):
    """A roster entry."""

    player_id: str = Field(description="Unique player identifier within the match")
    name: str = Field(description="Display name")
    role: Role | None = Field(default=None, description="Playing role")
    number: int | None = Field(default=None, ge=0, description="Jersey number")

    @classmethod
    def from_player(cls, player: Player) -> PlayerModel:
        return cls(
            player_id=player.player_id, name=player.name, role=player.role, number=player.number
        )

    def to_player(self) -> Player:
        return Player(player_id=self.player_id, name=self.name, role=self.role, number=self.number)


class RosterModel(BaseModel):
    """Players of one team."""

    name: str = Field(description="Team name")
    players: list[PlayerModel] = Field(default_factory=list)

    @classmethod
    def from_roster(cls, roster: Roster) -> RosterModel:
        return cls(name=roster.name, players=[PlayerModel.from_player(p) for p in roster])

    def to_roster(self) -> Roster:
        return Roster.from_players(self.name, (p.to_player() for p in self.players))


class EventModel(BaseModel):
    """A ledger event as stored on disk."""

    sequence: int = Field(ge=0, description="Strictly increasing sequence number")
    event_type: EventType
    set_number: int = Field(ge=1)
    timestamp: float = Field(default=0.0, description="Seconds since match start")
    team: TeamSide | None = None
    player: str | None = None
    target_player: str | None = None
    action: ActionType | None = None
    outcome: Evaluation | None = Field(default=None, description="Scouting grade: # + ! / = -")
    error_kind: ErrorKind | None = Field(default=None, description="forced or unforced, error only")
    phase: str | None = None
    rotation: int | None = Field(default=None, ge=1, le=6)
    lineups: tuple[list[str], list[str]] | None = Field(
        default=None, description="Starting lineups (team A, team B), set_start only"
    )

    @classmethod
    def from_event(cls, event: Event) -> EventModel:
        lineups = None
        if event.lineups is not None:
            lineups = (list(event.lineups[0]), list(event.lineups[1]))
        return cls(
            sequence=event.sequence,
            event_type=event.event_type,
            set_number=event.set_number,
            timestamp=event.timestamp,
            team=event.team,
            player=event.player,
            target_player=event.target_player,
            action=event.action,
            outcome=event.outcome,
            error_kind=event.error_kind,
            phase=event.phase,
            rotation=event.rotation,
            lineups=lineups,
        )

    def to_event(self) -> Event:
        lineups = None
        if self.lineups is not None:
            lineups = (tuple(self.lineups[0]), tuple(self.lineups[1]))
        return Event(
            sequence=self.sequence,
            event_type=self.event_type,
            set_number=self.set_number,
            timestamp=self.timestamp,
            team=self.team,
            player=self.player,
            target_player=self.target_player,
            action=self.action,
            outcome=self.outcome,
            error_kind=self.error_kind,
            phase=self.phase,
            rotation=self.rotation,
            lineups=lineups,
        )


class MatchFile(BaseModel):
    """Complete persisted match: identity, rosters, rules and event log."""

    schema_version: int = Field(default=SCHEMA_VERSION)
    match_id: str
    name: str | None = None
    date: datetime | None = None
    rosters: dict[TeamSide, RosterModel]
    scoring: ScoringConfig = Field(
        default_factory=lambda: get_config().scoring,
        description="Scoring rules; defaults to the configured rules when absent",
    )
    events: list[EventModel] = Field(default_factory=list)

    @classmethod
    def from_match(cls, match: Match, events: tuple[Event, ...] = ()) -> MatchFile:
        return cls(
            match_id=match.match_id,
            name=match.name,
            date=match.date,
            rosters={team: RosterModel.from_roster(r) for team, r in match.rosters.items()},
            scoring=match.scoring,
            events=[EventModel.from_event(e) for e in events],
        )

    def to_match(self) -> Match:
        return Match(
            match_id=self.match_id,
            rosters={team: r.to_roster() for team, r in self.rosters.items()},
            scoring=self.scoring,
            name=self.name,
            date=self.date,
        )

    def to_events(self) -> list[Event]:
        return [e.to_event() for e in self.events]
