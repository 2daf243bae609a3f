"""Core domain models for VolleyScout."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from volleyscout.core.config import ScoringConfig, get_config

COURT_POSITIONS = 6


class TeamSide(str, Enum):
    """One of the two teams of a match."""

    A = "a"
    B = "b"

    @property
    def opponent(self) -> TeamSide:
        return TeamSide.B if self is TeamSide.A else TeamSide.A


class EventType(str, Enum):
    """Closed set of recordable match events."""

    POINT = "point"
    ERROR = "error"
    SUBSTITUTION = "substitution"
    SIDE_OUT = "side_out"
    SET_START = "set_start"
    SET_END = "set_end"

    @property
    def is_scoring(self) -> bool:
        return self in (EventType.POINT, EventType.ERROR)


class ActionType(str, Enum):
    """Volleyball skill that ended a rally."""

    SERVE = "serve"
    RECEPTION = "reception"
    SET = "set"
    ATTACK = "attack"
    BLOCK = "block"
    DIG = "dig"
    FAULT = "fault"


class Evaluation(str, Enum):
    """Scouting grade attached to an action."""

    PERFECT = "#"
    POSITIVE = "+"
    EXCLAMATIVE = "!"  # Ball kept in play but poor, e.g. a free ball given away
    OVER = "/"  # Ball sent straight over, or a blocked attack
    ERROR = "="
    NEGATIVE = "-"


class ErrorKind(str, Enum):
    """Whether an error was forced by the opponent's play."""

    FORCED = "forced"
    UNFORCED = "unforced"


class Role(str, Enum):
    """Player roles."""

    SETTER = "setter"
    OUTSIDE_HITTER = "outside_hitter"
    OPPOSITE_HITTER = "opposite_hitter"
    MIDDLE_BLOCKER = "middle_blocker"
    LIBERO = "libero"


class RallyPhase(str, Enum):
    """Default phase tags stamped on events.

    Coaches may attach their own phase labels instead; these are used
    when an event arrives without one.
    """

    BREAK = "break"  # Team was serving
    SIDE_OUT = "side_out"  # Team was receiving


class MatchPhase(str, Enum):
    """Lifecycle of the recorder state."""

    AWAITING_SET = "awaiting_set"
    IN_PLAY = "in_play"
    FINISHED = "finished"


@dataclass(frozen=True)
class Player:
    """Immutable roster entry."""

    player_id: str
    name: str
    role: Role | None = None
    number: int | None = None

    def __str__(self) -> str:
        if self.number is not None:
            return f"{self.name} ({self.number})"
        return self.name


@dataclass(frozen=True)
class Roster:
    """Players of one team, indexed by id."""

    name: str
    players: dict[str, Player] = field(default_factory=dict)

    @classmethod
    def from_players(cls, name: str, players: Iterable[Player]) -> Roster:
        index: dict[str, Player] = {}
        for player in players:
            if player.player_id in index:
                raise ValueError(f"Duplicate player id in roster {name!r}: {player.player_id}")
            index[player.player_id] = player
        return cls(name=name, players=index)

    def __contains__(self, player_id: object) -> bool:
        return player_id in self.players

    def __iter__(self) -> Iterator[Player]:
        return iter(self.players.values())

    def __len__(self) -> int:
        return len(self.players)

    def get(self, player_id: str) -> Player | None:
        return self.players.get(player_id)


@dataclass(frozen=True)
class Score:
    """Score pair for one set."""

    a: int = 0
    b: int = 0

    def for_team(self, team: TeamSide) -> int:
        return self.a if team is TeamSide.A else self.b

    def incremented(self, team: TeamSide) -> Score:
        if team is TeamSide.A:
            return Score(self.a + 1, self.b)
        return Score(self.a, self.b + 1)

    def lead(self, team: TeamSide) -> int:
        """Points ahead of the opponent (negative when behind)."""
        return self.for_team(team) - self.for_team(team.opponent)

    def __str__(self) -> str:
        return f"{self.a}-{self.b}"


@dataclass(frozen=True)
class Rotation:
    """Six court slots of one team.

    ``slots[0]`` is position 1 (the server), ``slots[1]`` position 2 and so
    on. ``advances`` counts the cyclic moves since the set started.
    """

    slots: tuple[str, ...]
    advances: int = 0

    def __post_init__(self) -> None:
        if len(self.slots) != COURT_POSITIONS:
            raise ValueError(f"Rotation needs {COURT_POSITIONS} players, got {len(self.slots)}")
        if len(set(self.slots)) != COURT_POSITIONS:
            raise ValueError("Rotation contains the same player more than once")

    @property
    def number(self) -> int:
        """Rotation tag 1..6, 1 being the starting lineup."""
        return self.advances % COURT_POSITIONS + 1

    @property
    def server(self) -> str:
        return self.slots[0]

    def __contains__(self, player_id: object) -> bool:
        return player_id in self.slots

    def position_of(self, player_id: str) -> int | None:
        """Court position (1..6) of a player, None when off court."""
        if player_id not in self.slots:
            return None
        return self.slots.index(player_id) + 1

    def advanced(self) -> Rotation:
        """Rotate clockwise: position 2 moves to position 1 and serves."""
        return Rotation(self.slots[1:] + self.slots[:1], self.advances + 1)

    def substituted(self, outgoing: str, incoming: str) -> Rotation:
        """Replace one court slot, keeping the order of the others."""
        index = self.slots.index(outgoing)
        slots = self.slots[:index] + (incoming,) + self.slots[index + 1:]
        return Rotation(slots, self.advances)

    def is_cycle_of(self, lineup: tuple[str, ...]) -> bool:
        """True if this arrangement is a cyclic shift of ``lineup``."""
        shift = self.advances % COURT_POSITIONS
        return self.slots == tuple(lineup[shift:]) + tuple(lineup[:shift])


@dataclass(frozen=True)
class Event:
    """Immutable ledger record.

    ``team`` meaning depends on the type: rally winner for POINT, team at
    fault for ERROR, serving team for SET_START, team gaining serve for
    SIDE_OUT, substituting team for SUBSTITUTION and awarded winner for
    SET_END. For substitutions ``player`` leaves the court and
    ``target_player`` enters.

    ``phase`` and ``rotation`` are stamped by the recorder when the event
    is accepted.
    """

    sequence: int
    event_type: EventType
    set_number: int
    timestamp: float = 0.0
    team: TeamSide | None = None
    player: str | None = None
    target_player: str | None = None
    action: ActionType | None = None
    outcome: Evaluation | None = None
    error_kind: ErrorKind | None = None  # ERROR only
    phase: str | None = None
    rotation: int | None = None
    lineups: tuple[tuple[str, ...], tuple[str, ...]] | None = None  # (team A, team B), SET_START only

    @property
    def players(self) -> tuple[str, ...]:
        """All player references carried by the event."""
        refs = tuple(p for p in (self.player, self.target_player) if p is not None)
        if self.lineups is not None:
            refs += self.lineups[0] + self.lineups[1]
        return refs

    @property
    def rally_winner(self) -> TeamSide | None:
        """Team credited with the point, for scoring events."""
        if self.team is None:
            return None
        if self.event_type is EventType.POINT:
            return self.team
        if self.event_type is EventType.ERROR:
            return self.team.opponent
        return None

    def lineup_for(self, team: TeamSide) -> tuple[str, ...] | None:
        if self.lineups is None:
            return None
        return self.lineups[0] if team is TeamSide.A else self.lineups[1]

    def stamped(self, phase: str | None, rotation: int | None) -> Event:
        return replace(self, phase=phase, rotation=rotation)


@dataclass(frozen=True)
class SubstitutionRecord:
    """One substitution made during a set."""

    outgoing: str
    incoming: str


@dataclass(frozen=True)
class SetResult:
    """Outcome of a closed set."""

    set_number: int
    score: Score
    winner: TeamSide | None


@dataclass(frozen=True)
class SetRecord:
    """A set of the match and the ledger slice belonging to it."""

    set_number: int
    events: tuple[Event, ...]
    closed: bool = False
    winner: TeamSide | None = None

    @property
    def score(self) -> Score:
        """Score folded from the set's scoring events."""
        score = Score()
        for event in self.events:
            winner = event.rally_winner
            if winner is not None:
                score = score.incremented(winner)
        return score

    @property
    def rally_count(self) -> int:
        return sum(1 for e in self.events if e.event_type.is_scoring)

    @property
    def duration(self) -> float:
        """Seconds between the first and last event of the set."""
        if len(self.events) < 2:
            return 0.0
        return self.events[-1].timestamp - self.events[0].timestamp


@dataclass(frozen=True)
class Match:
    """Match identity, rosters and the rules it is played under."""

    match_id: str
    rosters: dict[TeamSide, Roster]
    scoring: ScoringConfig = field(default_factory=lambda: get_config().scoring)
    name: str | None = None
    date: datetime | None = None

    def __post_init__(self) -> None:
        missing = [team.value for team in TeamSide if team not in self.rosters]
        if missing:
            raise ValueError(f"Match {self.match_id} is missing rosters for: {', '.join(missing)}")
        shared = set(self.rosters[TeamSide.A].players) & set(self.rosters[TeamSide.B].players)
        if shared:
            raise ValueError(f"Players listed on both rosters: {', '.join(sorted(shared))}")

    def roster(self, team: TeamSide) -> Roster:
        return self.rosters[team]

    def find_player(self, player_id: str) -> tuple[TeamSide, Player] | None:
        """Look a player up across both rosters."""
        for team in TeamSide:
            player = self.rosters[team].get(player_id)
            if player is not None:
                return team, player
        return None

    def player_name(self, player_id: str) -> str:
        found = self.find_player(player_id)
        return str(found[1]) if found else player_id


@dataclass(frozen=True)
class MatchState:
    """Recorder state after a prefix of the ledger."""

    set_number: int = 0
    phase: MatchPhase = MatchPhase.AWAITING_SET
    serving: TeamSide | None = None
    rotations: dict[TeamSide, Rotation] = field(default_factory=dict)
    lineups: dict[TeamSide, tuple[str, ...]] = field(default_factory=dict)
    score: Score = field(default_factory=Score)
    substitutions: dict[TeamSide, tuple[SubstitutionRecord, ...]] = field(default_factory=dict)
    possession_changed: bool = False
    completed_sets: tuple[SetResult, ...] = ()
    last_sequence: int | None = None

    @property
    def set_open(self) -> bool:
        return self.phase is MatchPhase.IN_PLAY

    @property
    def receiving(self) -> TeamSide | None:
        return self.serving.opponent if self.serving is not None else None

    def sets_won(self, team: TeamSide) -> int:
        return sum(1 for result in self.completed_sets if result.winner is team)

    @property
    def winner(self) -> TeamSide | None:
        """Match winner once the match is finished."""
        if self.phase is not MatchPhase.FINISHED:
            return None
        a, b = self.sets_won(TeamSide.A), self.sets_won(TeamSide.B)
        if a == b:
            return None
        return TeamSide.A if a > b else TeamSide.B

    def is_closed(self, set_number: int) -> bool:
        return any(result.set_number == set_number for result in self.completed_sets)

    def bench(self, roster: Roster, team: TeamSide) -> list[str]:
        """Roster players of ``team`` not currently on court."""
        rotation = self.rotations.get(team)
        return [p.player_id for p in roster if rotation is None or p.player_id not in rotation]
