"""Pytest configuration and fixtures."""

from __future__ import annotations

import pytest

from volleyscout.core.config import ScoringConfig
from volleyscout.core.models import (
    ActionType,
    Event,
    EventType,
    Match,
    Player,
    Role,
    Roster,
    TeamSide,
)

LINEUP_A = ("a1", "a2", "a3", "a4", "a5", "a6")
LINEUP_B = ("b1", "b2", "b3", "b4", "b5", "b6")

ROLES = [
    Role.SETTER,
    Role.OUTSIDE_HITTER,
    Role.MIDDLE_BLOCKER,
    Role.OPPOSITE_HITTER,
    Role.OUTSIDE_HITTER,
    Role.MIDDLE_BLOCKER,
]


def make_roster(prefix: str, name: str, size: int = 9) -> Roster:
    """Roster with ids <prefix>1..<prefix><size>."""
    return Roster.from_players(
        name,
        (
            Player(
                player_id=f"{prefix}{i}",
                name=f"{name} {i}",
                role=ROLES[i - 1] if i <= len(ROLES) else None,
                number=i,
            )
            for i in range(1, size + 1)
        ),
    )


def make_match(scoring: ScoringConfig | None = None, match_id: str = "final") -> Match:
    return Match(
        match_id=match_id,
        rosters={TeamSide.A: make_roster("a", "Lions"), TeamSide.B: make_roster("b", "Hawks")},
        scoring=scoring or ScoringConfig(),
        name="Cup Final",
    )


class EventFeed:
    """Builds events with increasing sequence numbers and timestamps."""

    def __init__(self) -> None:
        self.sequence = 0
        self.set_number = 0
        self.clock = 0.0

    def _next(self, event_type: EventType, **kwargs) -> Event:
        self.sequence += 1
        self.clock += 12.5
        kwargs.setdefault("set_number", self.set_number)
        return Event(sequence=self.sequence, event_type=event_type, timestamp=self.clock, **kwargs)

    def set_start(
        self,
        serving: TeamSide = TeamSide.A,
        set_number: int | None = None,
        lineups: tuple[tuple[str, ...], tuple[str, ...]] = (LINEUP_A, LINEUP_B),
    ) -> Event:
        self.set_number = set_number if set_number is not None else self.set_number + 1
        return self._next(EventType.SET_START, team=serving, lineups=lineups)

    def point(self, team: TeamSide, player: str | None = None, action: ActionType | None = None, **kwargs) -> Event:
        return self._next(EventType.POINT, team=team, player=player, action=action, **kwargs)

    def error(self, team: TeamSide, player: str | None = None, action: ActionType | None = None, **kwargs) -> Event:
        return self._next(EventType.ERROR, team=team, player=player, action=action, **kwargs)

    def sub(self, team: TeamSide, outgoing: str, incoming: str, **kwargs) -> Event:
        return self._next(EventType.SUBSTITUTION, team=team, player=outgoing, target_player=incoming, **kwargs)

    def side_out(self, team: TeamSide, player: str | None = None, **kwargs) -> Event:
        return self._next(EventType.SIDE_OUT, team=team, player=player, **kwargs)

    def set_end(self, team: TeamSide | None = None, **kwargs) -> Event:
        return self._next(EventType.SET_END, team=team, **kwargs)


def short_scoring() -> ScoringConfig:
    """Best of three, sets to 5, deciding set to 3."""
    return ScoringConfig(set_target=5, deciding_set_target=3, min_margin=2, best_of=3)


def two_set_events(feed: EventFeed) -> list[Event]:
    """Team A wins 5-3, 5-1 under ``short_scoring``.

    Sequence numbers 1..19, set 1 is 1..11 and set 2 is 12..19.
    """
    A, B = TeamSide.A, TeamSide.B
    return [
        feed.set_start(A),                              # 1
        feed.point(A, "a1", ActionType.SERVE),          # 2  1-0
        feed.point(A, "a4", ActionType.ATTACK),         # 3  2-0
        feed.point(B, "b3", ActionType.ATTACK),         # 4  2-1, B gains serve
        feed.side_out(B, "b2"),                         # 5
        feed.error(B, "b2", ActionType.SERVE),          # 6  3-1, A gains serve
        feed.sub(B, "b4", "b7"),                        # 7
        feed.point(A, "a5", ActionType.BLOCK),          # 8  4-1
        feed.error(A, "a3", ActionType.ATTACK),         # 9  4-2, B gains serve
        feed.point(B, "b7", ActionType.ATTACK),         # 10 4-3
        feed.error(B, "b3", ActionType.SERVE),          # 11 5-3, set to A
        feed.set_start(B),                              # 12
        feed.point(B, "b1", ActionType.SERVE),          # 13 0-1
        feed.point(A, "a2", ActionType.ATTACK),         # 14 1-1, A gains serve
        feed.point(A, "a2", ActionType.SERVE),          # 15 2-1
        feed.error(B, "b5", ActionType.RECEPTION),      # 16 3-1
        feed.sub(A, "a4", "a7"),                        # 17
        feed.point(A, "a7", ActionType.ATTACK),         # 18 4-1
        feed.point(A, "a5", ActionType.BLOCK),          # 19 5-1, match to A
    ]


@pytest.fixture
def match() -> Match:
    """Match under default indoor scoring."""
    return make_match()


@pytest.fixture
def short_match() -> Match:
    return make_match(short_scoring())


@pytest.fixture
def feed() -> EventFeed:
    return EventFeed()


@pytest.fixture
def match_events(feed: EventFeed) -> list[Event]:
    return two_set_events(feed)


@pytest.fixture
def played_ledger(short_match, match_events):
    """Ledger of the finished two-set match."""
    from volleyscout.recording.recorder import load

    return load(short_match, match_events)
