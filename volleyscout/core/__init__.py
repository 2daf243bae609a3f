"""Core domain models, ledger, errors and configuration."""

from volleyscout.core.models import (
    ActionType,
    ErrorKind,
    Evaluation,
    Event,
    EventType,
    Match,
    MatchPhase,
    MatchState,
    Player,
    RallyPhase,
    Role,
    Roster,
    Rotation,
    Score,
    SetRecord,
    SetResult,
    TeamSide,
)
from volleyscout.core.ledger import Ledger
from volleyscout.core.config import get_config, ScoringConfig, VolleyScoutConfig
from volleyscout.core.errors import (
    AggregationCancelled,
    CorruptLedgerError,
    EventRejected,
    InvalidEventSequence,
    InvalidRotationState,
    SetAlreadyClosed,
    UnknownPlayer,
    VolleyScoutError,
)

__all__ = [
    "ActionType",
    "AggregationCancelled",
    "CorruptLedgerError",
    "ErrorKind",
    "Evaluation",
    "Event",
    "EventRejected",
    "EventType",
    "InvalidEventSequence",
    "InvalidRotationState",
    "Ledger",
    "Match",
    "MatchPhase",
    "MatchState",
    "Player",
    "RallyPhase",
    "Role",
    "Roster",
    "Rotation",
    "Score",
    "ScoringConfig",
    "SetAlreadyClosed",
    "SetRecord",
    "SetResult",
    "TeamSide",
    "UnknownPlayer",
    "VolleyScoutConfig",
    "VolleyScoutError",
    "get_config",
]
