"""Match file persistence."""

from volleyscout.storage.match_store import (
    MatchStore,
    load_match,
    read_match_file,
    save_match,
)
from volleyscout.storage.schemas import EventModel, MatchFile, PlayerModel, RosterModel

__all__ = [
    "EventModel",
    "MatchFile",
    "MatchStore",
    "PlayerModel",
    "RosterModel",
    "load_match",
    "read_match_file",
    "save_match",
]
