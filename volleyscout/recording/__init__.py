"""Event recording: state machine, ledger operations and sessions."""

from volleyscout.recording.recorder import apply, load, new_ledger, replay
from volleyscout.recording.session import MatchSession
from volleyscout.recording.state_machine import transition

__all__ = [
    "MatchSession",
    "apply",
    "load",
    "new_ledger",
    "replay",
    "transition",
]
