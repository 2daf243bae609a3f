"""Recording session for a single match."""

from __future__ import annotations

import threading
from collections.abc import Iterable

from volleyscout.core.ledger import Ledger
from volleyscout.core.models import Event, Match, MatchState
from volleyscout.recording.recorder import apply, load, new_ledger


class MatchSession:
    """
    Single-writer recording session.

    Responsibilities:
    - Own the current ledger version for one match
    - Apply events one at a time, in arrival order
    - Apply batches atomically
    - Hand out immutable ledger versions to readers
    """

    def __init__(self, match: Match, events: Iterable[Event] = ()):
        self._match = match
        self._lock = threading.Lock()
        self._ledger = load(match, events)

    # ---------------------------------------------------------
    # Readers
    # ---------------------------------------------------------

    @property
    def match(self) -> Match:
        return self._match

    @property
    def ledger(self) -> Ledger:
        """Current ledger version. Safe to hand to concurrent readers."""
        return self._ledger

    @property
    def state(self) -> MatchState:
        return self._ledger.state

    def next_sequence(self) -> int:
        last = self._ledger.last_sequence
        return 1 if last is None else last + 1

    # ---------------------------------------------------------
    # Writer
    # ---------------------------------------------------------

    def record(self, event: Event) -> Ledger:
        """Apply one event and publish the new ledger version."""
        with self._lock:
            self._ledger = apply(self._ledger, event)
            return self._ledger

    def record_many(self, events: Iterable[Event]) -> Ledger:
        """
        Apply a batch of events.
        Atomic: if any event is rejected, no event of the batch is kept.
        """
        with self._lock:
            ledger = self._ledger
            for event in events:
                ledger = apply(ledger, event)
            self._ledger = ledger
            return ledger

    def reset(self) -> None:
        with self._lock:
            self._ledger = new_ledger(self._match)
