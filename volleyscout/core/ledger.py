"""Append-only event ledger.

A ``Ledger`` is an immutable version of the match log: appending returns a
new ledger and leaves the receiver untouched, so readers holding a version
never observe a partially appended event.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import overload

from volleyscout.core.models import Event, Match, MatchState, SetRecord


@dataclass(frozen=True)
class Ledger:
    """Match identity, accepted events and the state they produce."""

    match: Match
    events: tuple[Event, ...] = ()
    state: MatchState = field(default_factory=MatchState)

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self) -> Iterator[Event]:
        return iter(self.events)

    @overload
    def __getitem__(self, index: int) -> Event: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[Event, ...]: ...

    def __getitem__(self, index: int | slice) -> Event | tuple[Event, ...]:
        return self.events[index]

    @property
    def version(self) -> int:
        """Number of accepted events; identifies this ledger version."""
        return len(self.events)

    @property
    def last_sequence(self) -> int | None:
        return self.events[-1].sequence if self.events else None

    def appended(self, event: Event, state: MatchState) -> Ledger:
        """Return a new version with ``event`` appended and ``state`` as its state.

        Callers are expected to have validated the event; see
        ``volleyscout.recording.recorder.apply``.
        """
        return Ledger(match=self.match, events=self.events + (event,), state=state)

    def prefix(self, length: int) -> tuple[Event, ...]:
        """First ``length`` events."""
        return self.events[:length]

    def for_set(self, set_number: int) -> tuple[Event, ...]:
        """Events belonging to one set, in ledger order."""
        return tuple(e for e in self.events if e.set_number == set_number)

    def set_numbers(self) -> list[int]:
        numbers: list[int] = []
        for event in self.events:
            if not numbers or numbers[-1] != event.set_number:
                numbers.append(event.set_number)
        return numbers

    def sets(self) -> list[SetRecord]:
        """Sets of the match in play order."""
        results = {r.set_number: r for r in self.state.completed_sets}
        records = []
        for number in self.set_numbers():
            result = results.get(number)
            records.append(
                SetRecord(
                    set_number=number,
                    events=self.for_set(number),
                    closed=result is not None,
                    winner=result.winner if result else None,
                )
            )
        return records
