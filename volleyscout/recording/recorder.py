"""Ledger-level recording operations."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from volleyscout.core.errors import CorruptLedgerError, EventRejected
from volleyscout.core.ledger import Ledger
from volleyscout.core.models import Event, Match, MatchState
from volleyscout.recording.state_machine import transition

logger = logging.getLogger(__name__)


def new_ledger(match: Match) -> Ledger:
    """Empty ledger for a match that has not started."""
    return Ledger(match=match)


def apply(ledger: Ledger, event: Event) -> Ledger:
    """Validate ``event`` and return the next ledger version.

    The event is either fully applied (appended and reflected in the new
    state) or rejected with an ``EventRejected`` subclass, in which case
    ``ledger`` stays the current version.
    """
    try:
        state, stamped = transition(ledger.state, event, ledger.match)
    except EventRejected as e:
        logger.info(e.message)
        raise
    return ledger.appended(stamped, state)


def load(match: Match, events: Iterable[Event]) -> Ledger:
    """Replay an event stream from an empty state.

    A stream that cannot be replayed is a structural problem rather than a
    bad submission, so rejections surface as ``CorruptLedgerError`` naming
    the offending sequence number.
    """
    ledger = new_ledger(match)
    for event in events:
        try:
            ledger = apply(ledger, event)
        except EventRejected as e:
            raise CorruptLedgerError(e.sequence, e.reason) from e

    logger.debug(
        "Replayed %d events for match %s (set %d, %s)",
        len(ledger),
        match.match_id,
        ledger.state.set_number,
        ledger.state.phase.value,
    )
    return ledger


def replay(match: Match, events: Iterable[Event]) -> MatchState:
    """Final state after replaying ``events``."""
    return load(match, events).state
