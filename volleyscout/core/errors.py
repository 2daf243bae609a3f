"""Exception hierarchy for VolleyScout."""


class VolleyScoutError(Exception):
    """Base exception for VolleyScout errors."""

    def __init__(self, message: str, hint: str | None = None):
        self.message = message
        self.hint = hint
        super().__init__(message)


class EventRejected(VolleyScoutError):
    """An event failed validation against the current match state.

    Rejections are recoverable: the ledger is left untouched and the caller
    may correct the event and submit it again.
    """

    def __init__(self, sequence: int | None, reason: str, hint: str | None = None):
        self.sequence = sequence
        self.reason = reason
        super().__init__(f"Event #{sequence} rejected: {reason}", hint=hint)


class InvalidEventSequence(EventRejected):
    """Event violates ordering, serve or possession logic."""
    pass


class UnknownPlayer(EventRejected):
    """Player reference is not in the roster or not currently eligible."""
    pass


class SetAlreadyClosed(EventRejected):
    """Event targets a set that has already been closed."""
    pass


class InvalidRotationState(EventRejected):
    """Lineup or rotation reference is not a valid court arrangement."""
    pass


class CorruptLedgerError(VolleyScoutError):
    """A persisted or supplied ledger is internally inconsistent."""

    def __init__(self, sequence: int | None, reason: str):
        self.sequence = sequence
        self.reason = reason
        where = f"at event #{sequence}" if sequence is not None else "in ledger"
        super().__init__(
            f"Corrupt ledger {where}: {reason}",
            hint="The event log cannot be replayed; fix or truncate it at the reported event",
        )


class AggregationCancelled(VolleyScoutError):
    """Aggregation was cancelled before it finished."""
    pass
