"""Event-driven match state machine.

``transition`` validates one event against the current ``MatchState`` and
returns the next state together with the event stamped with its phase and
rotation tags. It never mutates its inputs; a rejected event raises one of
the ``EventRejected`` subclasses and leaves nothing changed.
"""

from __future__ import annotations

import logging
from dataclasses import replace

from volleyscout.core.config import ScoringConfig
from volleyscout.core.errors import (
    InvalidEventSequence,
    InvalidRotationState,
    SetAlreadyClosed,
    UnknownPlayer,
)
from volleyscout.core.models import (
    ActionType,
    ErrorKind,
    Evaluation,
    Event,
    EventType,
    Match,
    MatchPhase,
    MatchState,
    RallyPhase,
    Rotation,
    Score,
    SetResult,
    SubstitutionRecord,
    TeamSide,
)

logger = logging.getLogger(__name__)


def transition(state: MatchState, event: Event, match: Match) -> tuple[MatchState, Event]:
    """Apply one event to ``state``.

    Args:
        state: Current recorder state.
        event: Candidate event.
        match: Rosters and scoring rules.

    Returns:
        (next state, stamped event)

    Raises:
        InvalidEventSequence, UnknownPlayer, SetAlreadyClosed,
        InvalidRotationState
    """
    event = _normalized(event)
    _check_sequence(state, event)

    if event.event_type is EventType.SET_START:
        return _start_set(state, event, match)

    _check_target_set(state, event)

    if event.event_type is EventType.POINT:
        return _score_rally(state, event, match)
    elif event.event_type is EventType.ERROR:
        return _score_rally(state, event, match)
    elif event.event_type is EventType.SUBSTITUTION:
        return _substitute(state, event, match)
    elif event.event_type is EventType.SIDE_OUT:
        return _side_out(state, event)
    elif event.event_type is EventType.SET_END:
        return _end_set(state, event, match.scoring)

    raise InvalidEventSequence(event.sequence, f"unsupported event type {event.event_type!r}")


# =============================================================================
# Validation helpers
# =============================================================================


def _normalized(event: Event) -> Event:
    """Coerce enum-valued fields given as plain values, e.g. ``team="a"``."""
    try:
        event_type = EventType(event.event_type)
        team = TeamSide(event.team) if event.team is not None else None
        action = ActionType(event.action) if event.action is not None else None
        outcome = Evaluation(event.outcome) if event.outcome is not None else None
        error_kind = ErrorKind(event.error_kind) if event.error_kind is not None else None
    except ValueError as e:
        raise InvalidEventSequence(event.sequence, str(e)) from e

    if error_kind is not None and event_type is not EventType.ERROR:
        raise InvalidEventSequence(event.sequence, "only an error can carry an error kind")

    return replace(
        event,
        event_type=event_type,
        team=team,
        action=action,
        outcome=outcome,
        error_kind=error_kind,
    )


def _check_sequence(state: MatchState, event: Event) -> None:
    last = state.last_sequence
    if last is not None and event.sequence <= last:
        raise InvalidEventSequence(
            event.sequence,
            f"sequence must be greater than {last}",
            hint="Events must be submitted in strictly increasing sequence order",
        )


def _check_target_set(state: MatchState, event: Event) -> None:
    if state.is_closed(event.set_number):
        raise SetAlreadyClosed(event.sequence, f"set {event.set_number} is closed")
    if not state.set_open or event.set_number != state.set_number:
        raise InvalidEventSequence(event.sequence, f"set {event.set_number} is not in progress")


def _check_on_court(state: MatchState, match: Match, team: TeamSide, player_id: str, sequence: int) -> None:
    if player_id not in match.roster(team):
        raise UnknownPlayer(sequence, f"{player_id} is not on the team {team.value} roster")
    if player_id not in state.rotations[team]:
        raise UnknownPlayer(sequence, f"{player_id} is not on court for team {team.value}")


def _check_rotation_tag(event: Event, tag: int | None) -> None:
    if event.rotation is not None and event.rotation != tag:
        raise InvalidRotationState(
            event.sequence,
            f"event is tagged rotation {event.rotation} but the team is in rotation {tag}",
        )


def _check_serve_consistency(state: MatchState, event: Event, team: TeamSide) -> None:
    if event.action is ActionType.SERVE:
        if team is not state.serving:
            raise InvalidEventSequence(event.sequence, f"team {team.value} is not serving")
        server = state.rotations[team].server
        if event.player is not None and event.player != server:
            raise InvalidEventSequence(event.sequence, f"{event.player} is not the server ({server} serves)")
    elif event.action is ActionType.RECEPTION:
        if team is state.serving:
            raise InvalidEventSequence(event.sequence, f"team {team.value} is serving and cannot receive")
        if event.event_type is EventType.POINT:
            raise InvalidEventSequence(event.sequence, "a reception cannot win a rally")


def _default_phase(state: MatchState, team: TeamSide) -> str:
    return (RallyPhase.BREAK if team is state.serving else RallyPhase.SIDE_OUT).value


def _verify_rotations(state: MatchState, sequence: int) -> None:
    for team, rotation in state.rotations.items():
        if not rotation.is_cycle_of(state.lineups[team]):
            raise InvalidRotationState(sequence, f"team {team.value} rotation left its cyclic order")


# =============================================================================
# Transitions
# =============================================================================


def _start_set(state: MatchState, event: Event, match: Match) -> tuple[MatchState, Event]:
    seq = event.sequence
    number = event.set_number

    if state.is_closed(number):
        raise SetAlreadyClosed(seq, f"set {number} is closed")
    if state.phase is MatchPhase.FINISHED:
        raise InvalidEventSequence(seq, "the match is already decided")
    if state.set_open:
        raise InvalidEventSequence(seq, f"set {state.set_number} is still in progress")
    if number != state.set_number + 1 or number > match.scoring.best_of:
        raise InvalidEventSequence(seq, f"expected set {state.set_number + 1}, got set {number}")
    if event.team is None:
        raise InvalidEventSequence(seq, "set start must name the serving team")
    if event.lineups is None:
        raise InvalidRotationState(seq, "set start must carry both starting lineups")

    rotations: dict[TeamSide, Rotation] = {}
    for team in TeamSide:
        lineup = tuple(event.lineup_for(team) or ())
        try:
            rotations[team] = Rotation(lineup)
        except ValueError as e:
            raise InvalidRotationState(seq, f"team {team.value}: {e}") from e
        roster = match.roster(team)
        unknown = [p for p in lineup if p not in roster]
        if unknown:
            raise UnknownPlayer(seq, f"{', '.join(unknown)} not on the team {team.value} roster")

    tag = rotations[event.team].number
    _check_rotation_tag(event, tag)

    new_state = MatchState(
        set_number=number,
        phase=MatchPhase.IN_PLAY,
        serving=event.team,
        rotations=rotations,
        lineups={team: rotation.slots for team, rotation in rotations.items()},
        score=Score(),
        substitutions={team: () for team in TeamSide},
        possession_changed=False,
        completed_sets=state.completed_sets,
        last_sequence=seq,
    )
    logger.info("Set %d started, team %s serving", number, event.team.value)
    return new_state, event.stamped(event.phase, tag)


def _score_rally(state: MatchState, event: Event, match: Match) -> tuple[MatchState, Event]:
    seq = event.sequence
    team = event.team
    if team is None:
        raise InvalidEventSequence(seq, f"{event.event_type.value} must name a team")
    if event.player is not None:
        _check_on_court(state, match, team, event.player, seq)
    _check_serve_consistency(state, event, team)

    tag = state.rotations[team].number
    _check_rotation_tag(event, tag)
    phase = event.phase or _default_phase(state, team)

    winner = team if event.event_type is EventType.POINT else team.opponent
    rotations = dict(state.rotations)
    serving = state.serving
    changed = winner is not serving
    if changed:
        # Side-out: the receiving team gains serve and rotates
        rotations[winner] = rotations[winner].advanced()
        serving = winner

    new_state = replace(
        state,
        score=state.score.incremented(winner),
        rotations=rotations,
        serving=serving,
        possession_changed=changed,
        last_sequence=seq,
    )
    _verify_rotations(new_state, seq)
    return _close_if_won(new_state, match.scoring), event.stamped(phase, tag)


def _substitute(state: MatchState, event: Event, match: Match) -> tuple[MatchState, Event]:
    seq = event.sequence
    team = event.team
    if team is None or event.player is None or event.target_player is None:
        raise InvalidEventSequence(seq, "substitution needs a team, an outgoing and an incoming player")

    outgoing, incoming = event.player, event.target_player
    _check_on_court(state, match, team, outgoing, seq)
    if incoming not in match.roster(team):
        raise UnknownPlayer(seq, f"{incoming} is not on the team {team.value} roster")
    if incoming in state.rotations[team]:
        raise UnknownPlayer(seq, f"{incoming} is already on court")

    records = state.substitutions.get(team, ())
    if len(records) >= match.scoring.max_substitutions:
        raise InvalidEventSequence(
            seq, f"team {team.value} already made {len(records)} substitutions this set"
        )
    if any(r.outgoing == outgoing for r in records):
        raise UnknownPlayer(seq, f"{outgoing} was already replaced this set")
    if any(r.incoming == incoming for r in records):
        raise UnknownPlayer(seq, f"{incoming} already entered as a replacement this set")
    enforced = next((r.outgoing for r in records if r.incoming == outgoing), None)
    if enforced is not None and enforced != incoming:
        raise UnknownPlayer(seq, f"{outgoing} can only be replaced by {enforced}")

    tag = state.rotations[team].number
    _check_rotation_tag(event, tag)
    phase = event.phase or _default_phase(state, team)

    lineup = state.lineups[team]
    slot = lineup.index(outgoing)
    new_state = replace(
        state,
        rotations={**state.rotations, team: state.rotations[team].substituted(outgoing, incoming)},
        lineups={**state.lineups, team: lineup[:slot] + (incoming,) + lineup[slot + 1:]},
        substitutions={**state.substitutions, team: records + (SubstitutionRecord(outgoing, incoming),)},
        possession_changed=False,
        last_sequence=seq,
    )
    _verify_rotations(new_state, seq)
    return new_state, event.stamped(phase, tag)


def _side_out(state: MatchState, event: Event) -> tuple[MatchState, Event]:
    seq = event.sequence
    if not state.possession_changed:
        raise InvalidEventSequence(seq, "side-out must immediately follow a change of possession")
    if event.team is None or event.team is not state.serving:
        label = event.team.value if event.team is not None else "none"
        raise InvalidEventSequence(seq, f"team {label} did not gain serve")

    rotation = state.rotations[state.serving]
    if event.player is not None and event.player != rotation.server:
        raise InvalidRotationState(
            seq, f"{event.player} is not in position 1 ({rotation.server} serves)"
        )
    _check_rotation_tag(event, rotation.number)

    new_state = replace(state, possession_changed=False, last_sequence=seq)
    return new_state, event.stamped(event.phase or RallyPhase.SIDE_OUT.value, rotation.number)


def _end_set(state: MatchState, event: Event, scoring: ScoringConfig) -> tuple[MatchState, Event]:
    winner = event.team
    tag = state.rotations[winner].number if winner is not None else None
    _check_rotation_tag(event, tag)

    new_state = _close_set(replace(state, last_sequence=event.sequence), winner, scoring)
    return new_state, event.stamped(event.phase, tag)


# =============================================================================
# Set lifecycle
# =============================================================================


def _close_if_won(state: MatchState, scoring: ScoringConfig) -> MatchState:
    target = scoring.target_for(state.set_number)
    for team in TeamSide:
        if state.score.for_team(team) >= target and state.score.lead(team) >= scoring.min_margin:
            return _close_set(state, team, scoring)
    return state


def _close_set(state: MatchState, winner: TeamSide | None, scoring: ScoringConfig) -> MatchState:
    result = SetResult(set_number=state.set_number, score=state.score, winner=winner)
    closed = replace(state, completed_sets=state.completed_sets + (result,), possession_changed=False)

    decided = winner is not None and closed.sets_won(winner) >= scoring.sets_to_win
    if decided or state.set_number >= scoring.best_of:
        phase = MatchPhase.FINISHED
    else:
        phase = MatchPhase.AWAITING_SET

    logger.info(
        "Set %d closed at %s, winner: %s",
        state.set_number,
        state.score,
        winner.value if winner else "none",
    )
    return replace(closed, phase=phase)
