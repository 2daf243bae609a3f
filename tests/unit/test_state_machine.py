"""Unit tests for the recorder state machine and ledger operations."""

from __future__ import annotations

import pytest

from volleyscout.core.config import ScoringConfig
from volleyscout.core.errors import (
    CorruptLedgerError,
    EventRejected,
    InvalidEventSequence,
    InvalidRotationState,
    SetAlreadyClosed,
    UnknownPlayer,
)
from volleyscout.core.models import (
    ActionType,
    ErrorKind,
    Evaluation,
    EventType,
    MatchPhase,
    Score,
    TeamSide,
)
from volleyscout.recording.recorder import apply, load, new_ledger, replay

from conftest import LINEUP_A, LINEUP_B, EventFeed, make_match

A, B = TeamSide.A, TeamSide.B


def _record(match, events):
    ledger = new_ledger(match)
    for event in events:
        ledger = apply(ledger, event)
    return ledger


class TestScenarios:
    """End-to-end recording scenarios."""

    def test_side_out_then_substitution(self, match, feed) -> None:
        """Two A points, a B side-out point, then a B substitution."""
        ledger = _record(match, [
            feed.set_start(A),
            feed.point(A),
            feed.point(A),
            feed.point(B),
            feed.side_out(B),
            feed.sub(B, "b4", "b7"),
        ])
        state = ledger.state

        assert state.score == Score(2, 1)
        assert state.serving is B
        assert state.rotations[B].advances == 1
        assert state.rotations[B].slots == ("b2", "b3", "b7", "b5", "b6", "b1")
        assert "b7" in state.rotations[B]
        assert "b4" in state.bench(match.roster(B), B)
        assert state.rotations[A].slots == LINEUP_A

    def test_unknown_player_leaves_ledger_unchanged(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A), feed.point(A, "a1")])

        with pytest.raises(UnknownPlayer) as exc_info:
            apply(ledger, feed.point(A, "zz9"))

        assert exc_info.value.sequence == 3
        assert len(ledger) == 2

    def test_player_from_other_team_rejected(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A)])
        with pytest.raises(UnknownPlayer, match="team a roster"):
            apply(ledger, feed.point(A, "b2"))

    def test_bench_player_cannot_score(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A)])
        with pytest.raises(UnknownPlayer, match="not on court"):
            apply(ledger, feed.point(A, "a8"))

    def test_set_closes_exactly_at_target(self, short_match, feed) -> None:
        ledger = _record(short_match, [feed.set_start(A)] + [feed.point(A) for _ in range(4)])
        assert ledger.state.set_open
        assert ledger.state.score == Score(4, 0)

        ledger = apply(ledger, feed.point(A))
        assert not ledger.state.set_open
        assert ledger.state.phase is MatchPhase.AWAITING_SET
        assert ledger.state.completed_sets[0].winner is A
        assert ledger.state.completed_sets[0].score == Score(5, 0)

        with pytest.raises(SetAlreadyClosed):
            apply(ledger, feed.point(B))
        with pytest.raises(SetAlreadyClosed):
            apply(ledger, feed.set_start(B, set_number=1))


class TestSetClosing:
    """Tests for set and match closing rules."""

    def test_margin_required(self, short_match, feed) -> None:
        events = [feed.set_start(A)]
        events += [feed.point(A) for _ in range(4)]
        events += [feed.point(B) for _ in range(4)]
        events.append(feed.point(A))
        ledger = _record(short_match, events)

        assert ledger.state.score == Score(5, 4)
        assert ledger.state.set_open

        ledger = apply(ledger, feed.point(A))
        assert not ledger.state.set_open
        assert ledger.state.completed_sets[-1].score == Score(6, 4)

    def test_deciding_set_uses_its_own_target(self, short_match, feed) -> None:
        events = [feed.set_start(A)] + [feed.point(A) for _ in range(5)]
        events += [feed.set_start(B)] + [feed.point(B) for _ in range(5)]
        events += [feed.set_start(A)] + [feed.point(A) for _ in range(3)]
        state = replay(short_match, events)

        assert state.phase is MatchPhase.FINISHED
        assert [r.score for r in state.completed_sets] == [Score(5, 0), Score(0, 5), Score(3, 0)]
        assert state.winner is A

    def test_no_set_after_match_decided(self, played_ledger, feed) -> None:
        assert played_ledger.state.phase is MatchPhase.FINISHED
        feed.sequence = played_ledger.last_sequence
        with pytest.raises(InvalidEventSequence, match="already decided"):
            apply(played_ledger, feed.set_start(A, set_number=3))

    def test_set_end_awards_set(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A), feed.point(B), feed.set_end(B)])
        assert ledger.state.phase is MatchPhase.AWAITING_SET
        assert ledger.state.completed_sets[0].winner is B
        assert ledger.state.completed_sets[0].score == Score(0, 1)

    def test_set_end_without_winner(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A), feed.set_end()])
        assert ledger.state.completed_sets[0].winner is None
        assert ledger.state.sets_won(A) == ledger.state.sets_won(B) == 0

    def test_set_numbers_must_follow(self, match, feed) -> None:
        with pytest.raises(InvalidEventSequence, match="expected set 1"):
            apply(new_ledger(match), feed.set_start(A, set_number=2))

    def test_event_before_set_start(self, match, feed) -> None:
        feed.set_number = 1
        with pytest.raises(InvalidEventSequence, match="not in progress"):
            apply(new_ledger(match), feed.point(A))

    def test_second_set_start_while_open(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A)])
        with pytest.raises(InvalidEventSequence, match="still in progress"):
            apply(ledger, feed.set_start(A))


class TestSequencing:
    """Tests for ordering and stamping."""

    def test_sequence_must_increase(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A), feed.point(A)])
        feed.sequence = 1
        with pytest.raises(InvalidEventSequence, match="greater than 2"):
            apply(ledger, feed.point(A))

    def test_rejected_event_keeps_previous_version(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A), feed.point(A)])
        with pytest.raises(EventRejected):
            apply(ledger, feed.point(A, "nobody"))
        assert ledger.state.score == Score(1, 0)
        assert ledger.state.last_sequence == 2

    def test_default_phase_stamps(self, played_ledger) -> None:
        events = {e.sequence: e for e in played_ledger}
        assert events[2].phase == "break"
        assert events[4].phase == "side_out"
        assert events[9].phase == "break"
        assert events[14].phase == "side_out"

    def test_rotation_tag_is_taken_before_advance(self, played_ledger) -> None:
        events = {e.sequence: e for e in played_ledger}
        assert events[4].rotation == 1
        assert events[5].rotation == 2
        assert events[14].rotation == 1
        assert events[15].rotation == 2

    def test_caller_phase_kept(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A), feed.point(A, phase="transition")])
        assert ledger[-1].phase == "transition"

    def test_rotation_tag_mismatch(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A)])
        with pytest.raises(InvalidRotationState, match="tagged rotation 3"):
            apply(ledger, feed.point(A, rotation=3))

    def test_determinism(self, short_match, match_events) -> None:
        first = load(short_match, match_events)
        second = load(short_match, match_events)
        assert first.events == second.events
        assert first.state == second.state


class TestPlainValues:
    """Events built with plain strings instead of enum members."""

    def test_string_team_scores_for_that_team(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A)])
        ledger = apply(ledger, feed.point("a"))

        assert ledger.state.score == Score(1, 0)
        assert ledger.state.serving is A
        assert ledger[-1].team is A

    def test_string_fields_are_stored_as_enums(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start("a"), feed.error("b", "b1", "reception", outcome="=")])
        stored = ledger[-1]

        assert stored.event_type is EventType.ERROR
        assert stored.team is B
        assert stored.action is ActionType.RECEPTION
        assert stored.outcome is Evaluation.ERROR
        assert ledger.state.score == Score(1, 0)

    def test_unknown_team_is_rejected(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A)])
        with pytest.raises(InvalidEventSequence, match="'c'"):
            apply(ledger, feed.point("c", "a1"))
        assert len(ledger) == 1

    @pytest.mark.parametrize(
        "kwargs",
        [{"action": "smash"}, {"outcome": "?"}, {"error_kind": "sloppy"}],
    )
    def test_unknown_values_are_rejected(self, match, feed, kwargs) -> None:
        ledger = _record(match, [feed.set_start(A)])
        with pytest.raises(InvalidEventSequence):
            apply(ledger, feed.error(B, **kwargs))

    def test_error_kind_only_on_errors(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A)])
        with pytest.raises(InvalidEventSequence, match="error kind"):
            apply(ledger, feed.point(A, error_kind=ErrorKind.FORCED))


class TestServeAndReception:
    """Tests for serve and reception consistency."""

    def test_serve_from_receiving_team(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A)])
        with pytest.raises(InvalidEventSequence, match="not serving"):
            apply(ledger, feed.point(B, "b1", ActionType.SERVE))

    def test_serve_by_wrong_player(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A)])
        with pytest.raises(InvalidEventSequence, match="a1 serves"):
            apply(ledger, feed.point(A, "a2", ActionType.SERVE))

    def test_reception_by_serving_team(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A)])
        with pytest.raises(InvalidEventSequence, match="cannot receive"):
            apply(ledger, feed.error(A, "a3", ActionType.RECEPTION))

    def test_reception_cannot_win_rally(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A)])
        with pytest.raises(InvalidEventSequence, match="cannot win"):
            apply(ledger, feed.point(B, "b3", ActionType.RECEPTION))

    def test_reception_error(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A), feed.error(B, "b3", ActionType.RECEPTION)])
        assert ledger.state.score == Score(1, 0)
        assert ledger.state.serving is A


class TestSideOut:
    """Tests for the side-out marker."""

    def test_requires_possession_change(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A), feed.point(A)])
        with pytest.raises(InvalidEventSequence, match="change of possession"):
            apply(ledger, feed.side_out(A))

    def test_must_name_new_serving_team(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A), feed.point(B)])
        with pytest.raises(InvalidEventSequence, match="did not gain serve"):
            apply(ledger, feed.side_out(A))

    def test_player_must_be_new_server(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A), feed.point(B)])
        with pytest.raises(InvalidRotationState, match="b2 serves"):
            apply(ledger, feed.side_out(B, "b1"))

    def test_only_once(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A), feed.point(B), feed.side_out(B, "b2")])
        with pytest.raises(InvalidEventSequence):
            apply(ledger, feed.side_out(B))

    def test_possession_change_after_error(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A), feed.error(A, "a1", ActionType.SERVE)])
        assert ledger.state.serving is B
        assert ledger.state.possession_changed
        ledger = apply(ledger, feed.side_out(B, "b2"))
        assert not ledger.state.possession_changed


class TestSubstitutions:
    """Tests for substitution rules."""

    def test_outgoing_must_be_on_court(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A)])
        with pytest.raises(UnknownPlayer, match="not on court"):
            apply(ledger, feed.sub(A, "a8", "a9"))

    def test_incoming_already_on_court(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A)])
        with pytest.raises(UnknownPlayer, match="already on court"):
            apply(ledger, feed.sub(A, "a1", "a2"))

    def test_incoming_must_be_on_roster(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A)])
        with pytest.raises(UnknownPlayer, match="roster"):
            apply(ledger, feed.sub(A, "a1", "b7"))

    def test_replacement_can_only_swap_back(self, match, feed) -> None:
        ledger = _record(match, [feed.set_start(A), feed.sub(A, "a1", "a7")])
        with pytest.raises(UnknownPlayer, match="only be replaced by a1"):
            apply(ledger, feed.sub(A, "a7", "a8"))

        ledger = apply(ledger, feed.sub(A, "a7", "a1"))
        assert ledger.state.rotations[A].slots == LINEUP_A

        with pytest.raises(UnknownPlayer, match="already replaced"):
            apply(ledger, feed.sub(A, "a1", "a7"))

    def test_substitution_limit(self, feed) -> None:
        match = make_match(ScoringConfig(max_substitutions=1))
        ledger = _record(match, [feed.set_start(A), feed.sub(A, "a1", "a7")])
        with pytest.raises(InvalidEventSequence, match="already made 1"):
            apply(ledger, feed.sub(A, "a2", "a8"))

    def test_limit_resets_each_set(self, feed) -> None:
        match = make_match(
            ScoringConfig(set_target=5, deciding_set_target=3, best_of=3, max_substitutions=1)
        )
        events = [feed.set_start(A), feed.sub(B, "b1", "b7")]
        events += [feed.point(A) for _ in range(5)]
        events += [feed.set_start(A), feed.sub(B, "b2", "b8")]
        ledger = _record(match, events)
        assert "b8" in ledger.state.rotations[B]
        assert "b1" in ledger.state.rotations[B]

    def test_substituted_player_rotates(self, match, feed) -> None:
        ledger = _record(match, [
            feed.set_start(A),
            feed.sub(B, "b2", "b7"),
            feed.point(B),
        ])
        assert ledger.state.rotations[B].server == "b7"


class TestLoad:
    """Tests for replaying stored event streams."""

    def test_invalid_stream_is_corrupt(self, short_match, match_events) -> None:
        events = list(match_events)
        events[2], events[3] = events[3], events[2]
        with pytest.raises(CorruptLedgerError) as exc_info:
            load(short_match, events)
        assert exc_info.value.sequence == 3

    def test_set_start_lineup_must_be_complete(self, match, feed) -> None:
        event = feed.set_start(A, lineups=(LINEUP_A[:5], LINEUP_B))
        with pytest.raises(InvalidRotationState, match="team a"):
            apply(new_ledger(match), event)

    def test_ledger_sets(self, played_ledger) -> None:
        sets = played_ledger.sets()
        assert [s.set_number for s in sets] == [1, 2]
        assert [s.score for s in sets] == [Score(5, 3), Score(5, 1)]
        assert all(s.closed for s in sets)
        assert played_ledger.state.winner is A
