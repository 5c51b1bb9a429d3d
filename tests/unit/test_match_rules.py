"""Unit tests for match result rules and finishing order."""

import pytest

from src.es_common.enums import MatchStatus
from src.es_common.errors import (
    DrawNotAllowedError,
    InvalidWinnerError,
    MatchAlreadyCompletedError,
    MatchLockedError,
    MatchNotReadyError,
)
from src.es_match.domain.models import Match
from src.es_match.domain.rules import (
    can_transition,
    decide_winner,
    ensure_disputable,
    ensure_match_transition,
    ensure_resolvable,
    ensure_scorable,
    finishing_order,
    round_complete,
)


def _match(
    match_id: str = "m1",
    round_number: int = 1,
    number: int = 1,
    a: str | None = "p1",
    b: str | None = "p2",
    winner: str | None = None,
    status: str = "SCHEDULED",
    is_bye: bool = False,
    locked: bool = False,
    next_id: str | None = "m-next",
) -> Match:
    return Match(
        id=match_id,
        tournament_id="t-1",
        round=round_number,
        match_number=number,
        participant_a_id=a,
        participant_b_id=b,
        winner_id=winner,
        score_a=None,
        score_b=None,
        status=status,
        is_bye=is_bye,
        locked=locked,
        next_match_id=next_id,
        position_in_next_match=1 if next_id else None,
    )


class TestTransitions:
    def test_allowed(self) -> None:
        assert can_transition("SCHEDULED", "COMPLETED")
        assert can_transition("SCHEDULED", "DISPUTED")
        assert can_transition("DISPUTED", "COMPLETED")

    def test_completed_is_terminal(self) -> None:
        assert not can_transition("COMPLETED", "SCHEDULED")
        assert not can_transition("COMPLETED", "DISPUTED")
        assert not can_transition("DISPUTED", "SCHEDULED")

    def test_leaving_completed_reports_completed(self) -> None:
        with pytest.raises(MatchAlreadyCompletedError):
            ensure_match_transition(_match(status="COMPLETED", winner="p1"), MatchStatus.DISPUTED)

    def test_redispute_is_locked(self) -> None:
        with pytest.raises(MatchLockedError):
            ensure_match_transition(_match(status="DISPUTED"), MatchStatus.DISPUTED)


class TestEnsureDisputable:
    def test_scheduled(self) -> None:
        ensure_disputable(_match())

    def test_locked(self) -> None:
        with pytest.raises(MatchLockedError):
            ensure_disputable(_match(locked=True))

    def test_already_disputed(self) -> None:
        with pytest.raises(MatchLockedError):
            ensure_disputable(_match(status="DISPUTED"))

    def test_completed(self) -> None:
        with pytest.raises(MatchAlreadyCompletedError):
            ensure_disputable(_match(status="COMPLETED", winner="p1"))


class TestEnsureScorable:
    def test_completed_reported_before_locked(self) -> None:
        with pytest.raises(MatchAlreadyCompletedError):
            ensure_scorable(_match(status="COMPLETED", locked=True, winner="p1"))

    def test_locked(self) -> None:
        with pytest.raises(MatchLockedError):
            ensure_scorable(_match(locked=True))

    def test_disputed(self) -> None:
        with pytest.raises(MatchLockedError):
            ensure_scorable(_match(status="DISPUTED"))

    def test_waiting_for_opponent(self) -> None:
        with pytest.raises(MatchNotReadyError):
            ensure_scorable(_match(b=None))

    def test_ready(self) -> None:
        ensure_scorable(_match())


class TestDecideWinner:
    def test_higher_score_wins(self) -> None:
        assert decide_winner(_match(), 3, 1) == "p1"
        assert decide_winner(_match(), 0, 2) == "p2"

    def test_draw_rejected(self) -> None:
        with pytest.raises(DrawNotAllowedError):
            decide_winner(_match(), 2, 2)


class TestEnsureResolvable:
    def test_winner_must_be_participant(self) -> None:
        with pytest.raises(InvalidWinnerError):
            ensure_resolvable(_match(), "stranger", 1, 0)

    def test_winner_must_match_scores(self) -> None:
        with pytest.raises(InvalidWinnerError):
            ensure_resolvable(_match(), "p2", 3, 1)

    def test_disputed_and_locked_allowed(self) -> None:
        ensure_resolvable(_match(status="DISPUTED", locked=True), "p2", 0, 1)

    def test_completed_rejected(self) -> None:
        with pytest.raises(MatchAlreadyCompletedError):
            ensure_resolvable(_match(status="COMPLETED", winner="p1"), "p1", 1, 0)


def test_round_complete() -> None:
    matches = [
        _match("a", 1, 1, status="COMPLETED", winner="p1"),
        _match("b", 1, 2, a="p3", b="p4"),
        _match("c", 2, 1, a="p1", b=None, next_id=None),
    ]
    assert not round_complete(matches, 1)
    matches[1].status = "COMPLETED"
    assert round_complete(matches, 1)
    assert not round_complete(matches, 3)


class TestFinishingOrder:
    def test_five_player_bracket(self) -> None:
        # R1: p1 beats p2, p3/p4/p5 byes. R2: p1 beats p3, p5 beats p4. Final: p5 beats p1.
        matches = [
            _match("r1m1", 1, 1, "p1", "p2", winner="p1", status="COMPLETED"),
            _match("r1m2", 1, 2, "p3", None, winner="p3", status="COMPLETED", is_bye=True),
            _match("r1m3", 1, 3, "p4", None, winner="p4", status="COMPLETED", is_bye=True),
            _match("r1m4", 1, 4, "p5", None, winner="p5", status="COMPLETED", is_bye=True),
            _match("r2m1", 2, 1, "p1", "p3", winner="p1", status="COMPLETED"),
            _match("r2m2", 2, 2, "p4", "p5", winner="p5", status="COMPLETED"),
            _match("final", 3, 1, "p1", "p5", winner="p5", status="COMPLETED", next_id=None),
        ]
        assert finishing_order(matches) == ["p5", "p1", "p3", "p4", "p2"]

    def test_unfinished_final(self) -> None:
        assert finishing_order([_match(next_id=None)]) == []
        assert finishing_order([]) == []

    def test_bye_has_no_loser(self) -> None:
        assert _match(a="p1", b=None, winner="p1", is_bye=True).loser_id is None
