"""Exhaustive tests for the tournament lifecycle state machine."""

import itertools

import pytest

from src.es_common.enums import TournamentStatus
from src.es_common.errors import InvalidTournamentStateError
from src.es_tournament.domain.state import can_transition, ensure_transition, is_terminal

S = TournamentStatus

ALLOWED = {
    (S.UPCOMING, S.ONGOING),
    (S.UPCOMING, S.CANCELLED),
    (S.UPCOMING, S.POSTPONED),
    (S.POSTPONED, S.UPCOMING),
    (S.POSTPONED, S.CANCELLED),
    (S.ONGOING, S.COMPLETED),
}


@pytest.mark.parametrize("current,target", list(itertools.product(S, S)))
def test_transition_table(current: TournamentStatus, target: TournamentStatus) -> None:
    assert can_transition(current, target) is ((current, target) in ALLOWED)


def test_string_values_accepted() -> None:
    assert can_transition("UPCOMING", "ONGOING")
    assert not can_transition("ONGOING", "CANCELLED")


def test_ensure_transition_raises() -> None:
    with pytest.raises(InvalidTournamentStateError) as exc_info:
        ensure_transition(S.COMPLETED, S.UPCOMING)
    assert "COMPLETED" in exc_info.value.message
    assert exc_info.value.http_status == 422


def test_terminal_states() -> None:
    assert is_terminal(S.COMPLETED)
    assert is_terminal(S.CANCELLED)
    assert not is_terminal(S.UPCOMING)
    assert not is_terminal(S.POSTPONED)
    assert not is_terminal(S.ONGOING)


def test_leaving_terminal_state_says_so() -> None:
    with pytest.raises(InvalidTournamentStateError) as exc_info:
        ensure_transition(S.CANCELLED, S.POSTPONED)
    assert exc_info.value.message == "Tournament is already CANCELLED"


def test_illegal_move_between_live_states() -> None:
    with pytest.raises(InvalidTournamentStateError) as exc_info:
        ensure_transition(S.ONGOING, S.CANCELLED)
    assert exc_info.value.message == "Tournament cannot move from ONGOING to CANCELLED"
