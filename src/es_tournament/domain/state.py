"""Tournament lifecycle state machine.

    UPCOMING  -> ONGOING | CANCELLED | POSTPONED
    POSTPONED -> UPCOMING | CANCELLED
    ONGOING   -> COMPLETED

COMPLETED and CANCELLED are terminal.
"""

from src.es_common.enums import TournamentStatus
from src.es_common.errors import InvalidTournamentStateError

TRANSITIONS: dict[TournamentStatus, frozenset[TournamentStatus]] = {
    TournamentStatus.UPCOMING: frozenset(
        {TournamentStatus.ONGOING, TournamentStatus.CANCELLED, TournamentStatus.POSTPONED}
    ),
    TournamentStatus.POSTPONED: frozenset(
        {TournamentStatus.UPCOMING, TournamentStatus.CANCELLED}
    ),
    TournamentStatus.ONGOING: frozenset({TournamentStatus.COMPLETED}),
    TournamentStatus.COMPLETED: frozenset(),
    TournamentStatus.CANCELLED: frozenset(),
}


def can_transition(current: TournamentStatus | str, target: TournamentStatus | str) -> bool:
    return TournamentStatus(target) in TRANSITIONS[TournamentStatus(current)]


def is_terminal(status: TournamentStatus | str) -> bool:
    return not TRANSITIONS[TournamentStatus(status)]


def ensure_transition(current: TournamentStatus | str, target: TournamentStatus | str) -> None:
    if can_transition(current, target):
        return
    cur, tgt = TournamentStatus(current).value, TournamentStatus(target).value
    if is_terminal(current):
        raise InvalidTournamentStateError(cur, tgt, f"Tournament is already {cur}")
    raise InvalidTournamentStateError(cur, tgt)
