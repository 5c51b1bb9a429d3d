"""Match result rules — pure validation and ranking, no I/O."""

from src.es_common.enums import MatchStatus
from src.es_common.errors import (
    DrawNotAllowedError,
    InvalidWinnerError,
    MatchAlreadyCompletedError,
    MatchLockedError,
    MatchNotReadyError,
)
from src.es_match.domain.models import Match

_MATCH_TRANSITIONS: dict[MatchStatus, frozenset[MatchStatus]] = {
    MatchStatus.SCHEDULED: frozenset({MatchStatus.COMPLETED, MatchStatus.DISPUTED}),
    MatchStatus.DISPUTED: frozenset({MatchStatus.COMPLETED}),
    MatchStatus.COMPLETED: frozenset(),
}


def can_transition(current: MatchStatus | str, target: MatchStatus | str) -> bool:
    return MatchStatus(target) in _MATCH_TRANSITIONS[MatchStatus(current)]


def ensure_match_transition(match: Match, target: MatchStatus) -> None:
    """Leaving COMPLETED is MatchAlreadyCompleted; any other illegal move is MatchLocked."""
    if can_transition(match.status, target):
        return
    if match.status == MatchStatus.COMPLETED:
        raise MatchAlreadyCompletedError(match.id)
    raise MatchLockedError(match.id)


def ensure_scorable(match: Match) -> None:
    """Participant reporting. A DISPUTED match waits for an admin, as does a locked one."""
    ensure_match_transition(match, MatchStatus.COMPLETED)
    if match.locked or match.status == MatchStatus.DISPUTED:
        raise MatchLockedError(match.id)
    if not match.is_ready:
        raise MatchNotReadyError(match.id)


def ensure_disputable(match: Match) -> None:
    ensure_match_transition(match, MatchStatus.DISPUTED)
    if match.locked:
        raise MatchLockedError(match.id)


def decide_winner(match: Match, score_a: int, score_b: int) -> str:
    """Higher score wins; equal scores are rejected."""
    if score_a == score_b:
        raise DrawNotAllowedError()
    winner = match.participant_a_id if score_a > score_b else match.participant_b_id
    if winner is None:
        raise MatchNotReadyError(match.id)
    return winner


def ensure_resolvable(match: Match, winner_id: str, score_a: int, score_b: int) -> None:
    """Admin resolution: the declared winner must be a participant and agree with the scores."""
    ensure_match_transition(match, MatchStatus.COMPLETED)
    if not match.is_ready:
        raise MatchNotReadyError(match.id)
    if not match.has_participant(winner_id):
        raise InvalidWinnerError(winner_id)
    if decide_winner(match, score_a, score_b) != winner_id:
        raise InvalidWinnerError(winner_id)


def round_complete(matches: list[Match], round_number: int) -> bool:
    in_round = [m for m in matches if m.round == round_number]
    return bool(in_round) and all(m.is_completed for m in in_round)


def finishing_order(matches: list[Match]) -> list[str]:
    """Participants ordered by finishing rank for a fully played bracket.

    Rank 1 is the final's winner and rank 2 its loser. After that come the
    losers of each earlier round, later rounds first, ties broken by
    match_number. Bye matches have no loser and contribute nothing.
    """
    if not matches:
        return []
    final = next((m for m in matches if m.is_final), None)
    if final is None or final.winner_id is None:
        return []

    order = [final.winner_id]
    if final.loser_id is not None:
        order.append(final.loser_id)

    earlier = sorted(
        (m for m in matches if not m.is_final),
        key=lambda m: (-m.round, m.match_number),
    )
    for match in earlier:
        loser = match.loser_id
        if loser is not None:
            order.append(loser)
    return order
