"""Single-elimination bracket planning — pure functions, no I/O.

Given N participants (already in seeding order), plan_bracket lays out the
whole tree in memory:

    rounds       = ceil(log2(N))
    bracket_size = 2 ** rounds
    byes         = bracket_size - N

Match (r, m) feeds (r + 1, ceil(m / 2)), into slot A when m is odd and slot B
when m is even. The final (rounds, 1) feeds nothing.

Round 1 has bracket_size / 2 matches. The first N - bracket_size / 2 of them
get two participants; the remaining `byes` matches get one participant and an
empty slot B, so no round-1 match is ever empty. Each bye match is completed
at planning time and its participant is already written into the next round,
which means the caller only has to bulk-insert the plan.
"""

import math
import uuid
from collections.abc import Callable
from dataclasses import dataclass, field

from src.es_common.enums import MatchStatus
from src.es_common.errors import InsufficientParticipantsError

MIN_PARTICIPANTS = 2


@dataclass
class PlannedMatch:
    id: str
    round: int
    match_number: int
    participant_a_id: str | None = None
    participant_b_id: str | None = None
    winner_id: str | None = None
    status: str = MatchStatus.SCHEDULED.value
    is_bye: bool = False
    next_match_id: str | None = None
    position_in_next_match: int | None = None


@dataclass
class BracketPlan:
    rounds: int
    bracket_size: int
    byes: int
    matches: list[PlannedMatch] = field(default_factory=list)

    def match_at(self, round_number: int, match_number: int) -> PlannedMatch:
        # rounds are laid out contiguously: round r starts after all earlier rounds
        offset = sum(self.bracket_size >> r for r in range(1, round_number))
        return self.matches[offset + match_number - 1]

    @property
    def final(self) -> PlannedMatch:
        return self.matches[-1]

    def round_matches(self, round_number: int) -> list[PlannedMatch]:
        return [m for m in self.matches if m.round == round_number]


def bracket_dimensions(participant_count: int) -> tuple[int, int, int]:
    """Return (rounds, bracket_size, byes) for N participants."""
    if participant_count < MIN_PARTICIPANTS:
        raise InsufficientParticipantsError(MIN_PARTICIPANTS, participant_count)
    rounds = math.ceil(math.log2(participant_count))
    bracket_size = 2**rounds
    return rounds, bracket_size, bracket_size - participant_count


def next_slot(match_number: int) -> tuple[int, int]:
    """(next match_number, position_in_next_match) for a match in any non-final round."""
    return (match_number + 1) // 2, 1 if match_number % 2 == 1 else 2


def _place(target: PlannedMatch, position: int, participant_id: str) -> None:
    if position == 1:
        target.participant_a_id = participant_id
    else:
        target.participant_b_id = participant_id


def plan_bracket(
    participant_ids: list[str],
    id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
) -> BracketPlan:
    """Lay out every match of the tree, wire next pointers and resolve byes.

    Raises:
        InsufficientParticipantsError: fewer than two participants.
    """
    rounds, bracket_size, byes = bracket_dimensions(len(participant_ids))
    plan = BracketPlan(rounds=rounds, bracket_size=bracket_size, byes=byes)

    for round_number in range(1, rounds + 1):
        for match_number in range(1, (bracket_size >> round_number) + 1):
            plan.matches.append(
                PlannedMatch(id=id_factory(), round=round_number, match_number=match_number)
            )

    for match in plan.matches:
        if match.round == rounds:
            continue
        next_number, position = next_slot(match.match_number)
        match.next_match_id = plan.match_at(match.round + 1, next_number).id
        match.position_in_next_match = position

    by_id = {m.id: m for m in plan.matches}
    first_round = plan.round_matches(1)
    full_matches = len(first_round) - byes
    remaining = iter(participant_ids)
    for index, match in enumerate(first_round):
        participant_id = next(remaining)
        match.participant_a_id = participant_id
        if index < full_matches:
            match.participant_b_id = next(remaining)
            continue
        match.is_bye = True
        match.winner_id = participant_id
        match.status = MatchStatus.COMPLETED.value
        # byes exist only when rounds >= 2, so a bye match always has a next match
        if match.next_match_id is not None and match.position_in_next_match is not None:
            _place(by_id[match.next_match_id], match.position_in_next_match, participant_id)

    return plan
