"""Payout table rules and prize distribution planning (integer paise only)."""

from dataclasses import dataclass

from src.es_common.errors import InvalidPayoutTableError, PayoutFailedError
from src.es_common.money import calculate_fee, ceil_div
from src.es_tournament.domain.models import PayoutPosition

FLOOR_PARTICIPANTS = 2


@dataclass(frozen=True)
class PrizeAward:
    position: int
    participant_id: str
    amount: int


@dataclass(frozen=True)
class Settlement:
    """Where the collected entry fees go once the prizes are paid."""

    collected: int
    prize_pool: int
    platform_fee: int
    host_profit: int


def validate_payout_table(prize_pool: int, payouts: list[PayoutPosition]) -> list[PayoutPosition]:
    """Return the table sorted by position.

    Positions must be exactly 1..k, amounts positive, and the sum equal to the
    prize pool. A zero prize pool takes an empty table.
    """
    if prize_pool < 0:
        raise InvalidPayoutTableError("prize pool cannot be negative")
    ordered = sorted(payouts, key=lambda p: p.position)
    if prize_pool == 0:
        if ordered:
            raise InvalidPayoutTableError("a zero prize pool cannot have payouts")
        return ordered
    if not ordered:
        raise InvalidPayoutTableError("prize pool requires at least one payout position")

    positions = [p.position for p in ordered]
    if positions != list(range(1, len(ordered) + 1)):
        raise InvalidPayoutTableError(f"positions must be contiguous from 1, got {positions}")
    if any(p.amount <= 0 for p in ordered):
        raise InvalidPayoutTableError("payout amounts must be positive")
    total = sum(p.amount for p in ordered)
    if total != prize_pool:
        raise InvalidPayoutTableError(f"payouts sum to {total}, prize pool is {prize_pool}")
    return ordered


def min_participants_required(entry_fee: int, prize_pool: int, payout_count: int) -> int:
    """ceil(prize_pool / entry_fee) for paid tournaments, never below the payout count or 2."""
    by_fees = ceil_div(prize_pool, entry_fee) if entry_fee > 0 else FLOOR_PARTICIPANTS
    return max(by_fees, payout_count, FLOOR_PARTICIPANTS)


def plan_awards(payouts: list[PayoutPosition], ranking: list[str]) -> list[PrizeAward]:
    """Pair payout position p with the participant ranked p.

    Raises:
        PayoutFailedError: fewer ranked participants than payout positions.
    """
    if len(ranking) < len(payouts):
        raise PayoutFailedError(
            f"{len(payouts)} payout positions but only {len(ranking)} ranked participants"
        )
    return [
        PrizeAward(position=p.position, participant_id=ranking[p.position - 1], amount=p.amount)
        for p in sorted(payouts, key=lambda p: p.position)
    ]


def settle(collected: int, prize_pool: int, fee_bps: int) -> Settlement:
    platform_fee = calculate_fee(collected, fee_bps)
    return Settlement(
        collected=collected,
        prize_pool=prize_pool,
        platform_fee=platform_fee,
        host_profit=collected - platform_fee - prize_pool,
    )
