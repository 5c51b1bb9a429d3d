"""Unit tests for PrizeDistributor."""

from unittest.mock import AsyncMock

import pytest
from factories import make_match, make_registration, make_tournament

from src.es_common.enums import TxSource
from src.es_common.errors import InvalidTournamentStateError, PayoutFailedError
from src.es_tournament.application.prizes import PrizeDistributor
from src.es_tournament.domain.models import PayoutPosition


def _played_bracket() -> list:  # type: ignore[type-arg]
    """Four players: p1 beats p2, p3 beats p4, p3 wins the final."""
    return [
        make_match(id="a", match_number=1, status="COMPLETED", winner_id="p1", next_match_id="f"),
        make_match(
            id="b",
            match_number=2,
            participant_a_id="p3",
            participant_b_id="p4",
            status="COMPLETED",
            winner_id="p3",
            next_match_id="f",
            position_in_next_match=2,
        ),
        make_match(
            id="f",
            round=2,
            participant_a_id="p1",
            participant_b_id="p3",
            status="COMPLETED",
            winner_id="p3",
            next_match_id=None,
            position_in_next_match=None,
        ),
    ]


def _distributor(tournament, matches=None, registrations=None, ledger=None):  # type: ignore[no-untyped-def]
    tournaments = AsyncMock()
    tournaments.get_tournament_for_update.return_value = tournament
    match_repo = AsyncMock()
    match_repo.list_matches.return_value = matches if matches is not None else _played_bracket()
    registration_repo = AsyncMock()
    registration_repo.list_confirmed.return_value = registrations or [
        make_registration(p) for p in ("p1", "p2", "p3", "p4")
    ]
    distributor = PrizeDistributor(
        tournaments, registration_repo, match_repo, ledger or AsyncMock(), fee_bps=1000
    )
    return distributor, tournaments


class TestDistribute:
    async def test_pays_positions_and_host(self) -> None:
        tournament = make_tournament(
            status="COMPLETED",
            collected=400,
            prize_pool=250,
            payouts=[PayoutPosition(1, 200), PayoutPosition(2, 50)],
        )
        ledger = AsyncMock()
        distributor, tournaments = _distributor(tournament, ledger=ledger)
        db = AsyncMock()

        result = await distributor.distribute(db, "t-1")

        credits = [(c.args[1], c.args[2], c.args[3]) for c in ledger.credit.await_args_list]
        # fee = 40, host profit = 400 - 40 - 250 = 110
        assert credits == [
            ("p3", 200, TxSource.WINNING),
            ("p1", 50, TxSource.WINNING),
            ("host-1", 110, TxSource.HOST_EARNING),
        ]
        assert (result.platform_fee, result.host_profit) == (40, 110)
        tournaments.record_payout.assert_awaited_once_with(db, "t-1", "PAID", 110)
        db.commit.assert_not_awaited()

    async def test_team_prize_goes_to_captain(self) -> None:
        tournament = make_tournament(
            status="COMPLETED", collected=0, prize_pool=100, payouts=[PayoutPosition(1, 100)]
        )
        ledger = AsyncMock()
        registrations = [
            make_registration("p3", payer="captain-3"),
            make_registration("p1", payer="captain-1"),
        ]
        distributor, _ = _distributor(tournament, registrations=registrations, ledger=ledger)

        await distributor.distribute(AsyncMock(), "t-1")

        assert ledger.credit.call_args_list[0].args[1] == "captain-3"
        # host profit is negative here, so nothing else is credited
        assert ledger.credit.await_count == 1

    async def test_already_paid_is_noop(self) -> None:
        ledger = AsyncMock()
        distributor, tournaments = _distributor(
            make_tournament(status="COMPLETED", payout_status="PAID"), ledger=ledger
        )

        result = await distributor.distribute(AsyncMock(), "t-1")

        assert result.already_paid is True
        ledger.credit.assert_not_awaited()
        tournaments.record_payout.assert_not_awaited()

    async def test_requires_completed(self) -> None:
        distributor, _ = _distributor(make_tournament(status="ONGOING"))
        with pytest.raises(InvalidTournamentStateError):
            await distributor.distribute(AsyncMock(), "t-1")

    async def test_not_enough_ranked(self) -> None:
        tournament = make_tournament(
            status="COMPLETED",
            prize_pool=300,
            payouts=[PayoutPosition(i, 100) for i in (1, 2, 3)],
        )
        final_only = [_played_bracket()[2]]
        distributor, _ = _distributor(tournament, matches=final_only)
        with pytest.raises(PayoutFailedError):
            await distributor.distribute(AsyncMock(), "t-1")


class TestDistributeAfterCommit:
    async def test_failure_marks_failed(self) -> None:
        tournament = make_tournament(status="COMPLETED", payouts=[PayoutPosition(1, 250)])
        ledger = AsyncMock()
        ledger.credit.side_effect = RuntimeError("db down")
        distributor, tournaments = _distributor(tournament, ledger=ledger)
        db = AsyncMock()

        assert await distributor.distribute_after_commit(db, "t-1") is None

        db.rollback.assert_awaited_once()
        tournaments.record_payout.assert_awaited_once_with(db, "t-1", "FAILED", None)
        db.commit.assert_awaited_once()

    async def test_success_commits(self) -> None:
        tournament = make_tournament(status="COMPLETED", collected=300, payouts=[PayoutPosition(1, 250)])
        distributor, _ = _distributor(tournament)
        db = AsyncMock()

        result = await distributor.distribute_after_commit(db, "t-1")

        assert result is not None
        assert result.awards[0].participant_id == "p3"
        db.commit.assert_awaited_once()
