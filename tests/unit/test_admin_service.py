"""Unit tests for AdminService."""

from unittest.mock import AsyncMock

import pytest

from src.es_admin.application.service import AdminService
from src.es_common.enums import TxSource
from src.es_common.errors import InsufficientBalanceError, WithdrawalNotFoundError
from src.es_wallet.domain.models import Wallet, WalletTransaction


def _result(amount: int, status: str = "COMPLETED") -> tuple[Wallet, WalletTransaction]:
    wallet = Wallet(id="w-1", user_id="u-1", balance=1000, locked=0)
    tx = WalletTransaction(
        id=5,
        user_id="u-1",
        wallet_id="w-1",
        direction="CREDIT" if amount > 0 else "DEBIT",
        source="MANUAL",
        amount=amount,
        balance_after=1000,
        status=status,
    )
    return wallet, tx


class TestWithdrawalReview:
    async def test_approve_commits(self) -> None:
        ledger = AsyncMock()
        ledger.approve_withdrawal.return_value = _result(-500)
        db = AsyncMock()

        result = await AdminService(ledger, AsyncMock(), AsyncMock()).approve_withdrawal(
            db, 5, "admin-1"
        )

        assert result.transaction.id == 5
        db.commit.assert_awaited_once()

    async def test_reject_unknown_rolls_back(self) -> None:
        ledger = AsyncMock()
        ledger.reject_withdrawal.side_effect = WithdrawalNotFoundError(99)
        db = AsyncMock()

        with pytest.raises(WithdrawalNotFoundError):
            await AdminService(ledger, AsyncMock(), AsyncMock()).reject_withdrawal(
                db, 99, "admin-1"
            )
        db.rollback.assert_awaited_once()


class TestAdjustWallet:
    async def test_positive_credits(self) -> None:
        ledger = AsyncMock()
        ledger.credit.return_value = _result(300)

        await AdminService(ledger, AsyncMock(), AsyncMock()).adjust_wallet(
            AsyncMock(), "u-1", 300, "goodwill", "admin-1"
        )

        assert ledger.credit.call_args.args[1:4] == ("u-1", 300, TxSource.MANUAL)
        assert "goodwill" in ledger.credit.call_args.kwargs["description"]
        ledger.debit.assert_not_awaited()

    async def test_negative_debits(self) -> None:
        ledger = AsyncMock()
        ledger.debit.return_value = _result(-300)

        await AdminService(ledger, AsyncMock(), AsyncMock()).adjust_wallet(
            AsyncMock(), "u-1", -300, "chargeback", "admin-1"
        )

        assert ledger.debit.call_args.args[1:4] == ("u-1", 300, TxSource.MANUAL)

    async def test_debit_failure_rolls_back(self) -> None:
        ledger = AsyncMock()
        ledger.debit.side_effect = InsufficientBalanceError(300, 0)
        db = AsyncMock()

        with pytest.raises(InsufficientBalanceError):
            await AdminService(ledger, AsyncMock(), AsyncMock()).adjust_wallet(
                db, "u-1", -300, "chargeback", "admin-1"
            )
        db.rollback.assert_awaited_once()


async def test_resolve_and_finalize_delegate() -> None:
    matches = AsyncMock()
    orchestrator = AsyncMock()
    svc = AdminService(AsyncMock(), matches, orchestrator)
    db = AsyncMock()

    await svc.resolve_match(db, "m-1", "p1", 2, 0)
    await svc.finalize_tournament(db, "t-1")

    matches.resolve_dispute.assert_awaited_once_with(db, "m-1", "p1", 2, 0)
    orchestrator.finalize_tournament.assert_awaited_once_with(db, "t-1")
