"""Unit tests for the Ledger using a mock wallet repository."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.es_common.enums import TxDirection, TxSource, TxStatus
from src.es_common.errors import (
    InsufficientAvailableBalanceError,
    InsufficientBalanceError,
    InvalidAmountError,
    WalletNotFoundError,
    WithdrawalNotFoundError,
)
from src.es_wallet.application.ledger import Ledger
from src.es_wallet.domain.models import Wallet, WalletTransaction


def _wallet(balance: int = 100000, locked: int = 0) -> Wallet:
    return Wallet(id="w-1", user_id="user-1", balance=balance, locked=locked)


def _tx(
    tx_id: int = 1,
    amount: int = 1000,
    source: str = "DEPOSIT",
    status: str = "COMPLETED",
) -> WalletTransaction:
    return WalletTransaction(
        id=tx_id,
        user_id="user-1",
        wallet_id="w-1",
        direction="CREDIT" if amount > 0 else "DEBIT",
        source=source,
        amount=amount,
        balance_after=100000,
        status=status,
        created_at=datetime.now(UTC),
    )


class TestCredit:
    async def test_increments_and_records_transaction(self) -> None:
        repo = AsyncMock()
        repo.increment_balance.return_value = _wallet(101000)
        repo.insert_transaction.return_value = _tx(7, 1000)
        ledger = Ledger(repo)

        wallet, tx = await ledger.credit(MagicMock(), "user-1", 1000, TxSource.DEPOSIT)

        assert wallet.balance == 101000
        assert tx.id == 7
        kwargs = repo.insert_transaction.call_args.kwargs
        assert kwargs["direction"] == TxDirection.CREDIT
        assert kwargs["amount"] == 1000
        assert kwargs["status"] == TxStatus.COMPLETED

    @pytest.mark.parametrize("amount", [0, -5])
    async def test_non_positive_amount_rejected(self, amount: int) -> None:
        repo = AsyncMock()
        with pytest.raises(InvalidAmountError):
            await Ledger(repo).credit(MagicMock(), "user-1", amount, TxSource.DEPOSIT)
        repo.increment_balance.assert_not_awaited()

    async def test_missing_wallet(self) -> None:
        repo = AsyncMock()
        repo.increment_balance.return_value = None
        with pytest.raises(WalletNotFoundError):
            await Ledger(repo).credit(MagicMock(), "ghost", 100, TxSource.REFUND)
        repo.insert_transaction.assert_not_awaited()


class TestDebit:
    async def test_records_negative_amount(self) -> None:
        repo = AsyncMock()
        repo.decrement_available.return_value = _wallet(99000)
        repo.insert_transaction.return_value = _tx(2, -1000, "ENTRY_FEE")

        wallet, _ = await Ledger(repo).debit(
            MagicMock(), "user-1", 1000, TxSource.ENTRY_FEE, tournament_id="t-1"
        )

        assert wallet.balance == 99000
        kwargs = repo.insert_transaction.call_args.kwargs
        assert kwargs["direction"] == TxDirection.DEBIT
        assert kwargs["amount"] == -1000
        assert kwargs["tournament_id"] == "t-1"

    async def test_insufficient_balance_reports_available(self) -> None:
        repo = AsyncMock()
        repo.decrement_available.return_value = None
        repo.get_wallet.return_value = _wallet(1000, 200)

        with pytest.raises(InsufficientBalanceError) as exc_info:
            await Ledger(repo).debit(MagicMock(), "user-1", 900, TxSource.ENTRY_FEE)

        assert "available 800" in exc_info.value.message
        repo.insert_transaction.assert_not_awaited()

    async def test_missing_wallet(self) -> None:
        repo = AsyncMock()
        repo.decrement_available.return_value = None
        repo.get_wallet.return_value = None
        with pytest.raises(WalletNotFoundError):
            await Ledger(repo).debit(MagicMock(), "ghost", 100, TxSource.ENTRY_FEE)


class TestLockUnlock:
    async def test_lock_beyond_available_fails(self) -> None:
        """balance 1000, locked 200: locking 900 fails, 800 succeeds."""
        repo = AsyncMock()
        repo.lock.side_effect = [None, _wallet(1000, 1000)]
        repo.get_wallet.return_value = _wallet(1000, 200)
        ledger = Ledger(repo)

        with pytest.raises(InsufficientAvailableBalanceError):
            await ledger.lock_amount(MagicMock(), "user-1", 900)
        wallet = await ledger.lock_amount(MagicMock(), "user-1", 800)

        assert wallet.locked == 1000
        assert wallet.available == 0

    async def test_unlock_more_than_locked_fails(self) -> None:
        repo = AsyncMock()
        repo.unlock.return_value = None
        repo.get_wallet.return_value = _wallet(1000, 100)
        with pytest.raises(InsufficientAvailableBalanceError):
            await Ledger(repo).unlock_amount(MagicMock(), "user-1", 500)


class TestWithdrawals:
    async def test_request_locks_and_records_pending(self) -> None:
        repo = AsyncMock()
        repo.lock.return_value = _wallet(5000, 2000)
        repo.insert_transaction.return_value = _tx(9, -2000, "WITHDRAWAL", "PENDING")

        wallet, tx = await Ledger(repo).request_withdrawal(MagicMock(), "user-1", 2000)

        assert wallet.balance == 5000
        assert wallet.locked == 2000
        assert tx.status == "PENDING"
        kwargs = repo.insert_transaction.call_args.kwargs
        assert kwargs["status"] == TxStatus.PENDING
        assert kwargs["source"] == TxSource.WITHDRAWAL
        assert kwargs["amount"] == -2000

    async def test_approve_settles_locked_amount(self) -> None:
        repo = AsyncMock()
        repo.get_transaction_for_update.return_value = _tx(9, -2000, "WITHDRAWAL", "PENDING")
        repo.settle_locked.return_value = _wallet(3000, 0)
        repo.set_pending_status.return_value = _tx(9, -2000, "WITHDRAWAL", "COMPLETED")

        wallet, tx = await Ledger(repo).approve_withdrawal(MagicMock(), 9)

        repo.settle_locked.assert_awaited_once()
        assert repo.settle_locked.call_args.args[1:] == ("user-1", 2000)
        repo.set_pending_status.assert_awaited_once()
        assert repo.set_pending_status.call_args.args[1:] == (9, TxStatus.COMPLETED)
        assert repo.set_pending_status.call_args.kwargs["balance_after"] == 3000
        assert wallet.balance == 3000
        assert tx.status == "COMPLETED"

    async def test_reject_releases_lock(self) -> None:
        repo = AsyncMock()
        repo.get_transaction_for_update.return_value = _tx(9, -2000, "WITHDRAWAL", "PENDING")
        repo.unlock.return_value = _wallet(5000, 0)
        repo.set_pending_status.return_value = _tx(9, -2000, "WITHDRAWAL", "REJECTED")

        wallet, tx = await Ledger(repo).reject_withdrawal(MagicMock(), 9)

        assert repo.unlock.call_args.args[1:] == ("user-1", 2000)
        repo.settle_locked.assert_not_awaited()
        assert wallet.balance == 5000
        assert tx.status == "REJECTED"

    @pytest.mark.parametrize(
        "tx",
        [
            None,
            _tx(9, -2000, "WITHDRAWAL", "COMPLETED"),
            _tx(9, 2000, "DEPOSIT", "PENDING"),
        ],
    )
    async def test_only_pending_withdrawals_can_be_reviewed(
        self, tx: WalletTransaction | None
    ) -> None:
        repo = AsyncMock()
        repo.get_transaction_for_update.return_value = tx
        with pytest.raises(WithdrawalNotFoundError):
            await Ledger(repo).approve_withdrawal(MagicMock(), 9)
        repo.settle_locked.assert_not_awaited()
