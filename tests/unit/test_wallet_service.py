"""Unit tests for WalletApplicationService and wallet schemas."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.es_common.enums import TxSource
from src.es_common.errors import InsufficientAvailableBalanceError, WalletNotFoundError
from src.es_wallet.application.schemas import (
    DepositRequest,
    WalletResponse,
    cursor_decode,
    cursor_encode,
)
from src.es_wallet.application.service import WalletApplicationService
from src.es_wallet.domain.models import Wallet, WalletTransaction


def _wallet(balance: int = 150000, locked: int = 6500) -> Wallet:
    return Wallet(id="w-1", user_id="user-1", balance=balance, locked=locked)


def _tx(tx_id: int, amount: int = 10000, source: str = "DEPOSIT") -> WalletTransaction:
    return WalletTransaction(
        id=tx_id,
        user_id="user-1",
        wallet_id="w-1",
        direction="CREDIT",
        source=source,
        amount=amount,
        balance_after=160000,
        status="COMPLETED",
        created_at=datetime.now(UTC),
    )


class TestGetWallet:
    async def test_returns_balances_and_display(self) -> None:
        repo = AsyncMock()
        repo.get_wallet.return_value = _wallet()
        svc = WalletApplicationService(repo=repo)

        result = await svc.get_wallet(MagicMock(), "user-1")

        assert isinstance(result, WalletResponse)
        assert result.balance_paise == 150000
        assert result.locked_paise == 6500
        assert result.available_paise == 143500
        assert result.balance_display == "₹1,500.00"

    async def test_missing_wallet(self) -> None:
        repo = AsyncMock()
        repo.get_wallet.return_value = None
        with pytest.raises(WalletNotFoundError):
            await WalletApplicationService(repo=repo).get_wallet(MagicMock(), "ghost")


class TestDeposit:
    async def test_credits_and_commits(self) -> None:
        ledger = AsyncMock()
        ledger.credit.return_value = (_wallet(160000, 0), _tx(3))
        svc = WalletApplicationService(repo=AsyncMock(), ledger=ledger)
        db = AsyncMock()

        result = await svc.deposit(db, "user-1", 10000, reference="upi-123")

        assert result.transaction.id == 3
        assert result.wallet.balance_paise == 160000
        assert ledger.credit.call_args.args[3] == TxSource.DEPOSIT
        assert ledger.credit.call_args.kwargs["description"] == "Deposit upi-123"
        db.commit.assert_awaited_once()

    def test_request_rejects_zero(self) -> None:
        with pytest.raises(ValueError):
            DepositRequest(amount_paise=0)


class TestRequestWithdrawal:
    async def test_rolls_back_on_failure(self) -> None:
        ledger = AsyncMock()
        ledger.request_withdrawal.side_effect = InsufficientAvailableBalanceError(5000, 100)
        svc = WalletApplicationService(repo=AsyncMock(), ledger=ledger)
        db = AsyncMock()

        with pytest.raises(InsufficientAvailableBalanceError):
            await svc.request_withdrawal(db, "user-1", 5000)

        db.rollback.assert_awaited_once()
        db.commit.assert_not_awaited()


class TestListTransactions:
    async def test_has_more_and_cursor(self) -> None:
        repo = AsyncMock()
        repo.list_transactions.return_value = [_tx(i) for i in (10, 9, 8)]
        svc = WalletApplicationService(repo=repo)

        result = await svc.list_transactions(MagicMock(), "user-1", None, 2, None)

        assert [item.id for item in result.items] == [10, 9]
        assert result.has_more is True
        assert cursor_decode(result.next_cursor) == 9
        # limit + 1 rows requested
        assert repo.list_transactions.call_args.args[3] == 3

    async def test_last_page(self) -> None:
        repo = AsyncMock()
        repo.list_transactions.return_value = [_tx(1)]
        svc = WalletApplicationService(repo=repo)

        result = await svc.list_transactions(
            MagicMock(), "user-1", cursor_encode(2), 20, "DEPOSIT"
        )

        assert result.has_more is False
        assert result.next_cursor is None
        assert repo.list_transactions.call_args.args[2] == 2


def test_cursor_decode_garbage_returns_none() -> None:
    assert cursor_decode("not-base64!!") is None
    assert cursor_decode(None) is None
