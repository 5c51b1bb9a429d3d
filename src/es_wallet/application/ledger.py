"""Ledger — the only code path allowed to change a wallet.

Every credit/debit is one guarded wallet UPDATE plus one wallet_transactions
row carrying the post-operation balance, executed on the caller's session.
The Ledger never commits: registration, refunds, payouts and withdrawal
approval each wrap several Ledger calls in their own transaction, and any
error raised here aborts that whole transaction.

There is no deduplication. Each call produces exactly one transaction row;
retrying is the caller's decision.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.es_common.enums import TxDirection, TxSource, TxStatus
from src.es_common.errors import (
    InsufficientAvailableBalanceError,
    InsufficientBalanceError,
    InvalidAmountError,
    WalletNotFoundError,
    WithdrawalNotFoundError,
)
from src.es_wallet.domain.models import Wallet, WalletTransaction
from src.es_wallet.domain.repository import WalletRepositoryProtocol
from src.es_wallet.infrastructure.persistence import WalletRepository

logger = logging.getLogger("es.ledger")


def _validate_amount(amount: int) -> None:
    if amount <= 0:
        raise InvalidAmountError(amount)


class Ledger:
    def __init__(self, repo: WalletRepositoryProtocol | None = None) -> None:
        self._repo: WalletRepositoryProtocol = repo or WalletRepository()

    async def _require_wallet(self, db: AsyncSession, user_id: str) -> Wallet:
        wallet = await self._repo.get_wallet(db, user_id)
        if wallet is None:
            raise WalletNotFoundError(user_id)
        return wallet

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        source: TxSource,
        tournament_id: str | None = None,
        description: str | None = None,
    ) -> tuple[Wallet, WalletTransaction]:
        _validate_amount(amount)
        wallet = await self._repo.increment_balance(db, user_id, amount)
        if wallet is None:
            raise WalletNotFoundError(user_id)
        tx = await self._repo.insert_transaction(
            db,
            wallet,
            direction=TxDirection.CREDIT,
            source=source,
            amount=amount,
            status=TxStatus.COMPLETED,
            tournament_id=tournament_id,
            description=description,
        )
        logger.info("credit user=%s amount=%d source=%s tx=%d", user_id, amount, source.value, tx.id)
        return wallet, tx

    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        source: TxSource,
        tournament_id: str | None = None,
        description: str | None = None,
    ) -> tuple[Wallet, WalletTransaction]:
        _validate_amount(amount)
        wallet = await self._repo.decrement_available(db, user_id, amount)
        if wallet is None:
            current = await self._require_wallet(db, user_id)
            raise InsufficientBalanceError(amount, current.available)
        tx = await self._repo.insert_transaction(
            db,
            wallet,
            direction=TxDirection.DEBIT,
            source=source,
            amount=-amount,
            status=TxStatus.COMPLETED,
            tournament_id=tournament_id,
            description=description,
        )
        logger.info("debit user=%s amount=%d source=%s tx=%d", user_id, amount, source.value, tx.id)
        return wallet, tx

    async def lock_amount(self, db: AsyncSession, user_id: str, amount: int) -> Wallet:
        _validate_amount(amount)
        wallet = await self._repo.lock(db, user_id, amount)
        if wallet is None:
            current = await self._require_wallet(db, user_id)
            raise InsufficientAvailableBalanceError(amount, current.available)
        return wallet

    async def unlock_amount(self, db: AsyncSession, user_id: str, amount: int) -> Wallet:
        _validate_amount(amount)
        wallet = await self._repo.unlock(db, user_id, amount)
        if wallet is None:
            current = await self._require_wallet(db, user_id)
            raise InsufficientAvailableBalanceError(amount, current.locked)
        return wallet

    async def request_withdrawal(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> tuple[Wallet, WalletTransaction]:
        """Lock the amount and record a PENDING debit; balance is untouched until approval."""
        wallet = await self.lock_amount(db, user_id, amount)
        tx = await self._repo.insert_transaction(
            db,
            wallet,
            direction=TxDirection.DEBIT,
            source=TxSource.WITHDRAWAL,
            amount=-amount,
            status=TxStatus.PENDING,
            tournament_id=None,
            description="Withdrawal requested",
        )
        logger.info("withdrawal requested user=%s amount=%d tx=%d", user_id, amount, tx.id)
        return wallet, tx

    async def _pending_withdrawal(
        self, db: AsyncSession, transaction_id: int
    ) -> WalletTransaction:
        tx = await self._repo.get_transaction_for_update(db, transaction_id)
        if (
            tx is None
            or tx.source != TxSource.WITHDRAWAL
            or tx.status != TxStatus.PENDING
        ):
            raise WithdrawalNotFoundError(transaction_id)
        return tx

    async def approve_withdrawal(
        self, db: AsyncSession, transaction_id: int
    ) -> tuple[Wallet, WalletTransaction]:
        """Reduce balance and locked by the same amount; PENDING -> COMPLETED."""
        pending = await self._pending_withdrawal(db, transaction_id)
        amount = -pending.amount
        wallet = await self._repo.settle_locked(db, pending.user_id, amount)
        if wallet is None:
            current = await self._require_wallet(db, pending.user_id)
            raise InsufficientAvailableBalanceError(amount, current.locked)
        tx = await self._repo.set_pending_status(
            db, transaction_id, TxStatus.COMPLETED, balance_after=wallet.balance
        )
        if tx is None:
            raise WithdrawalNotFoundError(transaction_id)
        logger.info("withdrawal approved user=%s amount=%d tx=%d", pending.user_id, amount, tx.id)
        return wallet, tx

    async def reject_withdrawal(
        self, db: AsyncSession, transaction_id: int
    ) -> tuple[Wallet, WalletTransaction]:
        """Release the lock; PENDING -> REJECTED. The balance never moved."""
        pending = await self._pending_withdrawal(db, transaction_id)
        wallet = await self.unlock_amount(db, pending.user_id, -pending.amount)
        tx = await self._repo.set_pending_status(db, transaction_id, TxStatus.REJECTED)
        if tx is None:
            raise WithdrawalNotFoundError(transaction_id)
        logger.info("withdrawal rejected user=%s tx=%d", pending.user_id, tx.id)
        return wallet, tx
