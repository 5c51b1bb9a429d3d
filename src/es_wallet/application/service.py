"""WalletApplicationService — thin composition layer over the Ledger.

Deposit and withdrawal requests are single-ledger-call transactions committed
here. Reads (get_wallet, list_transactions) run without an explicit transaction.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from src.es_common.enums import TxSource
from src.es_common.errors import WalletNotFoundError
from src.es_wallet.application.ledger import Ledger
from src.es_wallet.application.schemas import (
    TransactionItem,
    TransactionListResponse,
    WalletOperationResponse,
    WalletResponse,
    cursor_decode,
    cursor_encode,
)
from src.es_wallet.domain.repository import WalletRepositoryProtocol
from src.es_wallet.infrastructure.persistence import WalletRepository


class WalletApplicationService:
    def __init__(
        self,
        repo: WalletRepositoryProtocol | None = None,
        ledger: Ledger | None = None,
    ) -> None:
        self._repo: WalletRepositoryProtocol = repo or WalletRepository()
        self._ledger = ledger or Ledger(self._repo)

    async def get_wallet(self, db: AsyncSession, user_id: str) -> WalletResponse:
        wallet = await self._repo.get_wallet(db, user_id)
        if wallet is None:
            raise WalletNotFoundError(user_id)
        return WalletResponse.from_wallet(wallet)

    async def deposit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        reference: str | None = None,
    ) -> WalletOperationResponse:
        description = f"Deposit {reference}" if reference else "Deposit"
        try:
            wallet, tx = await self._ledger.credit(
                db, user_id, amount, TxSource.DEPOSIT, description=description
            )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return WalletOperationResponse.from_result(wallet, tx)

    async def request_withdrawal(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> WalletOperationResponse:
        try:
            wallet, tx = await self._ledger.request_withdrawal(db, user_id, amount)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return WalletOperationResponse.from_result(wallet, tx)

    async def list_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        source: str | None,
    ) -> TransactionListResponse:
        cursor_id = cursor_decode(cursor)
        # limit+1 detects has_more without a COUNT(*)
        rows = await self._repo.list_transactions(db, user_id, cursor_id, limit + 1, source)
        has_more = len(rows) > limit
        page = rows[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return TransactionListResponse(
            items=[TransactionItem.from_transaction(tx) for tx in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
