"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.

Every mutating method is a single guarded statement: it returns None when the
guard fails (no wallet, or not enough funds) and leaves the row untouched.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.es_wallet.domain.models import Wallet, WalletTransaction


class WalletRepositoryProtocol(Protocol):
    async def create_wallet(self, db: AsyncSession, user_id: str) -> Wallet: ...

    async def get_wallet(self, db: AsyncSession, user_id: str) -> Wallet | None: ...

    async def increment_balance(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> Wallet | None: ...

    async def decrement_available(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> Wallet | None: ...

    async def lock(self, db: AsyncSession, user_id: str, amount: int) -> Wallet | None: ...

    async def unlock(self, db: AsyncSession, user_id: str, amount: int) -> Wallet | None: ...

    async def settle_locked(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> Wallet | None: ...

    async def insert_transaction(
        self,
        db: AsyncSession,
        wallet: Wallet,
        direction: str,
        source: str,
        amount: int,
        status: str,
        tournament_id: str | None,
        description: str | None,
    ) -> WalletTransaction: ...

    async def get_transaction_for_update(
        self, db: AsyncSession, transaction_id: int
    ) -> WalletTransaction | None: ...

    async def set_pending_status(
        self,
        db: AsyncSession,
        transaction_id: int,
        status: str,
        balance_after: int | None = None,
    ) -> WalletTransaction | None: ...

    async def list_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        source: str | None,
    ) -> list[WalletTransaction]: ...
