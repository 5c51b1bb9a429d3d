"""WalletRepository — concrete implementation of WalletRepositoryProtocol.

All balance-mutating operations use atomic PostgreSQL UPDATE ... RETURNING.
A result of 0 rows means a business constraint was violated (no wallet or
insufficient funds); the Ledger decides which error to raise.

Transaction ownership: The CALLER (application service) is responsible for
committing or rolling back the session.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.es_common.errors import InternalError
from src.es_wallet.domain.models import Wallet, WalletTransaction

# ---------------------------------------------------------------------------
# SQL: wallets mutations
# ---------------------------------------------------------------------------

_WALLET_COLUMNS = "id, user_id, balance, locked, created_at, updated_at"

_CREATE_WALLET_SQL = text(f"""
    INSERT INTO wallets (user_id, balance, locked)
    VALUES (:user_id, 0, 0)
    RETURNING {_WALLET_COLUMNS}
""")

_GET_WALLET_SQL = text(f"""
    SELECT {_WALLET_COLUMNS}
    FROM wallets
    WHERE user_id = :user_id
""")

_INCREMENT_SQL = text(f"""
    UPDATE wallets
    SET balance = balance + :amount,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING {_WALLET_COLUMNS}
""")

_DECREMENT_SQL = text(f"""
    UPDATE wallets
    SET balance = balance - :amount,
        updated_at = NOW()
    WHERE user_id = :user_id AND (balance - locked) >= :amount
    RETURNING {_WALLET_COLUMNS}
""")

_LOCK_SQL = text(f"""
    UPDATE wallets
    SET locked = locked + :amount,
        updated_at = NOW()
    WHERE user_id = :user_id AND (balance - locked) >= :amount
    RETURNING {_WALLET_COLUMNS}
""")

_UNLOCK_SQL = text(f"""
    UPDATE wallets
    SET locked = locked - :amount,
        updated_at = NOW()
    WHERE user_id = :user_id AND locked >= :amount
    RETURNING {_WALLET_COLUMNS}
""")

_SETTLE_LOCKED_SQL = text(f"""
    UPDATE wallets
    SET balance = balance - :amount,
        locked  = locked  - :amount,
        updated_at = NOW()
    WHERE user_id = :user_id AND locked >= :amount
    RETURNING {_WALLET_COLUMNS}
""")

# ---------------------------------------------------------------------------
# SQL: wallet_transactions
# ---------------------------------------------------------------------------

_TX_COLUMNS = """
    id, user_id, wallet_id, direction, source, amount, balance_after,
    status, tournament_id, description, created_at
"""

_INSERT_TX_SQL = text(f"""
    INSERT INTO wallet_transactions
        (user_id, wallet_id, direction, source, amount, balance_after,
         status, tournament_id, description)
    VALUES
        (:user_id, :wallet_id, :direction, :source, :amount, :balance_after,
         :status, :tournament_id, :description)
    RETURNING {_TX_COLUMNS}
""")

_GET_TX_FOR_UPDATE_SQL = text(f"""
    SELECT {_TX_COLUMNS}
    FROM wallet_transactions
    WHERE id = :id
    FOR UPDATE
""")

_SET_PENDING_STATUS_SQL = text(f"""
    UPDATE wallet_transactions
    SET status = :status,
        balance_after = COALESCE(CAST(:balance_after AS BIGINT), balance_after)
    WHERE id = :id AND status = 'PENDING'
    RETURNING {_TX_COLUMNS}
""")

_LIST_TX_SQL = text(f"""
    SELECT {_TX_COLUMNS}
    FROM wallet_transactions
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
      AND (CAST(:source AS TEXT) IS NULL OR source = :source)
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_wallet(row: Any) -> Wallet:
    return Wallet(
        id=str(row.id),
        user_id=row.user_id,
        balance=row.balance,
        locked=row.locked,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_transaction(row: Any) -> WalletTransaction:
    return WalletTransaction(
        id=row.id,
        user_id=row.user_id,
        wallet_id=row.wallet_id,
        direction=row.direction,
        source=row.source,
        amount=row.amount,
        balance_after=row.balance_after,
        status=row.status,
        tournament_id=row.tournament_id,
        description=row.description,
        created_at=row.created_at,
    )


class WalletRepository:
    """Concrete repository — all operations atomic at the SQL level."""

    async def create_wallet(self, db: AsyncSession, user_id: str) -> Wallet:
        row = (await db.execute(_CREATE_WALLET_SQL, {"user_id": user_id})).fetchone()
        if row is None:
            raise InternalError("Wallet insert returned no rows")
        return _row_to_wallet(row)

    async def get_wallet(self, db: AsyncSession, user_id: str) -> Wallet | None:
        row = (await db.execute(_GET_WALLET_SQL, {"user_id": user_id})).fetchone()
        return _row_to_wallet(row) if row else None

    async def _mutate(self, db: AsyncSession, sql: Any, user_id: str, amount: int) -> Wallet | None:
        row = (await db.execute(sql, {"user_id": user_id, "amount": amount})).fetchone()
        return _row_to_wallet(row) if row else None

    async def increment_balance(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> Wallet | None:
        return await self._mutate(db, _INCREMENT_SQL, user_id, amount)

    async def decrement_available(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> Wallet | None:
        return await self._mutate(db, _DECREMENT_SQL, user_id, amount)

    async def lock(self, db: AsyncSession, user_id: str, amount: int) -> Wallet | None:
        return await self._mutate(db, _LOCK_SQL, user_id, amount)

    async def unlock(self, db: AsyncSession, user_id: str, amount: int) -> Wallet | None:
        return await self._mutate(db, _UNLOCK_SQL, user_id, amount)

    async def settle_locked(
        self, db: AsyncSession, user_id: str, amount: int
    ) -> Wallet | None:
        return await self._mutate(db, _SETTLE_LOCKED_SQL, user_id, amount)

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
    ) -> WalletTransaction:
        result = await db.execute(
            _INSERT_TX_SQL,
            {
                "user_id": wallet.user_id,
                "wallet_id": wallet.id,
                "direction": direction,
                "source": source,
                "amount": amount,
                "balance_after": wallet.balance,
                "status": status,
                "tournament_id": tournament_id,
                "description": description,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Transaction insert returned no rows")
        return _row_to_transaction(row)

    async def get_transaction_for_update(
        self, db: AsyncSession, transaction_id: int
    ) -> WalletTransaction | None:
        row = (await db.execute(_GET_TX_FOR_UPDATE_SQL, {"id": transaction_id})).fetchone()
        return _row_to_transaction(row) if row else None

    async def set_pending_status(
        self,
        db: AsyncSession,
        transaction_id: int,
        status: str,
        balance_after: int | None = None,
    ) -> WalletTransaction | None:
        """Settle a PENDING row; `balance_after` replaces the snapshot when the balance moved."""
        params = {"id": transaction_id, "status": status, "balance_after": balance_after}
        row = (await db.execute(_SET_PENDING_STATUS_SQL, params)).fetchone()
        return _row_to_transaction(row) if row else None

    async def list_transactions(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        source: str | None,
    ) -> list[WalletTransaction]:
        result = await db.execute(
            _LIST_TX_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "source": source,
                "limit": limit,
            },
        )
        return [_row_to_transaction(row) for row in result.fetchall()]
