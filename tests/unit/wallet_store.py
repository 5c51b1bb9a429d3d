"""In-memory WalletRepositoryProtocol that applies the same guards as the SQL.

Each mutator mirrors the WHERE clause of its UPDATE in
src/es_wallet/infrastructure/persistence.py: when the guard fails the row is
left untouched and None is returned.
"""

from dataclasses import replace
from datetime import UTC, datetime
from typing import Any

from src.es_wallet.domain.invariants import wallet_violations
from src.es_wallet.domain.models import Wallet, WalletTransaction


class InMemoryWalletRepository:
    def __init__(self) -> None:
        self.wallets: dict[str, Wallet] = {}
        self.transactions: list[WalletTransaction] = []

    # -- invariant helpers used by tests ---------------------------------

    def completed_sum(self, user_id: str) -> int:
        return sum(
            t.amount for t in self.transactions if t.user_id == user_id and t.status == "COMPLETED"
        )

    def violations(self) -> list[str]:
        found: list[str] = []
        for user_id, w in self.wallets.items():
            found.extend(wallet_violations(user_id, w.balance, w.locked, self.completed_sum(user_id)))
        return found

    # -- WalletRepositoryProtocol ----------------------------------------

    async def create_wallet(self, db: Any, user_id: str) -> Wallet:
        wallet = Wallet(id=f"w-{user_id}", user_id=user_id, balance=0, locked=0)
        self.wallets[user_id] = wallet
        return replace(wallet)

    async def get_wallet(self, db: Any, user_id: str) -> Wallet | None:
        wallet = self.wallets.get(user_id)
        return replace(wallet) if wallet else None

    def _apply(self, user_id: str, guard: bool, balance: int, locked: int) -> Wallet | None:
        wallet = self.wallets.get(user_id)
        if wallet is None or not guard:
            return None
        wallet.balance += balance
        wallet.locked += locked
        return replace(wallet)

    async def increment_balance(self, db: Any, user_id: str, amount: int) -> Wallet | None:
        return self._apply(user_id, True, amount, 0)

    async def decrement_available(self, db: Any, user_id: str, amount: int) -> Wallet | None:
        w = self.wallets.get(user_id)
        return self._apply(user_id, w is not None and w.available >= amount, -amount, 0)

    async def lock(self, db: Any, user_id: str, amount: int) -> Wallet | None:
        w = self.wallets.get(user_id)
        return self._apply(user_id, w is not None and w.available >= amount, 0, amount)

    async def unlock(self, db: Any, user_id: str, amount: int) -> Wallet | None:
        w = self.wallets.get(user_id)
        return self._apply(user_id, w is not None and w.locked >= amount, 0, -amount)

    async def settle_locked(self, db: Any, user_id: str, amount: int) -> Wallet | None:
        w = self.wallets.get(user_id)
        return self._apply(user_id, w is not None and w.locked >= amount, -amount, -amount)

    async def insert_transaction(
        self,
        db: Any,
        wallet: Wallet,
        direction: str,
        source: str,
        amount: int,
        status: str,
        tournament_id: str | None,
        description: str | None,
    ) -> WalletTransaction:
        tx = WalletTransaction(
            id=len(self.transactions) + 1,
            user_id=wallet.user_id,
            wallet_id=wallet.id,
            direction=str(getattr(direction, "value", direction)),
            source=str(getattr(source, "value", source)),
            amount=amount,
            balance_after=wallet.balance,
            status=str(getattr(status, "value", status)),
            tournament_id=tournament_id,
            description=description,
            created_at=datetime.now(UTC),
        )
        self.transactions.append(tx)
        return replace(tx)

    def _find(self, transaction_id: int) -> WalletTransaction | None:
        return next((t for t in self.transactions if t.id == transaction_id), None)

    async def get_transaction_for_update(
        self, db: Any, transaction_id: int
    ) -> WalletTransaction | None:
        tx = self._find(transaction_id)
        return replace(tx) if tx else None

    async def set_pending_status(
        self,
        db: Any,
        transaction_id: int,
        status: str,
        balance_after: int | None = None,
    ) -> WalletTransaction | None:
        tx = self._find(transaction_id)
        if tx is None or tx.status != "PENDING":
            return None
        tx.status = str(getattr(status, "value", status))
        if balance_after is not None:
            tx.balance_after = balance_after
        return replace(tx)

    async def list_transactions(
        self,
        db: Any,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        source: str | None,
    ) -> list[WalletTransaction]:
        rows = [
            t
            for t in reversed(self.transactions)
            if t.user_id == user_id
            and (cursor_id is None or t.id < cursor_id)
            and (source is None or t.source == source)
        ]
        return [replace(t) for t in rows[:limit]]
