"""Wallet invariant checks.

Per wallet:
  0 <= locked <= balance
  balance == SUM(amount) over its COMPLETED wallet_transactions

PENDING withdrawals only hold `locked`; REJECTED rows never moved money.
"""

import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger("es.invariants")

_WALLET_TOTALS_SQL = text("""
    SELECT w.user_id,
           w.balance,
           w.locked,
           COALESCE(SUM(t.amount) FILTER (WHERE t.status = 'COMPLETED'), 0) AS ledger_sum
    FROM wallets w
    LEFT JOIN wallet_transactions t ON t.wallet_id = w.id
    WHERE CAST(:user_id AS TEXT) IS NULL OR w.user_id = :user_id
    GROUP BY w.id, w.user_id, w.balance, w.locked
""")


def wallet_violations(user_id: str, balance: int, locked: int, ledger_sum: int) -> list[str]:
    violations: list[str] = []
    if not 0 <= locked <= balance:
        violations.append(f"wallet {user_id}: locked={locked} outside [0, balance={balance}]")
    if balance != ledger_sum:
        violations.append(
            f"wallet {user_id}: balance={balance} != completed transactions sum={ledger_sum}"
        )
    return violations


async def verify_wallet_invariants(db: AsyncSession, user_id: str | None = None) -> list[str]:
    """Check every wallet (or one user's). Returns violation strings, empty when clean."""
    rows: list[Any] = (await db.execute(_WALLET_TOTALS_SQL, {"user_id": user_id})).fetchall()
    violations: list[str] = []
    for row in rows:
        violations.extend(
            wallet_violations(str(row.user_id), row.balance, row.locked, row.ledger_sum)
        )
    for msg in violations:
        logger.error(msg)
    return violations
