"""Domain models for es_wallet — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Wallet:
    id: str
    user_id: str
    balance: int   # paise
    locked: int    # paise reserved for pending withdrawals
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def available(self) -> int:
        return self.balance - self.locked


@dataclass
class WalletTransaction:
    id: int                          # BIGSERIAL
    user_id: str
    wallet_id: str
    direction: str                   # TxDirection value
    source: str                      # TxSource value
    amount: int                      # paise, positive=credit negative=debit
    balance_after: int               # paise, balance snapshot after op
    status: str                      # TxStatus value
    tournament_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None
