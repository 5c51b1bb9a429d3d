"""Pydantic schemas and cursor utilities for es_wallet API."""

import base64
import json

from pydantic import BaseModel, Field

from src.es_common.money import paise_to_display
from src.es_wallet.domain.models import Wallet, WalletTransaction

# ---------------------------------------------------------------------------
# Cursor-based pagination utilities
# ---------------------------------------------------------------------------


def cursor_encode(last_id: int) -> str:
    """Encode a BIGINT primary key into an opaque Base64 cursor string."""
    payload = json.dumps({"id": last_id})
    return base64.b64encode(payload.encode()).decode()


def cursor_decode(cursor: str | None) -> int | None:
    """Decode a cursor string back to the last seen id. Returns None on error."""
    if cursor is None:
        return None
    try:
        payload = json.loads(base64.b64decode(cursor.encode()).decode())
        return int(payload["id"])
    except Exception:
        return None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class DepositRequest(BaseModel):
    amount_paise: int = Field(..., gt=0, description="Verified deposit amount in paise")
    reference: str | None = Field(None, max_length=128, description="Payment gateway reference")


class WithdrawalRequest(BaseModel):
    amount_paise: int = Field(..., gt=0, description="Amount to withdraw in paise")


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class WalletResponse(BaseModel):
    user_id: str
    balance_paise: int
    balance_display: str
    locked_paise: int
    locked_display: str
    available_paise: int
    available_display: str

    @classmethod
    def from_wallet(cls, wallet: Wallet) -> "WalletResponse":
        return cls(
            user_id=wallet.user_id,
            balance_paise=wallet.balance,
            balance_display=paise_to_display(wallet.balance),
            locked_paise=wallet.locked,
            locked_display=paise_to_display(wallet.locked),
            available_paise=wallet.available,
            available_display=paise_to_display(wallet.available),
        )


class TransactionItem(BaseModel):
    id: int
    direction: str
    source: str
    amount_paise: int
    amount_display: str
    balance_after_paise: int
    balance_after_display: str
    status: str
    tournament_id: str | None
    description: str | None
    created_at: str  # ISO8601 string

    @classmethod
    def from_transaction(cls, tx: WalletTransaction) -> "TransactionItem":
        return cls(
            id=tx.id,
            direction=tx.direction,
            source=tx.source,
            amount_paise=tx.amount,
            amount_display=paise_to_display(tx.amount),
            balance_after_paise=tx.balance_after,
            balance_after_display=paise_to_display(tx.balance_after),
            status=tx.status,
            tournament_id=tx.tournament_id,
            description=tx.description,
            created_at=tx.created_at.isoformat() if tx.created_at else "",
        )


class TransactionListResponse(BaseModel):
    items: list[TransactionItem]
    next_cursor: str | None
    has_more: bool


class WalletOperationResponse(BaseModel):
    """Result of a single ledger call: the wallet after it plus the row it wrote."""

    wallet: WalletResponse
    transaction: TransactionItem

    @classmethod
    def from_result(
        cls, wallet: Wallet, tx: WalletTransaction
    ) -> "WalletOperationResponse":
        return cls(
            wallet=WalletResponse.from_wallet(wallet),
            transaction=TransactionItem.from_transaction(tx),
        )
