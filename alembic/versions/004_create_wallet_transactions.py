"""004: create wallet_transactions table

Revision ID: 004
Revises: 003
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wallet_transactions (
            id              BIGSERIAL       PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL,
            wallet_id       VARCHAR(64)     NOT NULL REFERENCES wallets(id),
            direction       VARCHAR(8)      NOT NULL,
            source          VARCHAR(16)     NOT NULL,
            amount          BIGINT          NOT NULL,
            balance_after   BIGINT          NOT NULL,
            status          VARCHAR(16)     NOT NULL DEFAULT 'COMPLETED',
            tournament_id   VARCHAR(64),
            description     VARCHAR(255),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_wallet_tx_direction CHECK (direction IN ('CREDIT', 'DEBIT')),
            CONSTRAINT ck_wallet_tx_source CHECK (source IN (
                'ENTRY_FEE', 'REFUND', 'WINNING', 'HOST_EARNING',
                'WITHDRAWAL', 'DEPOSIT', 'MANUAL'
            )),
            CONSTRAINT ck_wallet_tx_status CHECK (status IN ('PENDING', 'COMPLETED', 'REJECTED')),
            CONSTRAINT ck_wallet_tx_balance_after_gte_0 CHECK (balance_after >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_wallet_tx_user_id ON wallet_transactions (user_id, id DESC);")
    op.execute("CREATE INDEX idx_wallet_tx_tournament ON wallet_transactions (tournament_id);")
    op.execute("""
        CREATE INDEX idx_wallet_tx_pending ON wallet_transactions (created_at)
        WHERE status = 'PENDING';
    """)
    op.execute("COMMENT ON TABLE wallet_transactions IS 'Append-only wallet history; signed amounts in paise';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wallet_transactions CASCADE;")
