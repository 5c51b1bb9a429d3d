"""003: create wallets table

Revision ID: 003
Revises: 002
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE wallets (
            id          VARCHAR(64) PRIMARY KEY DEFAULT gen_random_uuid()::text,
            user_id     VARCHAR(64) NOT NULL,
            balance     BIGINT      NOT NULL DEFAULT 0,
            locked      BIGINT      NOT NULL DEFAULT 0,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at  TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_wallets_user_id           UNIQUE (user_id),
            CONSTRAINT ck_wallets_balance_gte_0     CHECK (balance >= 0),
            CONSTRAINT ck_wallets_locked_gte_0      CHECK (locked >= 0),
            CONSTRAINT ck_wallets_locked_lte_balance CHECK (locked <= balance)
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_wallets_updated_at
            BEFORE UPDATE ON wallets
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE wallets IS 'One wallet per user; all amounts in paise';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS wallets CASCADE;")
