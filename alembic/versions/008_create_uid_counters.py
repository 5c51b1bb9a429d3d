"""008: create uid_counters table

Revision ID: 008
Revises: 007
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "008"
down_revision: Union[str, None] = "007"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE uid_counters (
            region_code VARCHAR(2)  NOT NULL,
            year        SMALLINT    NOT NULL,
            last_value  INT         NOT NULL DEFAULT 0,
            PRIMARY KEY (region_code, year)
        );
    """)
    op.execute("COMMENT ON TABLE uid_counters IS 'Per (region, year) sequence for platform UIDs';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS uid_counters CASCADE;")
