"""006: create teams, team_members and registrations tables

Revision ID: 006
Revises: 005
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE teams (
            id          VARCHAR(64)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            name        VARCHAR(64)     NOT NULL,
            captain_id  VARCHAR(64)     NOT NULL,
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_teams_name UNIQUE (name)
        );
    """)
    op.execute("""
        CREATE TABLE team_members (
            team_id     VARCHAR(64) NOT NULL REFERENCES teams(id) ON DELETE CASCADE,
            user_id     VARCHAR(64) NOT NULL,
            joined_at   TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            PRIMARY KEY (team_id, user_id)
        );
    """)
    op.execute("""
        CREATE TABLE registrations (
            id              VARCHAR(64)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            tournament_id   VARCHAR(64)     NOT NULL REFERENCES tournaments(id),
            participant_id  VARCHAR(64)     NOT NULL,
            payer_user_id   VARCHAR(64)     NOT NULL,
            status          VARCHAR(16)     NOT NULL DEFAULT 'CONFIRMED',
            payment_status  VARCHAR(8)      NOT NULL,
            amount_paid     BIGINT          NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_registrations_participant UNIQUE (tournament_id, participant_id),
            CONSTRAINT ck_registrations_status CHECK (status IN ('PENDING', 'CONFIRMED')),
            CONSTRAINT ck_registrations_payment CHECK (payment_status IN ('PAID', 'FREE')),
            CONSTRAINT ck_registrations_amount_gte_0 CHECK (amount_paid >= 0)
        );
    """)
    op.execute("CREATE INDEX idx_registrations_tournament ON registrations (tournament_id, created_at);")
    op.execute("COMMENT ON TABLE registrations IS 'Confirmed entries; participant is a user or a team';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS registrations CASCADE;")
    op.execute("DROP TABLE IF EXISTS team_members CASCADE;")
    op.execute("DROP TABLE IF EXISTS teams CASCADE;")
