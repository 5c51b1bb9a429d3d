"""005: create tournaments and tournament_payouts tables

Revision ID: 005
Revises: 004
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE tournaments (
            id                          VARCHAR(64)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            host_id                     VARCHAR(64)     NOT NULL,
            name                        VARCHAR(128)    NOT NULL,
            game                        VARCHAR(64)     NOT NULL,
            type                        VARCHAR(8)      NOT NULL DEFAULT 'SOLO',
            team_size                   INT,
            entry_fee                   BIGINT          NOT NULL DEFAULT 0,
            prize_pool                  BIGINT          NOT NULL DEFAULT 0,
            min_participants_required   INT             NOT NULL,
            max_participants            INT,
            insufficient_reg_policy     VARCHAR(16)     NOT NULL DEFAULT 'CANCEL',
            status                      VARCHAR(16)     NOT NULL DEFAULT 'UPCOMING',
            registration_open           BOOLEAN         NOT NULL DEFAULT TRUE,
            registration_end            TIMESTAMPTZ,
            start_time                  TIMESTAMPTZ,
            collected                   BIGINT          NOT NULL DEFAULT 0,
            current_round               INT,
            total_rounds                INT,
            winner_id                   VARCHAR(64),
            host_profit                 BIGINT,
            payout_status               VARCHAR(16)     NOT NULL DEFAULT 'PENDING',
            created_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at                  TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_tournaments_type CHECK (type IN ('SOLO', 'TEAM')),
            CONSTRAINT ck_tournaments_team_size CHECK (
                (type = 'SOLO' AND team_size IS NULL) OR (type = 'TEAM' AND team_size >= 1)
            ),
            CONSTRAINT ck_tournaments_status CHECK (status IN (
                'UPCOMING', 'ONGOING', 'COMPLETED', 'CANCELLED', 'POSTPONED'
            )),
            CONSTRAINT ck_tournaments_policy CHECK (insufficient_reg_policy IN ('CANCEL', 'POSTPONE')),
            CONSTRAINT ck_tournaments_payout_status CHECK (payout_status IN ('PENDING', 'PAID', 'FAILED')),
            CONSTRAINT ck_tournaments_entry_fee_gte_0 CHECK (entry_fee >= 0),
            CONSTRAINT ck_tournaments_prize_pool_gte_0 CHECK (prize_pool >= 0),
            CONSTRAINT ck_tournaments_collected_gte_0 CHECK (collected >= 0),
            CONSTRAINT ck_tournaments_capacity CHECK (
                max_participants IS NULL OR max_participants >= min_participants_required
            ),
            CONSTRAINT ck_tournaments_round CHECK (
                current_round IS NULL OR (current_round >= 1 AND current_round <= total_rounds)
            )
        );
    """)
    op.execute("CREATE INDEX idx_tournaments_list ON tournaments (created_at DESC, id DESC);")
    op.execute("CREATE INDEX idx_tournaments_status ON tournaments (status);")
    op.execute("CREATE INDEX idx_tournaments_host ON tournaments (host_id);")
    op.execute("""
        CREATE TRIGGER trg_tournaments_updated_at
            BEFORE UPDATE ON tournaments
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("""
        CREATE TABLE tournament_payouts (
            tournament_id   VARCHAR(64) NOT NULL REFERENCES tournaments(id) ON DELETE CASCADE,
            position        INT         NOT NULL,
            amount          BIGINT      NOT NULL,
            PRIMARY KEY (tournament_id, position),
            CONSTRAINT ck_tournament_payouts_position_gte_1 CHECK (position >= 1),
            CONSTRAINT ck_tournament_payouts_amount_gt_0 CHECK (amount > 0)
        );
    """)
    op.execute("COMMENT ON TABLE tournaments IS 'Tournament lifecycle, bracket progress and settlement';")
    op.execute("COMMENT ON TABLE tournament_payouts IS 'Prize per finishing position; sums to prize_pool';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS tournament_payouts CASCADE;")
    op.execute("DROP TABLE IF EXISTS tournaments CASCADE;")
