"""007: create matches table

Revision ID: 007
Revises: 006
Create Date: 2026-10-18
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE matches (
            id                      VARCHAR(64)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            tournament_id           VARCHAR(64)     NOT NULL REFERENCES tournaments(id),
            round                   INT             NOT NULL,
            match_number            INT             NOT NULL,
            participant_a_id        VARCHAR(64),
            participant_b_id        VARCHAR(64),
            winner_id               VARCHAR(64),
            score_a                 INT,
            score_b                 INT,
            status                  VARCHAR(16)     NOT NULL DEFAULT 'SCHEDULED',
            is_bye                  BOOLEAN         NOT NULL DEFAULT FALSE,
            locked                  BOOLEAN         NOT NULL DEFAULT FALSE,
            next_match_id           VARCHAR(64)     REFERENCES matches(id),
            position_in_next_match  SMALLINT,
            dispute_reason          VARCHAR(500),
            completed_at            TIMESTAMPTZ,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT uq_matches_slot UNIQUE (tournament_id, round, match_number),
            CONSTRAINT ck_matches_status CHECK (status IN ('SCHEDULED', 'COMPLETED', 'DISPUTED')),
            CONSTRAINT ck_matches_round_gte_1 CHECK (round >= 1),
            CONSTRAINT ck_matches_position CHECK (
                (next_match_id IS NULL AND position_in_next_match IS NULL)
                OR (next_match_id IS NOT NULL AND position_in_next_match IN (1, 2))
            ),
            CONSTRAINT ck_matches_scores_gte_0 CHECK (
                (score_a IS NULL OR score_a >= 0) AND (score_b IS NULL OR score_b >= 0)
            )
        );
    """)
    op.execute("CREATE INDEX idx_matches_tournament ON matches (tournament_id, round, match_number);")
    op.execute("""
        CREATE TRIGGER trg_matches_updated_at
            BEFORE UPDATE ON matches
            FOR EACH ROW EXECUTE FUNCTION fn_update_timestamp();
    """)
    op.execute("COMMENT ON TABLE matches IS 'Single-elimination bracket; next_match_id links to the parent match';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS matches CASCADE;")
