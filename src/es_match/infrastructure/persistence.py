"""MatchRepository — concrete implementation of MatchRepositoryProtocol.

All queries use raw text() SQL. Status changes are guarded UPDATE ... RETURNING
statements: no row back means the match was already moved on by someone else.

Transaction ownership: the caller commits or rolls back.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.es_common.enums import MatchStatus
from src.es_match.domain.bracket import PlannedMatch
from src.es_match.domain.models import Match

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_MATCH_COLUMNS = """
    id, tournament_id, round, match_number,
    participant_a_id, participant_b_id, winner_id, score_a, score_b,
    status, is_bye, locked, next_match_id, position_in_next_match,
    dispute_reason, completed_at, created_at
"""

_INSERT_MATCH_SQL = text("""
    INSERT INTO matches
        (id, tournament_id, round, match_number,
         participant_a_id, participant_b_id, winner_id,
         status, is_bye, next_match_id, position_in_next_match, completed_at)
    VALUES
        (:id, :tournament_id, :round, :match_number,
         :participant_a_id, :participant_b_id, :winner_id,
         :status, :is_bye, :next_match_id, :position_in_next_match,
         CASE WHEN CAST(:completed AS BOOLEAN) THEN NOW() ELSE NULL END)
""")

_GET_MATCH_SQL = text(f"SELECT {_MATCH_COLUMNS} FROM matches WHERE id = :id")

_GET_MATCH_FOR_UPDATE_SQL = text(f"SELECT {_MATCH_COLUMNS} FROM matches WHERE id = :id FOR UPDATE")

_LIST_MATCHES_SQL = text(f"""
    SELECT {_MATCH_COLUMNS}
    FROM matches
    WHERE tournament_id = :tournament_id
    ORDER BY round, match_number
""")

_COUNT_MATCHES_SQL = text("SELECT COUNT(*) FROM matches WHERE tournament_id = :tournament_id")

_COMPLETE_MATCH_SQL = text(f"""
    UPDATE matches
    SET winner_id = :winner_id,
        score_a = :score_a,
        score_b = :score_b,
        status = 'COMPLETED',
        completed_at = NOW(),
        updated_at = NOW()
    WHERE id = :id AND status IN ('SCHEDULED', 'DISPUTED')
    RETURNING {_MATCH_COLUMNS}
""")

_MARK_DISPUTED_SQL = text(f"""
    UPDATE matches
    SET status = 'DISPUTED',
        dispute_reason = :reason,
        updated_at = NOW()
    WHERE id = :id AND status = 'SCHEDULED'
    RETURNING {_MATCH_COLUMNS}
""")

_FILL_SLOT_A_SQL = text(f"""
    UPDATE matches
    SET participant_a_id = :participant_id, updated_at = NOW()
    WHERE id = :id AND status = 'SCHEDULED'
    RETURNING {_MATCH_COLUMNS}
""")

_FILL_SLOT_B_SQL = text(f"""
    UPDATE matches
    SET participant_b_id = :participant_id, updated_at = NOW()
    WHERE id = :id AND status = 'SCHEDULED'
    RETURNING {_MATCH_COLUMNS}
""")


def _row_to_match(row: Any) -> Match:
    return Match(
        id=str(row.id),
        tournament_id=str(row.tournament_id),
        round=row.round,
        match_number=row.match_number,
        participant_a_id=row.participant_a_id,
        participant_b_id=row.participant_b_id,
        winner_id=row.winner_id,
        score_a=row.score_a,
        score_b=row.score_b,
        status=row.status,
        is_bye=row.is_bye,
        locked=row.locked,
        next_match_id=str(row.next_match_id) if row.next_match_id else None,
        position_in_next_match=row.position_in_next_match,
        dispute_reason=row.dispute_reason,
        completed_at=row.completed_at,
        created_at=row.created_at,
    )


class MatchRepository:
    async def insert_matches(
        self, db: AsyncSession, tournament_id: str, matches: list[PlannedMatch]
    ) -> None:
        # final first so every next_match_id FK already points at an inserted row
        ordered = sorted(matches, key=lambda m: (-m.round, m.match_number))
        await db.execute(
            _INSERT_MATCH_SQL,
            [
                {
                    "id": m.id,
                    "tournament_id": tournament_id,
                    "round": m.round,
                    "match_number": m.match_number,
                    "participant_a_id": m.participant_a_id,
                    "participant_b_id": m.participant_b_id,
                    "winner_id": m.winner_id,
                    "status": m.status,
                    "is_bye": m.is_bye,
                    "next_match_id": m.next_match_id,
                    "position_in_next_match": m.position_in_next_match,
                    "completed": m.status == MatchStatus.COMPLETED,
                }
                for m in ordered
            ],
        )

    async def get_match(self, db: AsyncSession, match_id: str) -> Match | None:
        row = (await db.execute(_GET_MATCH_SQL, {"id": match_id})).fetchone()
        return _row_to_match(row) if row else None

    async def get_match_for_update(self, db: AsyncSession, match_id: str) -> Match | None:
        row = (await db.execute(_GET_MATCH_FOR_UPDATE_SQL, {"id": match_id})).fetchone()
        return _row_to_match(row) if row else None

    async def list_matches(self, db: AsyncSession, tournament_id: str) -> list[Match]:
        result = await db.execute(_LIST_MATCHES_SQL, {"tournament_id": tournament_id})
        return [_row_to_match(row) for row in result.fetchall()]

    async def count_matches(self, db: AsyncSession, tournament_id: str) -> int:
        result = await db.execute(_COUNT_MATCHES_SQL, {"tournament_id": tournament_id})
        return int(result.scalar_one())

    async def complete_match(
        self,
        db: AsyncSession,
        match_id: str,
        winner_id: str,
        score_a: int,
        score_b: int,
    ) -> Match | None:
        row = (
            await db.execute(
                _COMPLETE_MATCH_SQL,
                {"id": match_id, "winner_id": winner_id, "score_a": score_a, "score_b": score_b},
            )
        ).fetchone()
        return _row_to_match(row) if row else None

    async def mark_disputed(self, db: AsyncSession, match_id: str, reason: str) -> Match | None:
        row = (await db.execute(_MARK_DISPUTED_SQL, {"id": match_id, "reason": reason})).fetchone()
        return _row_to_match(row) if row else None

    async def fill_slot(
        self, db: AsyncSession, match_id: str, position: int, participant_id: str
    ) -> Match | None:
        sql = _FILL_SLOT_A_SQL if position == 1 else _FILL_SLOT_B_SQL
        row = (
            await db.execute(sql, {"id": match_id, "participant_id": participant_id})
        ).fetchone()
        return _row_to_match(row) if row else None
