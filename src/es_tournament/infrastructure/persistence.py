"""TournamentRepository — concrete implementation of TournamentRepositoryProtocol.

All queries use raw text() SQL. Lifecycle changes are guarded
UPDATE ... RETURNING statements keyed on the expected current status, so a
concurrent transition shows up as "no row" instead of a silent overwrite.
asyncpg NULL parameter pattern: CAST(:param AS TYPE) IS NULL for optional filters.

Transaction ownership: the caller commits or rolls back.
"""

from collections import defaultdict
from datetime import datetime
from typing import Any

from sqlalchemy import bindparam, text
from sqlalchemy.ext.asyncio import AsyncSession

from src.es_common.errors import InternalError
from src.es_tournament.domain.models import PayoutPosition, Tournament, TournamentDraft

# ---------------------------------------------------------------------------
# SQL
# ---------------------------------------------------------------------------

_TOURNAMENT_COLUMNS = """
    id, host_id, name, game, type, team_size, entry_fee, prize_pool,
    min_participants_required, max_participants, insufficient_reg_policy,
    status, registration_open, registration_end, start_time, collected,
    current_round, total_rounds, winner_id, host_profit, payout_status,
    created_at, updated_at
"""

_INSERT_TOURNAMENT_SQL = text(f"""
    INSERT INTO tournaments
        (host_id, name, game, type, team_size, entry_fee, prize_pool,
         min_participants_required, max_participants, insufficient_reg_policy,
         registration_end, start_time)
    VALUES
        (:host_id, :name, :game, :type, :team_size, :entry_fee, :prize_pool,
         :min_participants_required, :max_participants, :insufficient_reg_policy,
         :registration_end, :start_time)
    RETURNING {_TOURNAMENT_COLUMNS}
""")

_INSERT_PAYOUT_SQL = text("""
    INSERT INTO tournament_payouts (tournament_id, position, amount)
    VALUES (:tournament_id, :position, :amount)
""")

_GET_PAYOUTS_SQL = text("""
    SELECT tournament_id, position, amount
    FROM tournament_payouts
    WHERE tournament_id IN :ids
    ORDER BY tournament_id, position
""").bindparams(bindparam("ids", expanding=True))

_GET_TOURNAMENT_SQL = text(f"SELECT {_TOURNAMENT_COLUMNS} FROM tournaments WHERE id = :id")

_GET_TOURNAMENT_FOR_UPDATE_SQL = text(
    f"SELECT {_TOURNAMENT_COLUMNS} FROM tournaments WHERE id = :id FOR UPDATE"
)

_LIST_TOURNAMENTS_SQL = text(f"""
    SELECT {_TOURNAMENT_COLUMNS}
    FROM tournaments
    WHERE
        (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
        AND (CAST(:game AS TEXT) IS NULL OR game = CAST(:game AS TEXT))
        AND (
            CAST(:cursor_ts AS TIMESTAMPTZ) IS NULL
            OR created_at < CAST(:cursor_ts AS TIMESTAMPTZ)
            OR (
                created_at = CAST(:cursor_ts AS TIMESTAMPTZ)
                AND id < CAST(:cursor_id AS TEXT)
            )
        )
    ORDER BY created_at DESC, id DESC
    LIMIT :limit
""")

_UPDATE_STATUS_SQL = text(f"""
    UPDATE tournaments
    SET status = CAST(:status AS TEXT),
        registration_open = CASE WHEN CAST(:status AS TEXT) = 'UPCOMING' THEN registration_open ELSE FALSE END,
        updated_at = NOW()
    WHERE id = :id AND status = :expected
    RETURNING {_TOURNAMENT_COLUMNS}
""")

_CLOSE_REGISTRATION_SQL = text(f"""
    UPDATE tournaments
    SET registration_open = FALSE, updated_at = NOW()
    WHERE id = :id AND status = 'UPCOMING'
    RETURNING {_TOURNAMENT_COLUMNS}
""")

_RESCHEDULE_SQL = text(f"""
    UPDATE tournaments
    SET status = 'UPCOMING',
        registration_open = TRUE,
        start_time = :start_time,
        registration_end = :registration_end,
        updated_at = NOW()
    WHERE id = :id AND status = 'POSTPONED'
    RETURNING {_TOURNAMENT_COLUMNS}
""")

_ADJUST_COLLECTED_SQL = text(f"""
    UPDATE tournaments
    SET collected = collected + :delta, updated_at = NOW()
    WHERE id = :id AND collected + :delta >= 0
    RETURNING {_TOURNAMENT_COLUMNS}
""")

_CANCEL_SQL = text(f"""
    UPDATE tournaments
    SET status = 'CANCELLED',
        registration_open = FALSE,
        collected = 0,
        updated_at = NOW()
    WHERE id = :id AND status = :expected
    RETURNING {_TOURNAMENT_COLUMNS}
""")

_START_SQL = text(f"""
    UPDATE tournaments
    SET status = 'ONGOING',
        registration_open = FALSE,
        total_rounds = :total_rounds,
        current_round = 1,
        updated_at = NOW()
    WHERE id = :id AND status = 'UPCOMING' AND total_rounds IS NULL
    RETURNING {_TOURNAMENT_COLUMNS}
""")

_ADVANCE_ROUND_SQL = text(f"""
    UPDATE tournaments
    SET current_round = current_round + 1, updated_at = NOW()
    WHERE id = :id AND status = 'ONGOING'
      AND current_round = :from_round AND current_round < total_rounds
    RETURNING {_TOURNAMENT_COLUMNS}
""")

_COMPLETE_SQL = text(f"""
    UPDATE tournaments
    SET status = 'COMPLETED', winner_id = :winner_id, updated_at = NOW()
    WHERE id = :id AND status = 'ONGOING'
    RETURNING {_TOURNAMENT_COLUMNS}
""")

_RECORD_PAYOUT_SQL = text(f"""
    UPDATE tournaments
    SET payout_status = :payout_status,
        host_profit = COALESCE(CAST(:host_profit AS BIGINT), host_profit),
        updated_at = NOW()
    WHERE id = :id AND payout_status <> 'PAID'
    RETURNING {_TOURNAMENT_COLUMNS}
""")


def _row_to_tournament(row: Any, payouts: list[PayoutPosition] | None = None) -> Tournament:
    return Tournament(
        id=str(row.id),
        host_id=str(row.host_id),
        name=row.name,
        game=row.game,
        type=row.type,
        team_size=row.team_size,
        entry_fee=row.entry_fee,
        prize_pool=row.prize_pool,
        min_participants_required=row.min_participants_required,
        max_participants=row.max_participants,
        insufficient_reg_policy=row.insufficient_reg_policy,
        status=row.status,
        registration_open=row.registration_open,
        registration_end=row.registration_end,
        start_time=row.start_time,
        collected=row.collected,
        current_round=row.current_round,
        total_rounds=row.total_rounds,
        winner_id=row.winner_id,
        host_profit=row.host_profit,
        payout_status=row.payout_status,
        payouts=payouts or [],
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


class TournamentRepository:
    async def _payouts_by_tournament(
        self, db: AsyncSession, ids: list[str]
    ) -> dict[str, list[PayoutPosition]]:
        if not ids:
            return {}
        rows = (await db.execute(_GET_PAYOUTS_SQL, {"ids": ids})).fetchall()
        grouped: dict[str, list[PayoutPosition]] = defaultdict(list)
        for row in rows:
            grouped[str(row.tournament_id)].append(
                PayoutPosition(position=row.position, amount=row.amount)
            )
        return grouped

    async def _with_payouts(self, db: AsyncSession, row: Any) -> Tournament | None:
        if row is None:
            return None
        payouts = await self._payouts_by_tournament(db, [str(row.id)])
        return _row_to_tournament(row, payouts.get(str(row.id)))

    async def create_tournament(self, db: AsyncSession, draft: TournamentDraft) -> Tournament:
        row = (
            await db.execute(
                _INSERT_TOURNAMENT_SQL,
                {
                    "host_id": draft.host_id,
                    "name": draft.name,
                    "game": draft.game,
                    "type": draft.type,
                    "team_size": draft.team_size,
                    "entry_fee": draft.entry_fee,
                    "prize_pool": draft.prize_pool,
                    "min_participants_required": draft.min_participants_required,
                    "max_participants": draft.max_participants,
                    "insufficient_reg_policy": draft.insufficient_reg_policy,
                    "registration_end": draft.registration_end,
                    "start_time": draft.start_time,
                },
            )
        ).fetchone()
        if row is None:
            raise InternalError("Tournament insert returned no rows")
        if draft.payouts:
            await db.execute(
                _INSERT_PAYOUT_SQL,
                [
                    {"tournament_id": str(row.id), "position": p.position, "amount": p.amount}
                    for p in draft.payouts
                ],
            )
        return _row_to_tournament(row, list(draft.payouts))

    async def get_tournament(self, db: AsyncSession, tournament_id: str) -> Tournament | None:
        row = (await db.execute(_GET_TOURNAMENT_SQL, {"id": tournament_id})).fetchone()
        return await self._with_payouts(db, row)

    async def get_tournament_for_update(
        self, db: AsyncSession, tournament_id: str
    ) -> Tournament | None:
        row = (await db.execute(_GET_TOURNAMENT_FOR_UPDATE_SQL, {"id": tournament_id})).fetchone()
        return await self._with_payouts(db, row)

    async def list_tournaments(
        self,
        db: AsyncSession,
        status: str | None,
        game: str | None,
        cursor_ts: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Tournament]:
        # asyncpg wants a datetime for TIMESTAMPTZ parameters, not an ISO string
        cursor_ts_dt = datetime.fromisoformat(cursor_ts) if cursor_ts is not None else None
        rows = (
            await db.execute(
                _LIST_TOURNAMENTS_SQL,
                {
                    "status": status,
                    "game": game,
                    "cursor_ts": cursor_ts_dt,
                    "cursor_id": cursor_id,
                    "limit": limit,
                },
            )
        ).fetchall()
        payouts = await self._payouts_by_tournament(db, [str(r.id) for r in rows])
        return [_row_to_tournament(r, payouts.get(str(r.id))) for r in rows]

    async def _guarded(self, db: AsyncSession, sql: Any, params: dict[str, Any]) -> Tournament | None:
        row = (await db.execute(sql, params)).fetchone()
        return await self._with_payouts(db, row)

    async def update_status(
        self, db: AsyncSession, tournament_id: str, expected: str, status: str
    ) -> Tournament | None:
        return await self._guarded(
            db, _UPDATE_STATUS_SQL, {"id": tournament_id, "expected": expected, "status": status}
        )

    async def close_registration(self, db: AsyncSession, tournament_id: str) -> Tournament | None:
        return await self._guarded(db, _CLOSE_REGISTRATION_SQL, {"id": tournament_id})

    async def reschedule(
        self,
        db: AsyncSession,
        tournament_id: str,
        start_time: datetime | None,
        registration_end: datetime | None,
    ) -> Tournament | None:
        return await self._guarded(
            db,
            _RESCHEDULE_SQL,
            {"id": tournament_id, "start_time": start_time, "registration_end": registration_end},
        )

    async def adjust_collected(
        self, db: AsyncSession, tournament_id: str, delta: int
    ) -> Tournament | None:
        return await self._guarded(db, _ADJUST_COLLECTED_SQL, {"id": tournament_id, "delta": delta})

    async def cancel_and_clear_collected(
        self, db: AsyncSession, tournament_id: str, expected: str
    ) -> Tournament | None:
        return await self._guarded(db, _CANCEL_SQL, {"id": tournament_id, "expected": expected})

    async def start(
        self, db: AsyncSession, tournament_id: str, total_rounds: int
    ) -> Tournament | None:
        return await self._guarded(
            db, _START_SQL, {"id": tournament_id, "total_rounds": total_rounds}
        )

    async def advance_round(
        self, db: AsyncSession, tournament_id: str, from_round: int
    ) -> Tournament | None:
        return await self._guarded(
            db, _ADVANCE_ROUND_SQL, {"id": tournament_id, "from_round": from_round}
        )

    async def complete(
        self, db: AsyncSession, tournament_id: str, winner_id: str
    ) -> Tournament | None:
        return await self._guarded(db, _COMPLETE_SQL, {"id": tournament_id, "winner_id": winner_id})

    async def record_payout(
        self,
        db: AsyncSession,
        tournament_id: str,
        payout_status: str,
        host_profit: int | None,
    ) -> Tournament | None:
        return await self._guarded(
            db,
            _RECORD_PAYOUT_SQL,
            {"id": tournament_id, "payout_status": payout_status, "host_profit": host_profit},
        )
