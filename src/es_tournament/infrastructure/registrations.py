"""RegistrationRepository — registrations plus read-only team lookups.

One registration per (tournament_id, participant_id) is enforced by a UNIQUE
constraint; insert uses ON CONFLICT DO NOTHING so a duplicate comes back as
None rather than an IntegrityError that would poison the transaction.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.es_tournament.domain.models import Registration, Team

_REGISTRATION_COLUMNS = """
    id, tournament_id, participant_id, payer_user_id, status,
    payment_status, amount_paid, created_at
"""

_GET_REGISTRATION_SQL = text(f"""
    SELECT {_REGISTRATION_COLUMNS}
    FROM registrations
    WHERE tournament_id = :tournament_id AND participant_id = :participant_id
""")

_INSERT_REGISTRATION_SQL = text(f"""
    INSERT INTO registrations
        (tournament_id, participant_id, payer_user_id, status, payment_status, amount_paid)
    VALUES
        (:tournament_id, :participant_id, :payer_user_id, 'CONFIRMED', :payment_status, :amount_paid)
    ON CONFLICT (tournament_id, participant_id) DO NOTHING
    RETURNING {_REGISTRATION_COLUMNS}
""")

_DELETE_REGISTRATION_SQL = text("DELETE FROM registrations WHERE id = :id RETURNING id")

_LIST_CONFIRMED_SQL = text(f"""
    SELECT {_REGISTRATION_COLUMNS}
    FROM registrations
    WHERE tournament_id = :tournament_id AND status = 'CONFIRMED'
    ORDER BY created_at, id
""")

_COUNT_CONFIRMED_SQL = text("""
    SELECT COUNT(*)
    FROM registrations
    WHERE tournament_id = :tournament_id AND status = 'CONFIRMED'
""")

_GET_TEAM_SQL = text("SELECT id, name, captain_id FROM teams WHERE id = :id")

_GET_TEAM_MEMBERS_SQL = text("""
    SELECT user_id FROM team_members WHERE team_id = :team_id ORDER BY joined_at, user_id
""")


def _row_to_registration(row: Any) -> Registration:
    return Registration(
        id=str(row.id),
        tournament_id=str(row.tournament_id),
        participant_id=row.participant_id,
        payer_user_id=row.payer_user_id,
        status=row.status,
        payment_status=row.payment_status,
        amount_paid=row.amount_paid,
        created_at=row.created_at,
    )


class RegistrationRepository:
    async def get_registration(
        self, db: AsyncSession, tournament_id: str, participant_id: str
    ) -> Registration | None:
        row = (
            await db.execute(
                _GET_REGISTRATION_SQL,
                {"tournament_id": tournament_id, "participant_id": participant_id},
            )
        ).fetchone()
        return _row_to_registration(row) if row else None

    async def insert_registration(
        self,
        db: AsyncSession,
        tournament_id: str,
        participant_id: str,
        payer_user_id: str,
        payment_status: str,
        amount_paid: int,
    ) -> Registration | None:
        row = (
            await db.execute(
                _INSERT_REGISTRATION_SQL,
                {
                    "tournament_id": tournament_id,
                    "participant_id": participant_id,
                    "payer_user_id": payer_user_id,
                    "payment_status": payment_status,
                    "amount_paid": amount_paid,
                },
            )
        ).fetchone()
        return _row_to_registration(row) if row else None

    async def delete_registration(self, db: AsyncSession, registration_id: str) -> bool:
        row = (await db.execute(_DELETE_REGISTRATION_SQL, {"id": registration_id})).fetchone()
        return row is not None

    async def list_confirmed(self, db: AsyncSession, tournament_id: str) -> list[Registration]:
        result = await db.execute(_LIST_CONFIRMED_SQL, {"tournament_id": tournament_id})
        return [_row_to_registration(row) for row in result.fetchall()]

    async def count_confirmed(self, db: AsyncSession, tournament_id: str) -> int:
        result = await db.execute(_COUNT_CONFIRMED_SQL, {"tournament_id": tournament_id})
        return int(result.scalar_one())

    async def get_team(self, db: AsyncSession, team_id: str) -> Team | None:
        row = (await db.execute(_GET_TEAM_SQL, {"id": team_id})).fetchone()
        if row is None:
            return None
        members = (await db.execute(_GET_TEAM_MEMBERS_SQL, {"team_id": team_id})).fetchall()
        return Team(
            id=str(row.id),
            name=row.name,
            captain_id=row.captain_id,
            member_ids=[m.user_id for m in members],
        )
