"""Repository Protocols — dependency inversion for testability.

Unit tests inject mocks that conform to these Protocols.
Infrastructure layer provides the real implementations.

Guarded updates return None when the row was not in the expected state.
"""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.es_tournament.domain.models import Registration, Team, Tournament, TournamentDraft


class TournamentRepositoryProtocol(Protocol):
    async def create_tournament(self, db: AsyncSession, draft: TournamentDraft) -> Tournament: ...

    async def get_tournament(self, db: AsyncSession, tournament_id: str) -> Tournament | None: ...

    async def get_tournament_for_update(
        self, db: AsyncSession, tournament_id: str
    ) -> Tournament | None: ...

    async def list_tournaments(
        self,
        db: AsyncSession,
        status: str | None,
        game: str | None,
        cursor_ts: str | None,
        cursor_id: str | None,
        limit: int,
    ) -> list[Tournament]: ...

    async def update_status(
        self, db: AsyncSession, tournament_id: str, expected: str, status: str
    ) -> Tournament | None: ...

    async def close_registration(
        self, db: AsyncSession, tournament_id: str
    ) -> Tournament | None: ...

    async def reschedule(
        self,
        db: AsyncSession,
        tournament_id: str,
        start_time: datetime | None,
        registration_end: datetime | None,
    ) -> Tournament | None: ...

    async def adjust_collected(
        self, db: AsyncSession, tournament_id: str, delta: int
    ) -> Tournament | None: ...

    async def cancel_and_clear_collected(
        self, db: AsyncSession, tournament_id: str, expected: str
    ) -> Tournament | None: ...

    async def start(
        self, db: AsyncSession, tournament_id: str, total_rounds: int
    ) -> Tournament | None: ...

    async def advance_round(
        self, db: AsyncSession, tournament_id: str, from_round: int
    ) -> Tournament | None: ...

    async def complete(
        self, db: AsyncSession, tournament_id: str, winner_id: str
    ) -> Tournament | None: ...

    async def record_payout(
        self,
        db: AsyncSession,
        tournament_id: str,
        payout_status: str,
        host_profit: int | None,
    ) -> Tournament | None: ...


class RegistrationRepositoryProtocol(Protocol):
    async def get_registration(
        self, db: AsyncSession, tournament_id: str, participant_id: str
    ) -> Registration | None: ...

    async def insert_registration(
        self,
        db: AsyncSession,
        tournament_id: str,
        participant_id: str,
        payer_user_id: str,
        payment_status: str,
        amount_paid: int,
    ) -> Registration | None: ...

    async def delete_registration(self, db: AsyncSession, registration_id: str) -> bool: ...

    async def list_confirmed(self, db: AsyncSession, tournament_id: str) -> list[Registration]: ...

    async def count_confirmed(self, db: AsyncSession, tournament_id: str) -> int: ...

    async def get_team(self, db: AsyncSession, team_id: str) -> Team | None: ...
