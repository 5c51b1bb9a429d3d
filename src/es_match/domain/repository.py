"""Repository Protocol — dependency inversion for testability.

Unit tests inject a mock that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.es_match.domain.bracket import PlannedMatch
from src.es_match.domain.models import Match


class MatchRepositoryProtocol(Protocol):
    async def insert_matches(
        self, db: AsyncSession, tournament_id: str, matches: list[PlannedMatch]
    ) -> None: ...

    async def get_match(self, db: AsyncSession, match_id: str) -> Match | None: ...

    async def get_match_for_update(self, db: AsyncSession, match_id: str) -> Match | None: ...

    async def list_matches(self, db: AsyncSession, tournament_id: str) -> list[Match]: ...

    async def count_matches(self, db: AsyncSession, tournament_id: str) -> int: ...

    async def complete_match(
        self,
        db: AsyncSession,
        match_id: str,
        winner_id: str,
        score_a: int,
        score_b: int,
    ) -> Match | None: ...

    async def mark_disputed(
        self, db: AsyncSession, match_id: str, reason: str
    ) -> Match | None: ...

    async def fill_slot(
        self, db: AsyncSession, match_id: str, position: int, participant_id: str
    ) -> Match | None: ...
