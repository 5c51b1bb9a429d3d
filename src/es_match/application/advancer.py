"""MatchAdvancer — move a completed match's winner one step up the tree.

Runs inside the caller's transaction, after the match row itself has been
marked COMPLETED. Advancement is passive: the next match simply gets its slot
filled and waits for its own result.
"""

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from src.es_common.errors import InternalError
from src.es_match.domain.models import Match
from src.es_match.domain.repository import MatchRepositoryProtocol
from src.es_match.domain.rules import round_complete
from src.es_match.infrastructure.persistence import MatchRepository
from src.es_tournament.domain.repository import TournamentRepositoryProtocol
from src.es_tournament.infrastructure.persistence import TournamentRepository

logger = logging.getLogger("es.advancer")


@dataclass
class AdvanceOutcome:
    match_id: str
    winner_id: str
    tournament_completed: bool = False
    next_match_id: str | None = None
    new_round: int | None = None


class MatchAdvancer:
    def __init__(
        self,
        match_repo: MatchRepositoryProtocol | None = None,
        tournament_repo: TournamentRepositoryProtocol | None = None,
    ) -> None:
        self._matches: MatchRepositoryProtocol = match_repo or MatchRepository()
        self._tournaments: TournamentRepositoryProtocol = tournament_repo or TournamentRepository()

    async def advance(self, db: AsyncSession, match: Match) -> AdvanceOutcome:
        if match.winner_id is None:
            raise InternalError(f"Cannot advance match {match.id} without a winner")
        outcome = AdvanceOutcome(match_id=match.id, winner_id=match.winner_id)

        if match.is_final:
            tournament = await self._tournaments.complete(db, match.tournament_id, match.winner_id)
            if tournament is None:
                raise InternalError(f"Tournament {match.tournament_id} is not ONGOING")
            outcome.tournament_completed = True
            logger.info(
                "Tournament %s completed, winner=%s", match.tournament_id, match.winner_id
            )
            return outcome

        if match.next_match_id is None or match.position_in_next_match is None:
            raise InternalError(f"Match {match.id} has no next slot")
        filled = await self._matches.fill_slot(
            db, match.next_match_id, match.position_in_next_match, match.winner_id
        )
        if filled is None:
            raise InternalError(f"Next match {match.next_match_id} is no longer SCHEDULED")
        outcome.next_match_id = filled.id

        matches = await self._matches.list_matches(db, match.tournament_id)
        if round_complete(matches, match.round):
            tournament = await self._tournaments.advance_round(db, match.tournament_id, match.round)
            if tournament is not None:
                outcome.new_round = tournament.current_round
                logger.info(
                    "Tournament %s advanced to round %s",
                    match.tournament_id,
                    tournament.current_round,
                )
        return outcome
