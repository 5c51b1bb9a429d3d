"""BracketBuilder — persist a planned bracket inside the caller's transaction."""

import logging
import random

from sqlalchemy.ext.asyncio import AsyncSession

from src.es_common.errors import BracketAlreadyStartedError
from src.es_match.domain.bracket import BracketPlan, plan_bracket
from src.es_match.domain.repository import MatchRepositoryProtocol
from src.es_match.infrastructure.persistence import MatchRepository

logger = logging.getLogger("es.bracket")


class BracketBuilder:
    def __init__(
        self,
        repo: MatchRepositoryProtocol | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._repo: MatchRepositoryProtocol = repo or MatchRepository()
        self._rng = rng or random.SystemRandom()

    async def build(
        self,
        db: AsyncSession,
        tournament_id: str,
        participant_ids: list[str],
        seeded: bool = False,
    ) -> BracketPlan:
        """Plan and insert every match, byes already completed and propagated.

        Participants are shuffled unless `seeded`, in which case the list order
        is the seeding order. Raises InsufficientParticipantsError for N < 2
        and BracketAlreadyStartedError if the tournament already has matches.
        """
        if await self._repo.count_matches(db, tournament_id) > 0:
            raise BracketAlreadyStartedError(tournament_id)

        ordered = list(participant_ids)
        if not seeded:
            self._rng.shuffle(ordered)

        plan = plan_bracket(ordered)
        await self._repo.insert_matches(db, tournament_id, plan.matches)
        logger.info(
            "Bracket built tournament=%s participants=%d rounds=%d byes=%d",
            tournament_id,
            len(ordered),
            plan.rounds,
            plan.byes,
        )
        return plan
