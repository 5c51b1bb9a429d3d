"""MatchApplicationService — score submission, disputes, admin resolution.

A result is one transaction: lock the tournament row, lock the match row,
validate, mark COMPLETED, advance the winner. After commit the realtime
events go out and, when the final was just decided, prize distribution runs
in its own transaction.

Lock order is always tournament then match, the same order the orchestrator
uses, so two writers on one tournament queue instead of deadlocking.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.es_common.enums import TournamentStatus
from src.es_common.errors import (
    MatchAlreadyCompletedError,
    MatchLockedError,
    MatchNotFoundError,
    TournamentNotFoundError,
    UnauthorizedError,
)
from src.es_common.events import (
    publish_bracket_changed,
    publish_match_completed,
    publish_tournament_updated,
)
from src.es_gateway.auth.capabilities import Capability, has_capability
from src.es_match.application.advancer import AdvanceOutcome, MatchAdvancer
from src.es_match.application.schemas import MatchResponse, MatchResultResponse
from src.es_match.domain.models import Match
from src.es_match.domain.repository import MatchRepositoryProtocol
from src.es_match.domain.rules import (
    decide_winner,
    ensure_disputable,
    ensure_resolvable,
    ensure_scorable,
)
from src.es_match.infrastructure.persistence import MatchRepository
from src.es_tournament.application.prizes import PrizeDistributor
from src.es_tournament.domain.models import Tournament
from src.es_tournament.domain.repository import (
    RegistrationRepositoryProtocol,
    TournamentRepositoryProtocol,
)
from src.es_tournament.infrastructure.persistence import TournamentRepository
from src.es_tournament.infrastructure.registrations import RegistrationRepository

logger = logging.getLogger("es.match")


class MatchApplicationService:
    def __init__(
        self,
        match_repo: MatchRepositoryProtocol | None = None,
        tournament_repo: TournamentRepositoryProtocol | None = None,
        registration_repo: RegistrationRepositoryProtocol | None = None,
        advancer: MatchAdvancer | None = None,
        prizes: PrizeDistributor | None = None,
    ) -> None:
        self._matches: MatchRepositoryProtocol = match_repo or MatchRepository()
        self._tournaments: TournamentRepositoryProtocol = tournament_repo or TournamentRepository()
        self._registrations: RegistrationRepositoryProtocol = (
            registration_repo or RegistrationRepository()
        )
        self._advancer = advancer or MatchAdvancer(self._matches, self._tournaments)
        self._prizes = prizes or PrizeDistributor(
            self._tournaments, self._registrations, self._matches
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_match(self, db: AsyncSession, match_id: str) -> MatchResponse:
        match = await self._matches.get_match(db, match_id)
        if match is None:
            raise MatchNotFoundError(match_id)
        return MatchResponse.from_domain(match)

    async def list_matches(self, db: AsyncSession, tournament_id: str) -> list[MatchResponse]:
        if await self._tournaments.get_tournament(db, tournament_id) is None:
            raise TournamentNotFoundError(tournament_id)
        matches = await self._matches.list_matches(db, tournament_id)
        return [MatchResponse.from_domain(m) for m in matches]

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def submit_score(
        self,
        db: AsyncSession,
        match_id: str,
        user_id: str,
        role: str,
        score_a: int,
        score_b: int,
    ) -> MatchResultResponse:
        try:
            tournament, match = await self._lock(db, match_id)
            ensure_scorable(match)
            await self._ensure_may_report(db, tournament, match, user_id, role)
            winner_id = decide_winner(match, score_a, score_b)
            completed, outcome = await self._complete(db, match, winner_id, score_a, score_b)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Score submitted match=%s by=%s winner=%s", match_id, user_id, winner_id)
        return await self._after_commit(db, completed, outcome)

    async def dispute_match(
        self,
        db: AsyncSession,
        match_id: str,
        user_id: str,
        role: str,
        reason: str,
    ) -> MatchResponse:
        try:
            tournament, match = await self._lock(db, match_id)
            ensure_disputable(match)
            await self._ensure_may_report(db, tournament, match, user_id, role)
            disputed = await self._matches.mark_disputed(db, match_id, reason)
            if disputed is None:
                raise MatchLockedError(match_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Match %s disputed by %s", match_id, user_id)
        await publish_bracket_changed(disputed.tournament_id, disputed.round)
        return MatchResponse.from_domain(disputed)

    async def resolve_dispute(
        self,
        db: AsyncSession,
        match_id: str,
        winner_id: str,
        score_a: int,
        score_b: int,
    ) -> MatchResultResponse:
        """Admin override: completes a SCHEDULED or DISPUTED match, locked or not."""
        try:
            _, match = await self._lock(db, match_id)
            ensure_resolvable(match, winner_id, score_a, score_b)
            completed, outcome = await self._complete(db, match, winner_id, score_a, score_b)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Match %s resolved, winner=%s", match_id, winner_id)
        return await self._after_commit(db, completed, outcome)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _lock(self, db: AsyncSession, match_id: str) -> tuple[Tournament, Match]:
        peek = await self._matches.get_match(db, match_id)
        if peek is None:
            raise MatchNotFoundError(match_id)
        tournament = await self._tournaments.get_tournament_for_update(db, peek.tournament_id)
        if tournament is None:
            raise TournamentNotFoundError(peek.tournament_id)
        match = await self._matches.get_match_for_update(db, match_id)
        if match is None:
            raise MatchNotFoundError(match_id)
        if tournament.status != TournamentStatus.ONGOING and not match.is_completed:
            raise MatchLockedError(match_id)
        return tournament, match

    async def _ensure_may_report(
        self,
        db: AsyncSession,
        tournament: Tournament,
        match: Match,
        user_id: str,
        role: str,
    ) -> None:
        """Participants, team captains, the host and match resolvers may report."""
        if user_id == tournament.host_id or has_capability(role, Capability.RESOLVE_MATCHES):
            return
        if match.has_participant(user_id):
            return
        for participant_id in (match.participant_a_id, match.participant_b_id):
            if participant_id is None:
                continue
            registration = await self._registrations.get_registration(
                db, tournament.id, participant_id
            )
            if registration is not None and registration.payer_user_id == user_id:
                return
        raise UnauthorizedError("Only match participants, the host or an admin may do this")

    async def _complete(
        self,
        db: AsyncSession,
        match: Match,
        winner_id: str,
        score_a: int,
        score_b: int,
    ) -> tuple[Match, AdvanceOutcome]:
        completed = await self._matches.complete_match(db, match.id, winner_id, score_a, score_b)
        if completed is None:
            raise MatchAlreadyCompletedError(match.id)
        outcome = await self._advancer.advance(db, completed)
        return completed, outcome

    async def _after_commit(
        self, db: AsyncSession, match: Match, outcome: AdvanceOutcome
    ) -> MatchResultResponse:
        await publish_match_completed(
            match.tournament_id,
            match.id,
            outcome.winner_id,
            match.score_a or 0,
            match.score_b or 0,
        )
        if outcome.tournament_completed:
            await publish_tournament_updated(
                match.tournament_id, TournamentStatus.COMPLETED.value, ["status", "winner_id"]
            )
            await self._prizes.distribute_after_commit(db, match.tournament_id)
        else:
            await publish_bracket_changed(match.tournament_id, outcome.new_round or match.round)
        return MatchResultResponse(
            match=MatchResponse.from_domain(match),
            tournament_completed=outcome.tournament_completed,
            next_match_id=outcome.next_match_id,
            current_round=outcome.new_round,
        )
