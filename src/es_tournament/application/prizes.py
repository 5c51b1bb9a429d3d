"""PrizeDistributor — pay a completed tournament's payout table.

Runs in its own transaction after the final's result has committed, so a
payout failure never rolls back the match result. The tournament row is read
FOR UPDATE and payout_status = PAID makes a repeated call a no-op.

Failure path: the distribution transaction is rolled back, the error logged,
and payout_status set to FAILED in a separate transaction so an admin can
retry through finalize.
"""

import logging
from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.es_common.enums import PayoutStatus, TournamentStatus, TxSource
from src.es_common.errors import (
    InvalidTournamentStateError,
    PayoutFailedError,
    TournamentNotFoundError,
)
from src.es_match.domain.repository import MatchRepositoryProtocol
from src.es_match.domain.rules import finishing_order
from src.es_match.infrastructure.persistence import MatchRepository
from src.es_tournament.domain.payouts import PrizeAward, plan_awards, settle
from src.es_tournament.domain.repository import (
    RegistrationRepositoryProtocol,
    TournamentRepositoryProtocol,
)
from src.es_tournament.infrastructure.persistence import TournamentRepository
from src.es_tournament.infrastructure.registrations import RegistrationRepository
from src.es_wallet.application.ledger import Ledger

logger = logging.getLogger("es.prizes")


@dataclass
class PayoutResult:
    tournament_id: str
    already_paid: bool = False
    awards: list[PrizeAward] = field(default_factory=list)
    platform_fee: int = 0
    host_profit: int = 0


class PrizeDistributor:
    def __init__(
        self,
        tournament_repo: TournamentRepositoryProtocol | None = None,
        registration_repo: RegistrationRepositoryProtocol | None = None,
        match_repo: MatchRepositoryProtocol | None = None,
        ledger: Ledger | None = None,
        fee_bps: int | None = None,
    ) -> None:
        self._tournaments: TournamentRepositoryProtocol = tournament_repo or TournamentRepository()
        self._registrations: RegistrationRepositoryProtocol = (
            registration_repo or RegistrationRepository()
        )
        self._matches: MatchRepositoryProtocol = match_repo or MatchRepository()
        self._ledger = ledger or Ledger()
        self._fee_bps = settings.PLATFORM_FEE_BPS if fee_bps is None else fee_bps

    async def distribute(self, db: AsyncSession, tournament_id: str) -> PayoutResult:
        """Credit every payout position and the host's earnings. Does not commit."""
        tournament = await self._tournaments.get_tournament_for_update(db, tournament_id)
        if tournament is None:
            raise TournamentNotFoundError(tournament_id)
        if tournament.payout_status == PayoutStatus.PAID:
            return PayoutResult(tournament_id=tournament_id, already_paid=True)
        if tournament.status != TournamentStatus.COMPLETED:
            raise InvalidTournamentStateError(tournament.status, "PAID")

        ranking = finishing_order(await self._matches.list_matches(db, tournament_id))
        awards = plan_awards(tournament.payouts, ranking)
        payers = {
            r.participant_id: r.payer_user_id
            for r in await self._registrations.list_confirmed(db, tournament_id)
        }

        for award in awards:
            payer = payers.get(award.participant_id)
            if payer is None:
                raise PayoutFailedError(f"no registration for {award.participant_id}")
            await self._ledger.credit(
                db,
                payer,
                award.amount,
                TxSource.WINNING,
                tournament_id=tournament_id,
                description=f"Prize for position {award.position} in {tournament.name}",
            )

        settlement = settle(tournament.collected, tournament.prize_pool, self._fee_bps)
        if settlement.host_profit > 0:
            await self._ledger.credit(
                db,
                tournament.host_id,
                settlement.host_profit,
                TxSource.HOST_EARNING,
                tournament_id=tournament_id,
                description=f"Host earnings for {tournament.name}",
            )

        await self._tournaments.record_payout(
            db, tournament_id, PayoutStatus.PAID.value, settlement.host_profit
        )
        logger.info(
            "Prizes paid tournament=%s awards=%d platform_fee=%d host_profit=%d",
            tournament_id,
            len(awards),
            settlement.platform_fee,
            settlement.host_profit,
        )
        return PayoutResult(
            tournament_id=tournament_id,
            awards=awards,
            platform_fee=settlement.platform_fee,
            host_profit=settlement.host_profit,
        )

    async def distribute_after_commit(
        self, db: AsyncSession, tournament_id: str
    ) -> PayoutResult | None:
        """Distribute in a fresh transaction; failures are logged, not raised."""
        try:
            result = await self.distribute(db, tournament_id)
            await db.commit()
            return result
        except Exception:
            await db.rollback()
            logger.exception("Prize distribution failed for tournament %s", tournament_id)

        try:
            await self._tournaments.record_payout(
                db, tournament_id, PayoutStatus.FAILED.value, None
            )
            await db.commit()
        except Exception:
            await db.rollback()
            logger.exception("Could not mark payout FAILED for tournament %s", tournament_id)
        return None
