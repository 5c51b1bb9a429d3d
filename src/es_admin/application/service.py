"""Admin application service.

Withdrawal review and manual wallet adjustments go straight through the
Ledger; match resolution and payout retry reuse the match service and the
orchestrator so admin actions follow the same locking and event rules.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.es_common.enums import TxSource
from src.es_match.application.schemas import MatchResultResponse
from src.es_match.application.service import MatchApplicationService
from src.es_tournament.application.schemas import PayoutResultResponse
from src.es_tournament.application.service import TournamentOrchestrator
from src.es_wallet.application.ledger import Ledger
from src.es_wallet.application.schemas import WalletOperationResponse
from src.es_wallet.domain.invariants import verify_wallet_invariants

logger = logging.getLogger("es.admin")


class AdminService:
    def __init__(
        self,
        ledger: Ledger | None = None,
        match_service: MatchApplicationService | None = None,
        orchestrator: TournamentOrchestrator | None = None,
    ) -> None:
        self._ledger = ledger or Ledger()
        self._matches = match_service or MatchApplicationService()
        self._orchestrator = orchestrator or TournamentOrchestrator(ledger=self._ledger)

    async def approve_withdrawal(
        self, db: AsyncSession, transaction_id: int, admin_id: str
    ) -> WalletOperationResponse:
        try:
            wallet, tx = await self._ledger.approve_withdrawal(db, transaction_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Withdrawal %d approved by %s", transaction_id, admin_id)
        return WalletOperationResponse.from_result(wallet, tx)

    async def reject_withdrawal(
        self, db: AsyncSession, transaction_id: int, admin_id: str
    ) -> WalletOperationResponse:
        try:
            wallet, tx = await self._ledger.reject_withdrawal(db, transaction_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Withdrawal %d rejected by %s", transaction_id, admin_id)
        return WalletOperationResponse.from_result(wallet, tx)

    async def adjust_wallet(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        reason: str,
        admin_id: str,
    ) -> WalletOperationResponse:
        """Positive amount credits, negative debits; both recorded as MANUAL."""
        description = f"Manual adjustment by {admin_id}: {reason}"
        try:
            if amount >= 0:
                wallet, tx = await self._ledger.credit(
                    db, user_id, amount, TxSource.MANUAL, description=description
                )
            else:
                wallet, tx = await self._ledger.debit(
                    db, user_id, -amount, TxSource.MANUAL, description=description
                )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Wallet of %s adjusted by %d (admin %s)", user_id, amount, admin_id)
        return WalletOperationResponse.from_result(wallet, tx)

    async def resolve_match(
        self,
        db: AsyncSession,
        match_id: str,
        winner_id: str,
        score_a: int,
        score_b: int,
    ) -> MatchResultResponse:
        return await self._matches.resolve_dispute(db, match_id, winner_id, score_a, score_b)

    async def finalize_tournament(
        self, db: AsyncSession, tournament_id: str
    ) -> PayoutResultResponse:
        return await self._orchestrator.finalize_tournament(db, tournament_id)

    async def verify_wallet_invariants(
        self, db: AsyncSession, user_id: str | None = None
    ) -> dict[str, object]:
        """Re-sum completed transactions against every wallet (or one user's)."""
        violations = await verify_wallet_invariants(db, user_id)
        return {"ok": not violations, "violations": violations}
