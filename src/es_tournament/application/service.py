"""TournamentOrchestrator — lifecycle, registration money flow, bracket start.

Every write is one transaction with the tournament row locked FOR UPDATE
first. Money moves only through the Ledger inside that same transaction, so a
failed debit, refund or state change leaves nothing behind:

    register    debit entry fee + insert registration + collected += fee
    unregister  refund + delete registration + collected -= paid
    cancel      refund every registration + CANCELLED + collected = 0

Realtime events are published only after the commit succeeds.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from src.es_common.datetime_utils import ensure_utc, utc_now
from src.es_common.enums import (
    InsufficientRegPolicy,
    PaymentStatus,
    TournamentStatus,
    TournamentType,
    TxSource,
)
from src.es_common.errors import (
    AlreadyRegisteredError,
    BracketAlreadyStartedError,
    InsufficientParticipantsError,
    InternalError,
    InvalidPayoutTableError,
    InvalidTeamError,
    InvalidTournamentStateError,
    RegistrationClosedError,
    RegistrationNotFoundError,
    TeamNotFoundError,
    TournamentFullError,
    TournamentNotFoundError,
    UnauthorizedError,
)
from src.es_common.events import publish_bracket_changed, publish_tournament_updated
from src.es_gateway.auth.capabilities import Capability, has_capability
from src.es_match.application.bracket_builder import BracketBuilder
from src.es_match.application.schemas import MatchResponse, MatchResultResponse
from src.es_match.application.service import MatchApplicationService
from src.es_match.domain.bracket import MIN_PARTICIPANTS
from src.es_tournament.application.prizes import PrizeDistributor
from src.es_tournament.application.schemas import (
    BracketStartResponse,
    CloseRegistrationResponse,
    CreateTournamentRequest,
    PayoutResultResponse,
    RegistrationResponse,
    RescheduleRequest,
    TournamentListResponse,
    TournamentResponse,
    cursor_decode,
    cursor_encode,
)
from src.es_tournament.domain.models import PayoutPosition, Tournament, TournamentDraft
from src.es_tournament.domain.payouts import min_participants_required, validate_payout_table
from src.es_tournament.domain.repository import (
    RegistrationRepositoryProtocol,
    TournamentRepositoryProtocol,
)
from src.es_tournament.domain.state import ensure_transition
from src.es_tournament.infrastructure.persistence import TournamentRepository
from src.es_tournament.infrastructure.registrations import RegistrationRepository
from src.es_wallet.application.ledger import Ledger

logger = logging.getLogger("es.tournament")


class TournamentOrchestrator:
    def __init__(
        self,
        tournament_repo: TournamentRepositoryProtocol | None = None,
        registration_repo: RegistrationRepositoryProtocol | None = None,
        ledger: Ledger | None = None,
        bracket_builder: BracketBuilder | None = None,
        match_service: MatchApplicationService | None = None,
        prizes: PrizeDistributor | None = None,
    ) -> None:
        self._tournaments: TournamentRepositoryProtocol = tournament_repo or TournamentRepository()
        self._registrations: RegistrationRepositoryProtocol = (
            registration_repo or RegistrationRepository()
        )
        self._ledger = ledger or Ledger()
        self._brackets = bracket_builder or BracketBuilder()
        self._matches = match_service or MatchApplicationService(
            tournament_repo=self._tournaments, registration_repo=self._registrations
        )
        self._prizes = prizes or PrizeDistributor(
            self._tournaments, self._registrations, ledger=self._ledger
        )

    # ------------------------------------------------------------------
    # Creation and reads
    # ------------------------------------------------------------------

    async def create_tournament(
        self, db: AsyncSession, host_id: str, body: CreateTournamentRequest
    ) -> TournamentResponse:
        payouts = validate_payout_table(
            body.prize_pool_paise,
            [PayoutPosition(position=p.position, amount=p.amount_paise) for p in body.payouts],
        )
        if body.type == TournamentType.TEAM and body.team_size is None:
            raise InvalidTeamError("TEAM tournaments require team_size")
        required = min_participants_required(
            body.entry_fee_paise, body.prize_pool_paise, len(payouts)
        )
        if body.max_participants is not None and body.max_participants < required:
            raise InvalidPayoutTableError(
                f"max_participants {body.max_participants} is below the {required} required"
            )

        draft = TournamentDraft(
            host_id=host_id,
            name=body.name,
            game=body.game,
            type=body.type.value,
            team_size=body.team_size if body.type == TournamentType.TEAM else None,
            entry_fee=body.entry_fee_paise,
            prize_pool=body.prize_pool_paise,
            payouts=payouts,
            min_participants_required=required,
            max_participants=body.max_participants,
            insufficient_reg_policy=body.insufficient_reg_policy.value,
            registration_end=body.registration_end,
            start_time=body.start_time,
        )
        try:
            tournament = await self._tournaments.create_tournament(db, draft)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Tournament created id=%s host=%s min_participants=%d",
            tournament.id,
            host_id,
            required,
        )
        return TournamentResponse.from_domain(tournament)

    async def get_tournament(self, db: AsyncSession, tournament_id: str) -> TournamentResponse:
        tournament = await self._tournaments.get_tournament(db, tournament_id)
        if tournament is None:
            raise TournamentNotFoundError(tournament_id)
        return TournamentResponse.from_domain(tournament)

    async def list_tournaments(
        self,
        db: AsyncSession,
        status: str | None,
        game: str | None,
        cursor: str | None,
        limit: int,
    ) -> TournamentListResponse:
        cursor_ts, cursor_id = cursor_decode(cursor)
        rows = await self._tournaments.list_tournaments(
            db, status, game, cursor_ts, cursor_id, limit + 1
        )
        has_more = len(rows) > limit
        page = rows[:limit]
        next_cursor = cursor_encode(page[-1]) if has_more and page else None
        return TournamentListResponse(
            items=[TournamentResponse.from_domain(t) for t in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )

    async def list_participants(
        self, db: AsyncSession, tournament_id: str
    ) -> list[RegistrationResponse]:
        if await self._tournaments.get_tournament(db, tournament_id) is None:
            raise TournamentNotFoundError(tournament_id)
        registrations = await self._registrations.list_confirmed(db, tournament_id)
        return [RegistrationResponse.from_domain(r) for r in registrations]

    async def list_matches(self, db: AsyncSession, tournament_id: str) -> list[MatchResponse]:
        return await self._matches.list_matches(db, tournament_id)

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    async def register_participant(
        self,
        db: AsyncSession,
        tournament_id: str,
        user_id: str,
        team_id: str | None = None,
    ) -> RegistrationResponse:
        try:
            tournament = await self._lock(db, tournament_id)
            self._ensure_registration_open(tournament)
            participant_id = await self._resolve_participant(db, tournament, user_id, team_id)

            if tournament.max_participants is not None:
                confirmed = await self._registrations.count_confirmed(db, tournament_id)
                if confirmed >= tournament.max_participants:
                    raise TournamentFullError(tournament.max_participants)
            if await self._registrations.get_registration(db, tournament_id, participant_id):
                raise AlreadyRegisteredError()

            fee = tournament.entry_fee
            if fee > 0:
                await self._ledger.debit(
                    db,
                    user_id,
                    fee,
                    TxSource.ENTRY_FEE,
                    tournament_id=tournament_id,
                    description=f"Entry fee for {tournament.name}",
                )
            registration = await self._registrations.insert_registration(
                db,
                tournament_id,
                participant_id,
                user_id,
                (PaymentStatus.PAID if fee > 0 else PaymentStatus.FREE).value,
                fee,
            )
            if registration is None:
                raise AlreadyRegisteredError()
            if fee > 0 and await self._tournaments.adjust_collected(db, tournament_id, fee) is None:
                raise InternalError(f"collected update failed for {tournament_id}")
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Registered participant=%s payer=%s tournament=%s fee=%d",
            participant_id,
            user_id,
            tournament_id,
            fee,
        )
        await publish_tournament_updated(
            tournament_id, tournament.status, ["participants", "collected"]
        )
        return RegistrationResponse.from_domain(registration)

    async def unregister_participant(
        self,
        db: AsyncSession,
        tournament_id: str,
        user_id: str,
        team_id: str | None = None,
    ) -> None:
        try:
            tournament = await self._lock(db, tournament_id)
            if tournament.status != TournamentStatus.UPCOMING:
                raise RegistrationClosedError("Participants can only leave an UPCOMING tournament")
            participant_id = await self._resolve_participant(db, tournament, user_id, team_id)
            registration = await self._registrations.get_registration(
                db, tournament_id, participant_id
            )
            if registration is None:
                raise RegistrationNotFoundError()

            if registration.amount_paid > 0:
                await self._ledger.credit(
                    db,
                    registration.payer_user_id,
                    registration.amount_paid,
                    TxSource.REFUND,
                    tournament_id=tournament_id,
                    description=f"Refund: left {tournament.name}",
                )
                adjusted = await self._tournaments.adjust_collected(
                    db, tournament_id, -registration.amount_paid
                )
                if adjusted is None:
                    raise InternalError(f"collected update failed for {tournament_id}")
            await self._registrations.delete_registration(db, registration.id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Unregistered participant=%s tournament=%s", participant_id, tournament_id)
        await publish_tournament_updated(
            tournament_id, tournament.status, ["participants", "collected"]
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def close_registration(
        self, db: AsyncSession, tournament_id: str, user_id: str, role: str
    ) -> CloseRegistrationResponse:
        """Apply the insufficient-registration policy, or just close the doors."""
        refunded = 0
        try:
            tournament = await self._lock(db, tournament_id)
            self._ensure_manager(tournament, user_id, role)
            if tournament.status != TournamentStatus.UPCOMING:
                raise InvalidTournamentStateError(tournament.status, TournamentStatus.UPCOMING.value)

            confirmed = await self._registrations.count_confirmed(db, tournament_id)
            required = tournament.min_participants_required
            if confirmed >= required:
                updated = await self._tournaments.close_registration(db, tournament_id)
            elif tournament.insufficient_reg_policy == InsufficientRegPolicy.POSTPONE:
                updated = await self._tournaments.update_status(
                    db,
                    tournament_id,
                    TournamentStatus.UPCOMING.value,
                    TournamentStatus.POSTPONED.value,
                )
            else:
                refunded = await self._refund_all(db, tournament, "not enough participants")
                updated = await self._tournaments.cancel_and_clear_collected(
                    db, tournament_id, tournament.status
                )
            if updated is None:
                raise InternalError(f"close_registration update failed for {tournament_id}")
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Registration closed tournament=%s confirmed=%d required=%d -> %s",
            tournament_id,
            confirmed,
            required,
            updated.status,
        )
        await publish_tournament_updated(
            tournament_id, updated.status, ["status", "registration_open", "collected"]
        )
        return CloseRegistrationResponse(
            tournament=TournamentResponse.from_domain(updated),
            confirmed=confirmed,
            required=required,
            refunded=refunded,
        )

    async def cancel_tournament(
        self, db: AsyncSession, tournament_id: str, user_id: str, role: str
    ) -> TournamentResponse:
        try:
            tournament = await self._lock(db, tournament_id)
            self._ensure_manager(tournament, user_id, role)
            ensure_transition(tournament.status, TournamentStatus.CANCELLED)
            await self._refund_all(db, tournament, "cancelled")
            updated = await self._tournaments.cancel_and_clear_collected(
                db, tournament_id, tournament.status
            )
            if updated is None:
                raise InternalError(f"cancel update failed for {tournament_id}")
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Tournament %s cancelled by %s", tournament_id, user_id)
        await publish_tournament_updated(tournament_id, updated.status, ["status", "collected"])
        return TournamentResponse.from_domain(updated)

    async def postpone_tournament(
        self, db: AsyncSession, tournament_id: str, user_id: str, role: str
    ) -> TournamentResponse:
        """Registrations and held fees stay in place until rescheduled or cancelled."""
        return await self._transition(
            db, tournament_id, user_id, role, TournamentStatus.POSTPONED
        )

    async def reschedule_tournament(
        self,
        db: AsyncSession,
        tournament_id: str,
        user_id: str,
        role: str,
        body: RescheduleRequest,
    ) -> TournamentResponse:
        try:
            tournament = await self._lock(db, tournament_id)
            self._ensure_manager(tournament, user_id, role)
            ensure_transition(tournament.status, TournamentStatus.UPCOMING)
            updated = await self._tournaments.reschedule(
                db, tournament_id, body.start_time, body.registration_end
            )
            if updated is None:
                raise InternalError(f"reschedule update failed for {tournament_id}")
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Tournament %s rescheduled to %s", tournament_id, body.start_time)
        await publish_tournament_updated(
            tournament_id, updated.status, ["status", "start_time", "registration_end"]
        )
        return TournamentResponse.from_domain(updated)

    async def start_bracket(
        self,
        db: AsyncSession,
        tournament_id: str,
        user_id: str,
        role: str,
        seeded: bool = False,
    ) -> BracketStartResponse:
        try:
            tournament = await self._lock(db, tournament_id)
            self._ensure_manager(tournament, user_id, role)
            if tournament.bracket_started:
                raise BracketAlreadyStartedError(tournament_id)
            ensure_transition(tournament.status, TournamentStatus.ONGOING)

            registrations = await self._registrations.list_confirmed(db, tournament_id)
            required = max(MIN_PARTICIPANTS, len(tournament.payouts))
            if len(registrations) < required:
                raise InsufficientParticipantsError(required, len(registrations))

            plan = await self._brackets.build(
                db, tournament_id, [r.participant_id for r in registrations], seeded=seeded
            )
            started = await self._tournaments.start(db, tournament_id, plan.rounds)
            if started is None:
                raise BracketAlreadyStartedError(tournament_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info(
            "Bracket started tournament=%s participants=%d rounds=%d",
            tournament_id,
            len(registrations),
            plan.rounds,
        )
        await publish_tournament_updated(
            tournament_id, started.status, ["status", "current_round", "total_rounds"]
        )
        await publish_bracket_changed(tournament_id, 1)
        return BracketStartResponse(
            tournament=TournamentResponse.from_domain(started),
            participants=len(registrations),
            total_rounds=plan.rounds,
            bracket_size=plan.bracket_size,
            byes=plan.byes,
            matches_created=len(plan.matches),
        )

    async def submit_score(
        self,
        db: AsyncSession,
        match_id: str,
        user_id: str,
        role: str,
        score_a: int,
        score_b: int,
    ) -> MatchResultResponse:
        return await self._matches.submit_score(db, match_id, user_id, role, score_a, score_b)

    async def finalize_tournament(
        self, db: AsyncSession, tournament_id: str
    ) -> PayoutResultResponse:
        """Pay out a COMPLETED tournament. Safe to repeat: PAID is a no-op."""
        try:
            result = await self._prizes.distribute(db, tournament_id)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return PayoutResultResponse.from_result(result)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _lock(self, db: AsyncSession, tournament_id: str) -> Tournament:
        tournament = await self._tournaments.get_tournament_for_update(db, tournament_id)
        if tournament is None:
            raise TournamentNotFoundError(tournament_id)
        return tournament

    @staticmethod
    def _ensure_manager(tournament: Tournament, user_id: str, role: str) -> None:
        if user_id == tournament.host_id:
            return
        if has_capability(role, Capability.MANAGE_ANY_TOURNAMENT):
            return
        raise UnauthorizedError("Only the host or an admin can manage this tournament")

    @staticmethod
    def _ensure_registration_open(tournament: Tournament) -> None:
        if tournament.status != TournamentStatus.UPCOMING or not tournament.registration_open:
            raise RegistrationClosedError()
        deadline = tournament.registration_end
        if deadline is not None and utc_now() > ensure_utc(deadline):
            raise RegistrationClosedError("Registration deadline has passed")

    async def _resolve_participant(
        self,
        db: AsyncSession,
        tournament: Tournament,
        user_id: str,
        team_id: str | None,
    ) -> str:
        """SOLO: the user. TEAM: the team, which only its captain may act for."""
        if tournament.type != TournamentType.TEAM:
            return user_id
        if team_id is None:
            raise InvalidTeamError("team_id is required for TEAM tournaments")
        team = await self._registrations.get_team(db, team_id)
        if team is None:
            raise TeamNotFoundError(team_id)
        if team.captain_id != user_id:
            raise UnauthorizedError("Only the team captain can act for the team")
        if tournament.team_size is not None and len(team.member_ids) != tournament.team_size:
            raise InvalidTeamError(
                f"Team has {len(team.member_ids)} members, tournament requires {tournament.team_size}"
            )
        return team.id

    async def _refund_all(self, db: AsyncSession, tournament: Tournament, reason: str) -> int:
        refunded = 0
        for registration in await self._registrations.list_confirmed(db, tournament.id):
            if registration.amount_paid <= 0:
                continue
            await self._ledger.credit(
                db,
                registration.payer_user_id,
                registration.amount_paid,
                TxSource.REFUND,
                tournament_id=tournament.id,
                description=f"Refund: {tournament.name} {reason}",
            )
            refunded += 1
        return refunded

    async def _transition(
        self,
        db: AsyncSession,
        tournament_id: str,
        user_id: str,
        role: str,
        target: TournamentStatus,
    ) -> TournamentResponse:
        try:
            tournament = await self._lock(db, tournament_id)
            self._ensure_manager(tournament, user_id, role)
            ensure_transition(tournament.status, target)
            updated = await self._tournaments.update_status(
                db, tournament_id, tournament.status, target.value
            )
            if updated is None:
                raise InternalError(f"status update failed for {tournament_id}")
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Tournament %s -> %s", tournament_id, target.value)
        await publish_tournament_updated(tournament_id, updated.status, ["status"])
        return TournamentResponse.from_domain(updated)
