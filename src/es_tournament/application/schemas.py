"""Pydantic schemas for es_tournament API.

Cursor format for tournaments (UUID text PK, not sequential):
  {"ts": "<created_at ISO>", "id": "<tournament_id>"}
  Encoded as Base64 JSON string.
"""

import base64
import json
from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from src.es_common.enums import InsufficientRegPolicy, TournamentType
from src.es_common.money import paise_to_display
from src.es_tournament.application.prizes import PayoutResult
from src.es_tournament.domain.models import Registration, Tournament

# ---------------------------------------------------------------------------
# Cursor utilities
# ---------------------------------------------------------------------------


def cursor_encode(last: Tournament) -> str:
    payload = {
        "ts": last.created_at.isoformat() if last.created_at else None,
        "id": last.id,
    }
    return base64.b64encode(json.dumps(payload).encode()).decode()


def cursor_decode(cursor: str | None) -> tuple[str | None, str | None]:
    """Decode composite cursor -> (ts_iso, tournament_id).

    Anything malformed, including a timestamp that is not ISO-8601, decodes to
    (None, None) and the listing restarts from the first page.
    """
    if cursor is None:
        return None, None
    try:
        data = json.loads(base64.b64decode(cursor.encode(), validate=True).decode())
        ts, tournament_id = data["ts"], data["id"]
        if not isinstance(tournament_id, str):
            return None, None
        return datetime.fromisoformat(ts).isoformat(), tournament_id
    except (ValueError, KeyError, TypeError):
        return None, None


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------


class PayoutPositionIn(BaseModel):
    position: int = Field(..., ge=1)
    amount_paise: int = Field(..., gt=0)


class CreateTournamentRequest(BaseModel):
    name: str = Field(..., min_length=3, max_length=128)
    game: str = Field(..., min_length=1, max_length=64)
    type: TournamentType = TournamentType.SOLO
    team_size: int | None = Field(None, ge=1, le=10)
    entry_fee_paise: int = Field(0, ge=0)
    prize_pool_paise: int = Field(0, ge=0)
    payouts: list[PayoutPositionIn] = Field(default_factory=list)
    max_participants: int | None = Field(None, ge=2, le=1024)
    insufficient_reg_policy: InsufficientRegPolicy = InsufficientRegPolicy.CANCEL
    registration_end: datetime | None = None
    start_time: datetime | None = None

    @model_validator(mode="after")
    def deadline_before_start(self) -> "CreateTournamentRequest":
        if self.registration_end and self.start_time and self.registration_end > self.start_time:
            raise ValueError("registration_end must not be after start_time")
        return self


class RegisterRequest(BaseModel):
    """Body for TEAM tournaments; SOLO registration sends no body."""

    team_id: str | None = None


class RescheduleRequest(BaseModel):
    start_time: datetime | None = None
    registration_end: datetime | None = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class PayoutPositionOut(BaseModel):
    position: int
    amount_paise: int
    amount_display: str


class TournamentResponse(BaseModel):
    id: str
    host_id: str
    name: str
    game: str
    type: str
    team_size: int | None
    entry_fee_paise: int
    entry_fee_display: str
    prize_pool_paise: int
    prize_pool_display: str
    payouts: list[PayoutPositionOut]
    min_participants_required: int
    max_participants: int | None
    insufficient_reg_policy: str
    status: str
    registration_open: bool
    registration_end: str | None
    start_time: str | None
    collected_paise: int
    current_round: int | None
    total_rounds: int | None
    winner_id: str | None
    host_profit_paise: int | None
    payout_status: str
    created_at: str | None

    @classmethod
    def from_domain(cls, t: Tournament) -> "TournamentResponse":
        return cls(
            id=t.id,
            host_id=t.host_id,
            name=t.name,
            game=t.game,
            type=t.type,
            team_size=t.team_size,
            entry_fee_paise=t.entry_fee,
            entry_fee_display=paise_to_display(t.entry_fee),
            prize_pool_paise=t.prize_pool,
            prize_pool_display=paise_to_display(t.prize_pool),
            payouts=[
                PayoutPositionOut(
                    position=p.position,
                    amount_paise=p.amount,
                    amount_display=paise_to_display(p.amount),
                )
                for p in t.payouts
            ],
            min_participants_required=t.min_participants_required,
            max_participants=t.max_participants,
            insufficient_reg_policy=t.insufficient_reg_policy,
            status=t.status,
            registration_open=t.registration_open,
            registration_end=t.registration_end.isoformat() if t.registration_end else None,
            start_time=t.start_time.isoformat() if t.start_time else None,
            collected_paise=t.collected,
            current_round=t.current_round,
            total_rounds=t.total_rounds,
            winner_id=t.winner_id,
            host_profit_paise=t.host_profit,
            payout_status=t.payout_status,
            created_at=t.created_at.isoformat() if t.created_at else None,
        )


class TournamentListResponse(BaseModel):
    items: list[TournamentResponse]
    next_cursor: str | None
    has_more: bool


class RegistrationResponse(BaseModel):
    id: str
    tournament_id: str
    participant_id: str
    payer_user_id: str
    status: str
    payment_status: str
    amount_paid_paise: int
    created_at: str | None

    @classmethod
    def from_domain(cls, r: Registration) -> "RegistrationResponse":
        return cls(
            id=r.id,
            tournament_id=r.tournament_id,
            participant_id=r.participant_id,
            payer_user_id=r.payer_user_id,
            status=r.status,
            payment_status=r.payment_status,
            amount_paid_paise=r.amount_paid,
            created_at=r.created_at.isoformat() if r.created_at else None,
        )


class CloseRegistrationResponse(BaseModel):
    tournament: TournamentResponse
    confirmed: int
    required: int
    refunded: int   # registrations refunded, CANCEL policy only


class BracketStartResponse(BaseModel):
    tournament: TournamentResponse
    participants: int
    total_rounds: int
    bracket_size: int
    byes: int
    matches_created: int


class PrizeAwardOut(BaseModel):
    position: int
    participant_id: str
    amount_paise: int


class PayoutResultResponse(BaseModel):
    tournament_id: str
    already_paid: bool
    awards: list[PrizeAwardOut]
    platform_fee_paise: int
    host_profit_paise: int

    @classmethod
    def from_result(cls, result: PayoutResult) -> "PayoutResultResponse":
        return cls(
            tournament_id=result.tournament_id,
            already_paid=result.already_paid,
            awards=[
                PrizeAwardOut(
                    position=a.position, participant_id=a.participant_id, amount_paise=a.amount
                )
                for a in result.awards
            ],
            platform_fee_paise=result.platform_fee,
            host_profit_paise=result.host_profit,
        )
