"""Domain models for es_tournament — pure dataclasses, no business logic."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class PayoutPosition:
    position: int   # 1 = champion
    amount: int     # paise


@dataclass
class Tournament:
    id: str
    host_id: str
    name: str
    game: str
    type: str                              # TournamentType value
    team_size: int | None
    entry_fee: int                         # paise
    prize_pool: int                        # paise
    min_participants_required: int
    max_participants: int | None
    insufficient_reg_policy: str           # InsufficientRegPolicy value
    status: str                            # TournamentStatus value
    registration_open: bool
    registration_end: datetime | None
    start_time: datetime | None
    collected: int                         # entry fees currently held, paise
    current_round: int | None
    total_rounds: int | None
    winner_id: str | None
    host_profit: int | None
    payout_status: str                     # PayoutStatus value
    payouts: list[PayoutPosition] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def bracket_started(self) -> bool:
        return self.total_rounds is not None


@dataclass
class TournamentDraft:
    """Validated input for create_tournament, before the row exists."""

    host_id: str
    name: str
    game: str
    type: str
    team_size: int | None
    entry_fee: int
    prize_pool: int
    payouts: list[PayoutPosition]
    min_participants_required: int
    max_participants: int | None
    insufficient_reg_policy: str
    registration_end: datetime | None
    start_time: datetime | None


@dataclass
class Registration:
    id: str
    tournament_id: str
    participant_id: str      # user id (SOLO) or team id (TEAM)
    payer_user_id: str       # wallet charged, refunded and paid
    status: str              # RegistrationStatus value
    payment_status: str      # PaymentStatus value
    amount_paid: int
    created_at: datetime | None = None


@dataclass
class Team:
    id: str
    name: str
    captain_id: str
    member_ids: list[str] = field(default_factory=list)
