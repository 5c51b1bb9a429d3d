"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class UserRole(str, Enum):
    PLAYER = "PLAYER"
    HOST = "HOST"
    ADMIN = "ADMIN"
    SUPERADMIN = "SUPERADMIN"


class TxDirection(str, Enum):
    CREDIT = "CREDIT"
    DEBIT = "DEBIT"


class TxSource(str, Enum):
    ENTRY_FEE = "ENTRY_FEE"
    REFUND = "REFUND"
    WINNING = "WINNING"
    HOST_EARNING = "HOST_EARNING"
    WITHDRAWAL = "WITHDRAWAL"
    DEPOSIT = "DEPOSIT"
    MANUAL = "MANUAL"


class TxStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    REJECTED = "REJECTED"


class TournamentType(str, Enum):
    SOLO = "SOLO"
    TEAM = "TEAM"


class TournamentStatus(str, Enum):
    UPCOMING = "UPCOMING"
    ONGOING = "ONGOING"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    POSTPONED = "POSTPONED"


class InsufficientRegPolicy(str, Enum):
    """What close_registration does when min_participants_required is not met."""
    CANCEL = "CANCEL"
    POSTPONE = "POSTPONE"


class PayoutStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"
    FAILED = "FAILED"


class RegistrationStatus(str, Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"


class PaymentStatus(str, Enum):
    PAID = "PAID"
    FREE = "FREE"


class MatchStatus(str, Enum):
    SCHEDULED = "SCHEDULED"
    COMPLETED = "COMPLETED"
    DISPUTED = "DISPUTED"
