"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth/User
  2xxx: Wallet / ledger
  3xxx: Tournament
  4xxx: Match / bracket
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Auth/User ---

class UsernameExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1001, "Username already exists", 409)


class EmailExistsError(AppError):
    def __init__(self) -> None:
        super().__init__(1002, "Email already exists", 409)


class InvalidCredentialsError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Invalid username or password", 401)


class AccountDisabledError(AppError):
    def __init__(self) -> None:
        super().__init__(1004, "Account is disabled", 403)


class InvalidRefreshTokenError(AppError):
    def __init__(self) -> None:
        super().__init__(1005, "Refresh token is invalid or expired", 401)


class UnauthorizedError(AppError):
    def __init__(self, detail: str = "You are not allowed to perform this action") -> None:
        super().__init__(1006, detail, 403)


# --- 2xxx: Wallet ---

class InsufficientBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2001,
            f"Insufficient balance: required {required} paise, available {available} paise",
            422,
        )


class WalletNotFoundError(AppError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2002, f"Wallet not found for user {user_id}", 404)


class InvalidAmountError(AppError):
    def __init__(self, amount: int) -> None:
        super().__init__(2003, f"Amount must be positive, got {amount}", 422)


class InsufficientAvailableBalanceError(AppError):
    def __init__(self, required: int, available: int) -> None:
        super().__init__(
            2004,
            f"Insufficient available balance: required {required} paise, "
            f"available {available} paise",
            422,
        )


class WithdrawalNotFoundError(AppError):
    def __init__(self, transaction_id: int) -> None:
        super().__init__(2005, f"Pending withdrawal not found: {transaction_id}", 404)


# --- 3xxx: Tournament ---

class TournamentNotFoundError(AppError):
    def __init__(self, tournament_id: str) -> None:
        super().__init__(3001, f"Tournament not found: {tournament_id}", 404)


class RegistrationClosedError(AppError):
    def __init__(self, detail: str = "Registration is closed") -> None:
        super().__init__(3002, detail, 422)


class AlreadyRegisteredError(AppError):
    def __init__(self) -> None:
        super().__init__(3003, "Already registered for this tournament", 409)


class InvalidTournamentStateError(AppError):
    def __init__(self, current: str, target: str, detail: str | None = None) -> None:
        super().__init__(
            3004, detail or f"Tournament cannot move from {current} to {target}", 422
        )


class InvalidPayoutTableError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3005, f"Invalid payout table: {detail}", 422)


class TournamentFullError(AppError):
    def __init__(self, capacity: int) -> None:
        super().__init__(3006, f"Tournament is full ({capacity} participants)", 422)


class RegistrationNotFoundError(AppError):
    def __init__(self) -> None:
        super().__init__(3007, "Registration not found", 404)


class TeamNotFoundError(AppError):
    def __init__(self, team_id: str) -> None:
        super().__init__(3008, f"Team not found: {team_id}", 404)


class InvalidTeamError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3009, detail, 422)


class PayoutFailedError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(3010, f"Prize distribution failed: {detail}", 500)


# --- 4xxx: Match / bracket ---

class InsufficientParticipantsError(AppError):
    def __init__(self, required: int, actual: int) -> None:
        super().__init__(
            4001, f"Need at least {required} participants, got {actual}", 422
        )


class DrawNotAllowedError(AppError):
    def __init__(self) -> None:
        super().__init__(4002, "Draws are not allowed: scores must differ", 422)


class MatchAlreadyCompletedError(AppError):
    def __init__(self, match_id: str) -> None:
        super().__init__(4003, f"Match already completed: {match_id}", 409)


class MatchLockedError(AppError):
    def __init__(self, match_id: str) -> None:
        super().__init__(4004, f"Match is locked: {match_id}", 423)


class MatchNotFoundError(AppError):
    def __init__(self, match_id: str) -> None:
        super().__init__(4005, f"Match not found: {match_id}", 404)


class MatchNotReadyError(AppError):
    def __init__(self, match_id: str) -> None:
        super().__init__(4006, f"Match is waiting for participants: {match_id}", 422)


class BracketAlreadyStartedError(AppError):
    def __init__(self, tournament_id: str) -> None:
        super().__init__(4007, f"Bracket already generated for {tournament_id}", 409)


class InvalidWinnerError(AppError):
    def __init__(self, winner_id: str) -> None:
        super().__init__(4008, f"Winner {winner_id} is not a participant of this match", 422)


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)
