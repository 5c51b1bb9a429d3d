"""HS256 access and refresh tokens signed with JWT_SECRET.

The "role" claim on access tokens is informational for clients; authorization
re-reads the role from the users row. Tokens cannot be revoked before expiry.
"""

from datetime import UTC, datetime, timedelta
from typing import Any

from jose import JWTError, jwt

from config.settings import settings
from src.es_common.errors import AppError, InvalidCredentialsError, InvalidRefreshTokenError

_ALGORITHM = settings.JWT_ALGORITHM
_ACCESS_EXPIRE = timedelta(minutes=settings.JWT_EXPIRE_MINUTES)
_REFRESH_EXPIRE = timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS)

_ERRORS: dict[str, type[AppError]] = {
    "access": InvalidCredentialsError,
    "refresh": InvalidRefreshTokenError,
}


def _encode(subject: str, token_type: str, ttl: timedelta, **claims: Any) -> str:
    issued = datetime.now(UTC)
    payload = {"sub": subject, "type": token_type, "iat": issued, "exp": issued + ttl, **claims}
    return str(jwt.encode(payload, settings.JWT_SECRET, algorithm=_ALGORITHM))


def create_access_token(user_id: str, role: str) -> str:
    return _encode(user_id, "access", _ACCESS_EXPIRE, role=role)


def create_refresh_token(user_id: str) -> str:
    return _encode(user_id, "refresh", _REFRESH_EXPIRE)


def decode_token(token: str, expected_type: str) -> dict[str, Any]:
    """Return the claims of a valid, unexpired token of `expected_type`.

    Failures raise InvalidCredentialsError for access tokens and
    InvalidRefreshTokenError for refresh tokens.
    """
    error = _ERRORS[expected_type]
    try:
        payload: dict[str, Any] = jwt.decode(token, settings.JWT_SECRET, algorithms=[_ALGORITHM])
    except JWTError as exc:
        raise error() from exc
    if payload.get("type") != expected_type:
        raise error()
    return payload
