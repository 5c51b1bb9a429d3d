"""FastAPI dependencies: get_current_user and require_capability.

Usage in any protected router:
    from src.es_gateway.auth.dependencies import get_current_user, require_capability

    @router.post("/admin/thing")
    async def thing(user: UserModel = Depends(require_capability(Capability.RESOLVE_MATCHES))):
        ...
"""

from collections.abc import Awaitable, Callable

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.es_common.database import get_db_session
from src.es_common.errors import AccountDisabledError, InvalidCredentialsError, UnauthorizedError
from src.es_gateway.auth.capabilities import Capability
from src.es_gateway.auth.jwt_handler import decode_token
from src.es_gateway.user.db_models import UserModel

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

_CREDENTIALS_EXCEPTION = HTTPException(
    status_code=status.HTTP_401_UNAUTHORIZED,
    detail="Invalid or expired token",
    headers={"WWW-Authenticate": "Bearer"},
)


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> UserModel:
    """Extract and validate the JWT Bearer token, return the UserModel.

    Raises HTTP 401 if the token is missing, invalid, or expired.
    Raises AccountDisabledError (403) if the user account is disabled.
    """
    try:
        payload = decode_token(token, expected_type="access")
    except InvalidCredentialsError:
        raise _CREDENTIALS_EXCEPTION from None

    user_id: str | None = payload.get("sub")
    if not user_id:
        raise _CREDENTIALS_EXCEPTION

    result = await db.execute(select(UserModel).where(UserModel.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise _CREDENTIALS_EXCEPTION

    if not user.is_active:
        raise AccountDisabledError()

    return user


def require_capability(
    capability: Capability,
) -> Callable[..., Awaitable[UserModel]]:
    """Build a dependency that returns the current user if their role grants `capability`."""

    async def _dependency(
        current_user: UserModel = Depends(get_current_user),
    ) -> UserModel:
        if not current_user.can(capability):
            raise UnauthorizedError(f"Missing capability {capability.value}")
        return current_user

    return _dependency
