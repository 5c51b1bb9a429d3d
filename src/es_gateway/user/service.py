"""User service: register, login, refresh.

All DB operations use the injected AsyncSession. Registration runs inside the
caller's `async with db.begin()` so the user row, the platform UID counter
bump and the zero-balance wallet commit together or not at all.
"""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.es_common.errors import (
    AccountDisabledError,
    EmailExistsError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    UsernameExistsError,
)
from src.es_common.uid_counter import next_platform_uid
from src.es_gateway.auth.jwt_handler import (
    create_access_token,
    create_refresh_token,
    decode_token,
)
from src.es_gateway.auth.password import hash_password, verify_password
from src.es_gateway.user.db_models import UserModel
from src.es_wallet.domain.repository import WalletRepositoryProtocol
from src.es_wallet.infrastructure.persistence import WalletRepository

logger = logging.getLogger("es.gateway")


class UserService:
    """Stateless service — instantiate once, reuse across requests."""

    def __init__(self, wallet_repo: WalletRepositoryProtocol | None = None) -> None:
        self._wallets: WalletRepositoryProtocol = wallet_repo or WalletRepository()

    async def register(
        self,
        username: str,
        email: str,
        password: str,
        db: AsyncSession,
        country: str | None = None,
        role: str = "PLAYER",
    ) -> UserModel:
        # DB UNIQUE constraints are the final guard
        result = await db.execute(select(UserModel).where(UserModel.username == username))
        if result.scalar_one_or_none() is not None:
            raise UsernameExistsError()

        result = await db.execute(select(UserModel).where(UserModel.email == email))
        if result.scalar_one_or_none() is not None:
            raise EmailExistsError()

        user = UserModel(
            username=username,
            email=email,
            password_hash=hash_password(password),
            role=role,
            country=country,
            platform_uid=await next_platform_uid(db, country),
            is_active=True,
        )
        db.add(user)
        await db.flush()  # user.id without committing

        await self._wallets.create_wallet(db, str(user.id))
        logger.info("Registered user %s uid=%s role=%s", user.id, user.platform_uid, role)
        return user

    async def login(
        self,
        username: str,
        password: str,
        db: AsyncSession,
    ) -> tuple[UserModel, str, str]:
        """Authenticate and return (user, access_token, refresh_token).

        Unknown username and wrong password raise the same InvalidCredentialsError.
        """
        result = await db.execute(select(UserModel).where(UserModel.username == username))
        user = result.scalar_one_or_none()

        if user is None or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError()

        if not user.is_active:
            raise AccountDisabledError()

        return (
            user,
            create_access_token(str(user.id), user.role),
            create_refresh_token(str(user.id)),
        )

    async def refresh(self, refresh_token: str, db: AsyncSession) -> str:
        """Validate the refresh token and issue a new access token with the current role."""
        payload = decode_token(refresh_token, expected_type="refresh")
        user_id = str(payload["sub"])
        result = await db.execute(select(UserModel).where(UserModel.id == user_id))
        user = result.scalar_one_or_none()
        if user is None:
            raise InvalidRefreshTokenError()
        if not user.is_active:
            raise AccountDisabledError()
        return create_access_token(user_id, user.role)
