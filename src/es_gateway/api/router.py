"""Auth REST API: register, login, refresh and the caller's own profile."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.es_common.database import get_db_session
from src.es_common.response import ApiResponse, respond
from src.es_gateway.auth.dependencies import get_current_user
from src.es_gateway.user.db_models import UserModel
from src.es_gateway.user.schemas import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    TokenPair,
    UserInfo,
)
from src.es_gateway.user.service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])
_service = UserService()

DbSession = Annotated[AsyncSession, Depends(get_db_session)]

_ACCESS_TTL_SECONDS = settings.JWT_EXPIRE_MINUTES * 60


@router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(body: RegisterRequest, db: DbSession, request: Request) -> ApiResponse:
    # user row, platform UID and empty wallet commit together
    async with db.begin():
        user = await _service.register(
            body.username, body.email, body.password, db, country=body.country, role=body.role
        )
    return respond(request, RegisterResponse.from_user(user).model_dump(), message="Registered")


@router.post("/login")
async def login(body: LoginRequest, db: DbSession, request: Request) -> ApiResponse:
    user, access, refresh = await _service.login(body.username, body.password, db)
    data = LoginResponse(
        access_token=access,
        refresh_token=refresh,
        expires_in=_ACCESS_TTL_SECONDS,
        user=UserInfo.from_user(user),
    )
    return respond(request, data.model_dump(), message="Login successful")


@router.post("/refresh")
async def refresh(body: RefreshRequest, db: DbSession, request: Request) -> ApiResponse:
    access = await _service.refresh(body.refresh_token, db)
    data = TokenPair(access_token=access, expires_in=_ACCESS_TTL_SECONDS)
    return respond(request, data.model_dump(exclude_none=True), message="Token refreshed")


@router.get("/me")
async def me(
    current_user: Annotated[UserModel, Depends(get_current_user)], request: Request
) -> ApiResponse:
    return respond(request, UserInfo.from_user(current_user).model_dump())
