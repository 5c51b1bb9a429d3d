"""es_wallet REST API — all endpoints require JWT authentication."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.es_common.database import get_db_session
from src.es_common.enums import TxSource
from src.es_common.response import ApiResponse, respond
from src.es_gateway.auth.dependencies import get_current_user
from src.es_gateway.user.db_models import UserModel
from src.es_wallet.application.schemas import DepositRequest, WithdrawalRequest
from src.es_wallet.application.service import WalletApplicationService

router = APIRouter(prefix="/wallet", tags=["wallet"])

_service = WalletApplicationService()


@router.get("")
async def get_wallet(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_wallet(db, str(current_user.id))
    return respond(request, data.model_dump())


@router.get("/transactions")
async def list_transactions(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    source: TxSource | None = Query(None, description="Filter by transaction source"),
) -> ApiResponse:
    data = await _service.list_transactions(
        db, str(current_user.id), cursor, limit, source.value if source else None
    )
    return respond(request, data.model_dump())


@router.post("/deposit")
async def deposit(
    body: DepositRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.deposit(db, str(current_user.id), body.amount_paise, body.reference)
    return respond(request, data.model_dump())


@router.post("/withdrawals", status_code=status.HTTP_201_CREATED)
async def request_withdrawal(
    body: WithdrawalRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.request_withdrawal(db, str(current_user.id), body.amount_paise)
    return respond(request, data.model_dump(), message="Withdrawal requested")
