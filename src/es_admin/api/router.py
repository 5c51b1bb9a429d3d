"""Admin REST API — every endpoint is gated on a capability, not a role."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.ext.asyncio import AsyncSession

from src.es_admin.application.service import AdminService
from src.es_common.database import get_db_session
from src.es_common.response import ApiResponse, respond
from src.es_gateway.auth.capabilities import Capability
from src.es_gateway.auth.dependencies import require_capability
from src.es_gateway.user.db_models import UserModel
from src.es_match.application.schemas import ResolveRequest

router = APIRouter(prefix="/admin", tags=["admin"])
_service = AdminService()

DbSession = Annotated[AsyncSession, Depends(get_db_session)]


class WalletAdjustRequest(BaseModel):
    amount_paise: int = Field(..., description="Positive credits, negative debits")
    reason: str = Field(..., min_length=3, max_length=255)

    @field_validator("amount_paise")
    @classmethod
    def non_zero(cls, v: int) -> int:
        if v == 0:
            raise ValueError("amount_paise must not be zero")
        return v


@router.post("/withdrawals/{transaction_id}/approve")
async def approve_withdrawal(
    transaction_id: int,
    admin: Annotated[UserModel, Depends(require_capability(Capability.APPROVE_WITHDRAWALS))],
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.approve_withdrawal(db, transaction_id, str(admin.id))
    return respond(request, data.model_dump(), message="Withdrawal approved")


@router.post("/withdrawals/{transaction_id}/reject")
async def reject_withdrawal(
    transaction_id: int,
    admin: Annotated[UserModel, Depends(require_capability(Capability.APPROVE_WITHDRAWALS))],
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.reject_withdrawal(db, transaction_id, str(admin.id))
    return respond(request, data.model_dump(), message="Withdrawal rejected")


@router.post("/wallets/{user_id}/adjust")
async def adjust_wallet(
    user_id: str,
    body: WalletAdjustRequest,
    admin: Annotated[UserModel, Depends(require_capability(Capability.ADJUST_WALLETS))],
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.adjust_wallet(db, user_id, body.amount_paise, body.reason, str(admin.id))
    return respond(request, data.model_dump(), message="Wallet adjusted")


@router.post("/matches/{match_id}/resolve")
async def resolve_match(
    match_id: str,
    body: ResolveRequest,
    admin: Annotated[UserModel, Depends(require_capability(Capability.RESOLVE_MATCHES))],
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.resolve_match(db, match_id, body.winner_id, body.score_a, body.score_b)
    return respond(request, data.model_dump(), message="Match resolved")


@router.post("/tournaments/{tournament_id}/finalize")
async def finalize_tournament(
    tournament_id: str,
    admin: Annotated[UserModel, Depends(require_capability(Capability.MANAGE_ANY_TOURNAMENT))],
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.finalize_tournament(db, tournament_id)
    return respond(request, data.model_dump(), message="Prizes distributed")


@router.get("/wallets/invariants")
async def wallet_invariants(
    admin: Annotated[UserModel, Depends(require_capability(Capability.ADJUST_WALLETS))],
    db: DbSession,
    request: Request,
    user_id: str | None = Query(None),
) -> ApiResponse:
    data = await _service.verify_wallet_invariants(db, user_id)
    return respond(request, data)
