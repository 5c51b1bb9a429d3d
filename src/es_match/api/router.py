"""es_match REST API — match lookup, score reporting and disputes."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.es_common.database import get_db_session
from src.es_common.response import ApiResponse, respond
from src.es_gateway.auth.dependencies import get_current_user
from src.es_gateway.user.db_models import UserModel
from src.es_match.application.schemas import DisputeRequest, ScoreRequest
from src.es_match.application.service import MatchApplicationService

router = APIRouter(prefix="/matches", tags=["matches"])

_service = MatchApplicationService()


@router.get("/{match_id}")
async def get_match(
    match_id: str,
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_match(db, match_id)
    return respond(request, data.model_dump())


@router.post("/{match_id}/score")
async def submit_score(
    match_id: str,
    body: ScoreRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.submit_score(
        db, match_id, str(current_user.id), current_user.role, body.score_a, body.score_b
    )
    return respond(request, data.model_dump(), message="Result recorded")


@router.post("/{match_id}/dispute")
async def dispute_match(
    match_id: str,
    body: DisputeRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.dispute_match(
        db, match_id, str(current_user.id), current_user.role, body.reason
    )
    return respond(request, data.model_dump(), message="Match disputed")
