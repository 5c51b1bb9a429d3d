"""es_tournament REST API.

Reads are public. Creating a tournament needs HOST_TOURNAMENT; lifecycle
endpoints check host-or-MANAGE_ANY_TOURNAMENT inside the orchestrator because
the answer depends on the tournament row.
"""

from typing import Annotated

from fastapi import APIRouter, Body, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.es_common.database import get_db_session
from src.es_common.enums import TournamentStatus
from src.es_common.response import ApiResponse, respond
from src.es_gateway.auth.capabilities import Capability
from src.es_gateway.auth.dependencies import get_current_user, require_capability
from src.es_gateway.user.db_models import UserModel
from src.es_tournament.application.schemas import (
    CreateTournamentRequest,
    RegisterRequest,
    RescheduleRequest,
)
from src.es_tournament.application.service import TournamentOrchestrator

router = APIRouter(prefix="/tournaments", tags=["tournaments"])

_service = TournamentOrchestrator()

CurrentUser = Annotated[UserModel, Depends(get_current_user)]
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_tournament(
    body: CreateTournamentRequest,
    current_user: Annotated[UserModel, Depends(require_capability(Capability.HOST_TOURNAMENT))],
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.create_tournament(db, str(current_user.id), body)
    return respond(request, data.model_dump(), message="Tournament created")


@router.get("")
async def list_tournaments(
    db: DbSession,
    request: Request,
    status_filter: TournamentStatus | None = Query(None, alias="status"),
    game: str | None = Query(None, max_length=64),
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100),
) -> ApiResponse:
    data = await _service.list_tournaments(
        db, status_filter.value if status_filter else None, game, cursor, limit
    )
    return respond(request, data.model_dump())


@router.get("/{tournament_id}")
async def get_tournament(tournament_id: str, db: DbSession, request: Request) -> ApiResponse:
    data = await _service.get_tournament(db, tournament_id)
    return respond(request, data.model_dump())


@router.get("/{tournament_id}/participants")
async def list_participants(tournament_id: str, db: DbSession, request: Request) -> ApiResponse:
    data = await _service.list_participants(db, tournament_id)
    return respond(request, [r.model_dump() for r in data])


@router.get("/{tournament_id}/matches")
async def list_matches(tournament_id: str, db: DbSession, request: Request) -> ApiResponse:
    data = await _service.list_matches(db, tournament_id)
    return respond(request, [m.model_dump() for m in data])


@router.post("/{tournament_id}/register", status_code=status.HTTP_201_CREATED)
async def register(
    tournament_id: str,
    current_user: Annotated[UserModel, Depends(require_capability(Capability.JOIN_TOURNAMENT))],
    db: DbSession,
    request: Request,
    body: Annotated[RegisterRequest | None, Body()] = None,
) -> ApiResponse:
    team_id = body.team_id if body else None
    data = await _service.register_participant(db, tournament_id, str(current_user.id), team_id)
    return respond(request, data.model_dump(), message="Registered")


@router.delete("/{tournament_id}/register")
async def unregister(
    tournament_id: str,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
    team_id: str | None = Query(None),
) -> ApiResponse:
    await _service.unregister_participant(db, tournament_id, str(current_user.id), team_id)
    return respond(request, None, message="Registration withdrawn and refunded")


@router.post("/{tournament_id}/close-registration")
async def close_registration(
    tournament_id: str, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.close_registration(
        db, tournament_id, str(current_user.id), current_user.role
    )
    return respond(request, data.model_dump())


@router.post("/{tournament_id}/start")
async def start_bracket(
    tournament_id: str,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
    seeded: bool = Query(False, description="Keep registration order instead of shuffling"),
) -> ApiResponse:
    data = await _service.start_bracket(
        db, tournament_id, str(current_user.id), current_user.role, seeded=seeded
    )
    return respond(request, data.model_dump(), message="Bracket started")


@router.post("/{tournament_id}/cancel")
async def cancel_tournament(
    tournament_id: str, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.cancel_tournament(
        db, tournament_id, str(current_user.id), current_user.role
    )
    return respond(request, data.model_dump(), message="Tournament cancelled")


@router.post("/{tournament_id}/postpone")
async def postpone_tournament(
    tournament_id: str, current_user: CurrentUser, db: DbSession, request: Request
) -> ApiResponse:
    data = await _service.postpone_tournament(
        db, tournament_id, str(current_user.id), current_user.role
    )
    return respond(request, data.model_dump(), message="Tournament postponed")


@router.post("/{tournament_id}/reschedule")
async def reschedule_tournament(
    tournament_id: str,
    body: RescheduleRequest,
    current_user: CurrentUser,
    db: DbSession,
    request: Request,
) -> ApiResponse:
    data = await _service.reschedule_tournament(
        db, tournament_id, str(current_user.id), current_user.role, body
    )
    return respond(request, data.model_dump(), message="Tournament rescheduled")
