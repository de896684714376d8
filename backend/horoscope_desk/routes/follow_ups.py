"""
Horoscope Desk Backend: Follow-up Routes
=========================================

    GET   /api/follow-ups?due=today   any session → {followUps}
    POST  /api/follow-ups             admin       → {ok, id}
    PATCH /api/follow-ups/{id}        admin       → {ok}
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from horoscope_desk.database import Gateway, get_gateway
from horoscope_desk.schemas.api import (
    CreatedResponse,
    ErrorResponse,
    FollowUpCreate,
    FollowUpListResponse,
    FollowUpUpdate,
    OkResponse,
)
from horoscope_desk.services.follow_up_service import follow_up_service
from horoscope_desk.services.session import Session, require_admin, require_session

router = APIRouter(prefix="/api/follow-ups", tags=["Follow-ups"])


@router.get(
    "",
    response_model=FollowUpListResponse,
    summary="List follow-ups, optionally only those due today",
)
async def list_follow_ups(
    due: Optional[str] = Query(default=None, description="'today' for pending items due today"),
    session: Session = Depends(require_session),
    gateway: Gateway = Depends(get_gateway),
):
    rows = await follow_up_service.list_follow_ups(gateway, due_today=due == "today")
    return {"followUps": rows}


@router.post(
    "",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Missing fields or bad date", "model": ErrorResponse},
        403: {"description": "Admin role required", "model": ErrorResponse},
    },
    summary="Create a follow-up",
)
async def create_follow_up(
    body: FollowUpCreate,
    session: Session = Depends(require_admin),
    gateway: Gateway = Depends(get_gateway),
) -> CreatedResponse:
    follow_up_id = await follow_up_service.create(
        gateway,
        created_by=session.user_id,
        registration_id=body.registration_id,
        due_date=body.due_date,
        note=body.note,
        share_id=body.share_id,
    )
    return CreatedResponse(id=follow_up_id)


@router.patch(
    "/{follow_up_id}",
    response_model=OkResponse,
    responses={
        400: {"description": "Nothing to update or invalid value", "model": ErrorResponse},
        403: {"description": "Admin role required", "model": ErrorResponse},
        404: {"description": "Follow-up not found", "model": ErrorResponse},
    },
    summary="Update status, due date or note",
)
async def update_follow_up(
    follow_up_id: int,
    body: FollowUpUpdate,
    session: Session = Depends(require_admin),
    gateway: Gateway = Depends(get_gateway),
) -> OkResponse:
    await follow_up_service.update(gateway, follow_up_id, body.model_dump(exclude_unset=True))
    return OkResponse()
