"""
Horoscope Desk Backend: Share Routes
=====================================

    POST /api/shares   admin   {sender_registration_id, recipient_registration_id,
                                shared_via?, notes?} → {ok}

Safe to re-submit: the same pair is merged, not duplicated.
"""

from fastapi import APIRouter, Depends

from horoscope_desk.database import Gateway, get_gateway
from horoscope_desk.schemas.api import ErrorResponse, OkResponse, ShareCreate
from horoscope_desk.services.session import Session, require_admin
from horoscope_desk.services.share_service import share_service

router = APIRouter(prefix="/api/shares", tags=["Shares"])


@router.post(
    "",
    response_model=OkResponse,
    responses={
        400: {"description": "Missing / identical / unknown profile IDs", "model": ErrorResponse},
        403: {"description": "Admin role required", "model": ErrorResponse},
    },
    summary="Record that a horoscope was shared",
)
async def record_share(
    body: ShareCreate,
    session: Session = Depends(require_admin),
    gateway: Gateway = Depends(get_gateway),
) -> OkResponse:
    await share_service.record_share(
        gateway,
        body.sender_registration_id,
        body.recipient_registration_id,
        shared_via=body.shared_via,
        notes=body.notes,
    )
    return OkResponse()
