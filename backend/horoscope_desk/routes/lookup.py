"""
Horoscope Desk Backend: Profile Lookup Route
=============================================

    GET /api/lookup?id=<Profile ID>   any session
        → {registrationId, profile, horoscopeSentTo, profileDetailsSentTo}

Diagnostics:
    This is the one endpoint whose 500 response can carry the underlying
    exception text, and only when DEBUG_ERRORS=true. Every other route
    returns the generic server error message.
"""

import logging

from fastapi import APIRouter, Depends, Query
from sqlalchemy.exc import SQLAlchemyError

from horoscope_desk.config import settings
from horoscope_desk.database import Gateway, get_gateway
from horoscope_desk.exceptions import DatabaseError, ValidationError
from horoscope_desk.schemas.api import ErrorResponse
from horoscope_desk.services.lookup_service import lookup_service
from horoscope_desk.services.session import Session, require_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Lookup"])


@router.get(
    "/lookup",
    responses={
        400: {"description": "Profile ID missing", "model": ErrorResponse},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="Who has received this profile",
)
async def lookup(
    registration_id: str = Query(default="", alias="id", description="Profile ID"),
    session: Session = Depends(require_session),
    gateway: Gateway = Depends(get_gateway),
):
    registration_id = registration_id.strip()
    if not registration_id:
        raise ValidationError("Profile ID required", field="id")

    try:
        return await lookup_service.lookup(gateway, registration_id)
    except SQLAlchemyError as exc:
        logger.error("Lookup failed for %s: %s", registration_id, exc)
        raise DatabaseError(
            context={"registration_id": registration_id},
            debug_detail=str(exc) if settings.debug_errors else None,
        ) from exc
