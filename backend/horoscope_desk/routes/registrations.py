"""
Horoscope Desk Backend: Registration Routes
============================================

What:  Profile search, fetch, create and edit.

    GET   /api/registrations?registration_id=X   exact match (404 if missing)
    GET   /api/registrations?prefix=P            ID prefix search
    GET   /api/registrations?search=S            ID / name / phone / WhatsApp
    GET   /api/registrations/{id}                by row id
    POST  /api/registrations                     admin
    PATCH /api/registrations/{id}                admin, partial

Reads need any session; writes need the admin role.
"""

import logging
from typing import Union

from fastapi import APIRouter, Depends, Query, status

from horoscope_desk.database import Gateway, get_gateway
from horoscope_desk.schemas.api import (
    CreatedResponse,
    ErrorResponse,
    OkResponse,
    RegistrationCreate,
    RegistrationListResponse,
    RegistrationResponse,
    RegistrationUpdate,
)
from horoscope_desk.services.registration_service import registration_service
from horoscope_desk.services.session import Session, require_admin, require_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/registrations", tags=["Registrations"])


@router.get(
    "",
    response_model=Union[RegistrationResponse, RegistrationListResponse],
    responses={404: {"description": "No profile with that ID", "model": ErrorResponse}},
    summary="Search profiles, or fetch one by Profile ID",
)
async def search_registrations(
    search: str = Query(default="", description="Substring of ID, name, phone or WhatsApp"),
    prefix: str = Query(default="", description="Profile ID prefix"),
    registration_id: str = Query(default="", description="Exact Profile ID"),
    session: Session = Depends(require_session),
    gateway: Gateway = Depends(get_gateway),
):
    registration_id = registration_id.strip()
    if registration_id:
        return await registration_service.get_by_registration_id(gateway, registration_id)
    rows = await registration_service.search(gateway, search=search.strip(), prefix=prefix.strip())
    return {"registrations": rows}


@router.get(
    "/{row_id}",
    response_model=RegistrationResponse,
    responses={404: {"description": "Profile not found", "model": ErrorResponse}},
    summary="Get a profile by row id",
)
async def get_registration(
    row_id: int,
    session: Session = Depends(require_session),
    gateway: Gateway = Depends(get_gateway),
):
    return await registration_service.get_by_id(gateway, row_id)


@router.post(
    "",
    response_model=CreatedResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"description": "Missing or invalid fields", "model": ErrorResponse},
        403: {"description": "Admin role required", "model": ErrorResponse},
        409: {"description": "Profile ID, phone or WhatsApp already used", "model": ErrorResponse},
    },
    summary="Create a profile",
)
async def create_registration(
    body: RegistrationCreate,
    session: Session = Depends(require_admin),
    gateway: Gateway = Depends(get_gateway),
) -> CreatedResponse:
    row_id = await registration_service.create(gateway, body.model_dump())
    return CreatedResponse(id=row_id)


@router.patch(
    "/{row_id}",
    response_model=OkResponse,
    responses={
        400: {"description": "Nothing to update or invalid gender", "model": ErrorResponse},
        403: {"description": "Admin role required", "model": ErrorResponse},
        404: {"description": "Profile not found", "model": ErrorResponse},
        409: {"description": "Profile ID, phone or WhatsApp already used", "model": ErrorResponse},
    },
    summary="Edit a profile",
)
async def update_registration(
    row_id: int,
    body: RegistrationUpdate,
    session: Session = Depends(require_admin),
    gateway: Gateway = Depends(get_gateway),
) -> OkResponse:
    await registration_service.update(gateway, row_id, body.model_dump(exclude_unset=True))
    return OkResponse()
