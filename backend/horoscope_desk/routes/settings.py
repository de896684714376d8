"""
Horoscope Desk Backend: Settings Routes
========================================

    GET /api/settings/viewer-menus   any session   → {menus}
    PUT /api/settings/viewer-menus   admin         {menus} → {ok}

Reads never fail on a missing settings table (defaults are returned);
writes answer 503 so the admin knows the change did not stick.
"""

from fastapi import APIRouter, Depends

from horoscope_desk.database import Gateway, get_gateway
from horoscope_desk.schemas.api import ErrorResponse, OkResponse, ViewerMenusRequest, ViewerMenusResponse
from horoscope_desk.services.session import Session, require_admin, require_session
from horoscope_desk.services.settings_service import settings_service

router = APIRouter(prefix="/api/settings", tags=["Settings"])


@router.get(
    "/viewer-menus",
    response_model=ViewerMenusResponse,
    summary="Dashboard routes visible to the viewer role",
)
async def get_viewer_menus(
    session: Session = Depends(require_session),
    gateway: Gateway = Depends(get_gateway),
) -> ViewerMenusResponse:
    return ViewerMenusResponse(menus=await settings_service.get_allowed_menus(gateway))


@router.put(
    "/viewer-menus",
    response_model=OkResponse,
    responses={
        403: {"description": "Admin role required", "model": ErrorResponse},
        503: {"description": "Settings table missing", "model": ErrorResponse},
    },
    summary="Replace the viewer menu allow-list",
)
async def put_viewer_menus(
    body: ViewerMenusRequest,
    session: Session = Depends(require_admin),
    gateway: Gateway = Depends(get_gateway),
) -> OkResponse:
    await settings_service.set_allowed_menus(gateway, body.menus)
    return OkResponse()
