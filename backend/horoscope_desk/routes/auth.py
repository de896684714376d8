"""
Horoscope Desk Backend: Auth Routes
====================================

What:  Login, logout and change-password.
How:   Credential checks live in AuthService; this module only moves the
       session cookie on and off the response.

    POST /api/auth/login            {email, password}  → {ok, role} + Set-Cookie
    POST /api/auth/logout                               → {ok}, cookie deleted
    POST /api/auth/change-password  {currentPassword, newPassword}
"""

import logging

from fastapi import APIRouter, Depends, Response

from horoscope_desk.database import Gateway, get_gateway
from horoscope_desk.schemas.api import (
    ChangePasswordRequest,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    OkResponse,
)
from horoscope_desk.services.auth_service import auth_service
from horoscope_desk.services.session import (
    Session,
    clear_session_cookie,
    require_session,
    set_session_cookie,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Email or password missing", "model": ErrorResponse},
        401: {"description": "Invalid email or password", "model": ErrorResponse},
    },
    summary="Log in and receive the session cookie",
)
async def login(
    body: LoginRequest,
    response: Response,
    gateway: Gateway = Depends(get_gateway),
) -> LoginResponse:
    session = await auth_service.login(gateway, body.email or "", body.password or "")
    set_session_cookie(response, session)
    return LoginResponse(role=session.role)


@router.post("/logout", response_model=OkResponse, summary="Delete the session cookie")
async def logout(response: Response) -> OkResponse:
    """Idempotent: works with or without a current session."""
    clear_session_cookie(response)
    return OkResponse()


@router.post(
    "/change-password",
    response_model=OkResponse,
    responses={
        400: {"description": "Missing fields or new password too short", "model": ErrorResponse},
        401: {"description": "Not logged in, or current password incorrect", "model": ErrorResponse},
        404: {"description": "User no longer exists", "model": ErrorResponse},
    },
    summary="Change the logged-in user's password",
)
async def change_password(
    body: ChangePasswordRequest,
    session: Session = Depends(require_session),
    gateway: Gateway = Depends(get_gateway),
) -> OkResponse:
    await auth_service.change_password(
        gateway,
        session,
        body.current_password or "",
        body.new_password or "",
    )
    return OkResponse()
