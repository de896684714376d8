"""
Horoscope Desk Backend: Session & Authorization Gate
=====================================================

What:  Binds a request to an identity and role using the `horoscope_session`
       cookie, and lets handlers declare the privilege they need.
How:   The cookie value is base64(JSON{"userId": int, "role": str}). There
       is no server-side session store: the cookie is the whole session.
       When SESSION_SECRET is configured the JSON also carries an HMAC
       ("sig") over "<userId>:<role>" and unsigned or tampered cookies are
       treated as anonymous.
Who:   Route handlers, through the FastAPI dependencies at the bottom.

State machine (per request):
    Anonymous ──login──▶ Authenticated(role) ──logout / expiry──▶ Anonymous

Failure semantics:
    no / malformed cookie   → current_session() returns None (never raises)
    require_session()       → UnauthorizedError (401)
    require_role()          → ForbiddenError (403)
"""

import base64
import binascii
import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Request, Response

from horoscope_desk.config import Settings, settings
from horoscope_desk.exceptions import ForbiddenError, UnauthorizedError

logger = logging.getLogger(__name__)

SESSION_COOKIE = "horoscope_session"
SESSION_MAX_AGE = 60 * 60 * 24 * 7  # 7 days

ROLE_ADMIN = "admin"
ROLE_VIEWER = "viewer"
ROLES = frozenset({ROLE_ADMIN, ROLE_VIEWER})


@dataclass(frozen=True)
class Session:
    """Decoded identity carried by the session cookie."""

    user_id: int
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


# ══════════════════════════════════════════════════════════════════════════
# Cookie Encoding
# ══════════════════════════════════════════════════════════════════════════


def _signature(user_id: int, role: str, secret: str) -> str:
    message = f"{user_id}:{role}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def encode_session(session: Session, secret: Optional[str] = None) -> str:
    """Serialize a Session into the cookie value."""
    payload = {"userId": session.user_id, "role": session.role}
    if secret:
        payload["sig"] = _signature(session.user_id, session.role, secret)
    raw = json.dumps(payload, separators=(",", ":")).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def decode_session(value: Optional[str], secret: Optional[str] = None) -> Optional[Session]:
    """
    Decode a cookie value into a Session.

    Returns None for anything that is not a well-formed payload: bad
    base64, bad JSON, missing fields, wrong types, unknown role, or (with
    a secret) a missing/mismatched signature.
    """
    if not value:
        return None
    try:
        payload = json.loads(base64.b64decode(value, validate=True).decode("utf-8"))
    except (binascii.Error, ValueError, UnicodeDecodeError):
        return None
    if not isinstance(payload, dict):
        return None

    user_id = payload.get("userId")
    role = payload.get("role")
    # bool is an int subclass; reject it explicitly
    if not isinstance(user_id, int) or isinstance(user_id, bool) or user_id <= 0:
        return None
    if not isinstance(role, str) or role not in ROLES:
        return None

    if secret:
        sig = payload.get("sig")
        if not isinstance(sig, str) or not hmac.compare_digest(sig, _signature(user_id, role, secret)):
            logger.warning("Rejected session cookie with invalid signature (userId=%s)", user_id)
            return None

    return Session(user_id=user_id, role=role)


# ══════════════════════════════════════════════════════════════════════════
# Cookie I/O
# ══════════════════════════════════════════════════════════════════════════


def set_session_cookie(response: Response, session: Session, config: Settings = settings) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=encode_session(session, config.session_secret),
        max_age=SESSION_MAX_AGE,
        path="/",
        httponly=True,
        samesite="lax",
        # Desktop (SQLite) builds are served over plain http://localhost
        secure=config.is_production and not config.use_sqlite,
    )


def clear_session_cookie(response: Response) -> None:
    """Delete the cookie. Safe to call when no cookie is present."""
    response.delete_cookie(key=SESSION_COOKIE, path="/")


# ══════════════════════════════════════════════════════════════════════════
# Gate Operations
# ══════════════════════════════════════════════════════════════════════════


def current_session(request: Request) -> Optional[Session]:
    """The request's session, or None when anonymous. Never raises."""
    return decode_session(request.cookies.get(SESSION_COOKIE), settings.session_secret)


def require_session(request: Request) -> Session:
    session = current_session(request)
    if session is None:
        raise UnauthorizedError()
    return session


def require_role(session: Session, role: str = ROLE_ADMIN) -> None:
    if session.role != role:
        raise ForbiddenError(required_role=role)


def require_admin(session: Session = Depends(require_session)) -> Session:
    """Dependency for mutating routes: authenticated and admin."""
    require_role(session, ROLE_ADMIN)
    return session
