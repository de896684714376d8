"""
Horoscope Desk Backend: Pydantic Request/Response Schemas
==========================================================

What:  The JSON contract of the HTTP routes.
How:   Request fields are Optional on purpose: a missing field reaches the
       service, which raises ValidationError with the office's own wording
       ("Profile ID, name and gender are required") instead of FastAPI's
       generic 422 body.

Field names follow the wire format the dashboard already sends, which
mixes snake_case (profiles) and camelCase (auth, lookup). camelCase
fields are declared with aliases so Python code stays snake_case.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


# ══════════════════════════════════════════════════════════════════════════
# Auth
# ══════════════════════════════════════════════════════════════════════════


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(BaseModel):
    ok: bool = True
    role: str = Field(description="'admin' or 'viewer'")


class ChangePasswordRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    current_password: Optional[str] = Field(default=None, alias="currentPassword")
    new_password: Optional[str] = Field(default=None, alias="newPassword")


class OkResponse(BaseModel):
    ok: bool = True


# ══════════════════════════════════════════════════════════════════════════
# Settings
# ══════════════════════════════════════════════════════════════════════════


class ViewerMenusRequest(BaseModel):
    menus: List[str] = Field(description="Dashboard route paths viewers may open")


class ViewerMenusResponse(BaseModel):
    menus: List[str]


# ══════════════════════════════════════════════════════════════════════════
# Registrations
# ══════════════════════════════════════════════════════════════════════════


class RegistrationCreate(BaseModel):
    registration_id: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = Field(default=None, description="'male' or 'female'")
    phone: Optional[str] = None
    whatsapp_number: Optional[str] = None
    notes: Optional[str] = None
    address: Optional[str] = None


class RegistrationUpdate(BaseModel):
    """
    Partial update. Only fields present in the request body are applied
    (the route uses `model_dump(exclude_unset=True)`), so sending
    `"phone": null` clears the phone while omitting it leaves it alone.
    """

    registration_id: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None
    phone: Optional[str] = None
    whatsapp_number: Optional[str] = None
    horoscope_path: Optional[str] = None
    notes: Optional[str] = None
    address: Optional[str] = None


class RegistrationResponse(BaseModel):
    id: int
    registration_id: str
    name: str
    role: str
    phone: Optional[str] = None
    whatsapp_number: Optional[str] = None
    horoscope_path: Optional[str] = None
    notes: Optional[str] = None
    address: Optional[str] = None
    created_at: Optional[Any] = None


class RegistrationListResponse(BaseModel):
    registrations: List[RegistrationResponse]


class CreatedResponse(BaseModel):
    ok: bool = True
    id: Optional[int] = Field(default=None, description="Auto-generated row id")


# ══════════════════════════════════════════════════════════════════════════
# Shares & Follow-ups
# ══════════════════════════════════════════════════════════════════════════


class ShareCreate(BaseModel):
    sender_registration_id: Optional[str] = None
    recipient_registration_id: Optional[str] = None
    shared_via: Optional[str] = Field(default=None, description="whatsapp, manual or other")
    notes: Optional[str] = None


class FollowUpCreate(BaseModel):
    registration_id: Optional[str] = None
    share_id: Optional[int] = None
    due_date: Optional[str] = Field(default=None, description="YYYY-MM-DD")
    note: Optional[str] = None


class FollowUpUpdate(BaseModel):
    status: Optional[str] = Field(default=None, description="'pending' or 'done'")
    due_date: Optional[str] = None
    note: Optional[str] = None


class FollowUpListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    follow_ups: List[Dict[str, Any]] = Field(alias="followUps")


# ══════════════════════════════════════════════════════════════════════════
# Errors & Health
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Envelope returned by every exception handler.

    Example:
        {
            "error": "duplicate_key",
            "message": "This phone number is already registered",
            "details": {"field": "phone"},
            "request_id": "a1b2c3d4"
        }
    """

    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    version: str
    backend: str = Field(description="mysql or sqlite")
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float
