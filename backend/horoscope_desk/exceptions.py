"""
Horoscope Desk Backend: Custom Exception Hierarchy
===================================================

What:  Application-specific exceptions for authorization, validation and
       persistence failures.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON error responses with correct HTTP status codes.
Who:   Raised by the session gate, services and the database gateway.

Exception Hierarchy:
    HoroscopeDeskError (base)
    ├── ValidationError           → 400 Bad Request
    ├── ReferenceNotFoundError    → 400 Bad Request (foreign key miss)
    ├── UnauthorizedError         → 401 Unauthorized (no session)
    ├── InvalidCredentialsError   → 401 Unauthorized (bad email/password)
    ├── ForbiddenError            → 403 Forbidden (role mismatch)
    ├── NotFoundError             → 404 Not Found
    ├── DuplicateKeyError         → 409 Conflict
    ├── SettingsUnavailableError  → 503 Service Unavailable
    ├── DialectError              → 500 Internal Server Error
    └── DatabaseError             → 500 Internal Server Error
"""

from typing import Any, Dict, Optional


class HoroscopeDeskError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(HoroscopeDeskError):
    """
    Raised when client input fails validation.

    When:    Missing required fields, bad enum values, password too short.
    HTTP:    400 Bad Request
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class UnauthorizedError(HoroscopeDeskError):
    """
    No valid session cookie accompanied the request.

    This is an expected condition (expired cookie, logged out) and is not
    logged as an error.
    """

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message=message)


class InvalidCredentialsError(HoroscopeDeskError):
    """
    Login or password re-verification failed.

    The message never says whether the email or the password was wrong.
    """

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message=message)


class ForbiddenError(HoroscopeDeskError):
    """Valid session, insufficient role."""

    def __init__(self, required_role: str = "admin"):
        super().__init__(message="Forbidden", context={"required_role": required_role})
        self.required_role = required_role


class NotFoundError(HoroscopeDeskError):
    """
    Raised when a requested resource does not exist.

    The gateway returns an empty row list for missing records; services
    convert that into NotFoundError.
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"{resource[:1].upper()}{resource[1:]} not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DuplicateKeyError(HoroscopeDeskError):
    """
    A write violated a uniqueness constraint.

    What:    Raised by the gateway for both backends; the native error text
             is kept so call sites can work out which column collided.
    HTTP:    409 Conflict

    Attributes:
        backend:         "mysql" or "sqlite"; the native messages differ
        native_message:  Driver error text (MySQL 1062 / SQLite UNIQUE)
    """

    def __init__(
        self,
        message: str = "Duplicate value",
        backend: str = "",
        native_message: str = "",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["backend"] = backend
        super().__init__(message=message, context=ctx)
        self.backend = backend
        self.native_message = native_message


class ReferenceNotFoundError(HoroscopeDeskError):
    """A write referenced a parent row that does not exist (foreign key)."""

    def __init__(
        self,
        message: str = "Referenced record not found",
        backend: str = "",
        native_message: str = "",
    ):
        super().__init__(message=message, context={"backend": backend})
        self.backend = backend
        self.native_message = native_message


class SettingsUnavailableError(HoroscopeDeskError):
    """
    The app_settings table is missing on the write path.

    Reads fall back to defaults silently; writes must tell the admin.
    """

    def __init__(
        self,
        message: str = (
            "Settings table not found. Run the database migrations to create app_settings."
        ),
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DialectError(HoroscopeDeskError):
    """
    SQL reached the embedded backend in a shape no translation rule covers.

    Only raised for constructs that would otherwise fail obscurely inside
    SQLite (e.g. an ON DUPLICATE KEY UPDATE on an unmapped table).
    """

    def __init__(self, message: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, context=context)


class DatabaseError(HoroscopeDeskError):
    """
    Database operations failed unexpectedly.

    The message returned to the client is always generic. Detailed error
    info is logged server-side only, unless the raising route attaches a
    `debug_detail` (lookup endpoint with DEBUG_ERRORS=true).
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
        debug_detail: Optional[str] = None,
    ):
        super().__init__(message=message, context=context)
        self.debug_detail = debug_detail
