"""
Horoscope Desk Backend: FastAPI Application Factory
====================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app() wires middleware, exception handlers and routers; the
       lifespan owns the single Gateway for the life of the process.
Who:   uvicorn (uvicorn horoscope_desk.main:app) and the test suite.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                       FastAPI App                        │
    │                                                          │
    │  Middleware:   Request ID → Logging → GZip → CORS        │
    │                                                          │
    │  Routes:       /api/auth  /api/settings  /api/lookup     │
    │                /api/registrations  /api/shares           │
    │                /api/follow-ups  /health                  │
    │                                                          │
    │  Dependencies: require_session / require_admin           │
    │                get_gateway → app.state.gateway           │
    │                                                          │
    │  Exception Handlers:                                     │
    │    Validation/Reference→400  Unauthorized→401            │
    │    Forbidden→403  NotFound→404  Duplicate→409            │
    │    SettingsUnavailable→503  everything else→500          │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, construct Gateway (backend chosen, no connection yet)
    Shutdown: dispose the engine (pool or SQLite handle)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from horoscope_desk import __version__
from horoscope_desk.config import settings
from horoscope_desk.database import Gateway
from horoscope_desk.exceptions import (
    DatabaseError,
    DialectError,
    DuplicateKeyError,
    ForbiddenError,
    HoroscopeDeskError,
    InvalidCredentialsError,
    NotFoundError,
    ReferenceNotFoundError,
    SettingsUnavailableError,
    UnauthorizedError,
    ValidationError,
)
from horoscope_desk.middleware.logging import RequestLoggingMiddleware
from horoscope_desk.middleware.request_id import RequestIDMiddleware, request_id_var
from horoscope_desk.routes import auth, follow_ups, health, lookup, registrations, shares
from horoscope_desk.routes import settings as settings_routes

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure root logging once, to stdout.

    Format: 2024-01-15T12:00:00 [INFO] horoscope_desk.database.gateway: ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("Horoscope Desk backend %s starting up...", __version__)

    # Tests may install their own gateway before startup.
    if getattr(app.state, "gateway", None) is None:
        app.state.gateway = Gateway(settings)
    if settings.session_secret is None:
        logger.warning("SESSION_SECRET not set; session cookies are unsigned")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Horoscope Desk backend shutting down...")
    await app.state.gateway.dispose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_response(
    status_code: int,
    error: str,
    message: str,
    details: Optional[dict] = None,
) -> JSONResponse:
    content = {"error": error, "message": message, "request_id": request_id_var.get("")}
    if details:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map the exception hierarchy onto HTTP responses.

    Handler hierarchy:
        ValidationError           → 400
        ReferenceNotFoundError    → 400
        UnauthorizedError         → 401 (expected, logged at DEBUG only)
        InvalidCredentialsError   → 401
        ForbiddenError            → 403
        NotFoundError             → 404
        DuplicateKeyError         → 409
        SettingsUnavailableError  → 503
        DialectError              → 500
        DatabaseError             → 500
        HoroscopeDeskError        → 500
        Exception                 → 500

    Server errors never carry internal details in the body; the only
    exception is DatabaseError.debug_detail, set by the lookup route.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(400, "validation_error", exc.message, exc.context)

    @app.exception_handler(ReferenceNotFoundError)
    async def handle_reference_not_found(request: Request, exc: ReferenceNotFoundError):
        logger.warning(
            "[%s] Reference not found (%s): %s", request_id_var.get(""), exc.backend, exc.native_message
        )
        return _error_response(400, "reference_not_found", exc.message)

    @app.exception_handler(UnauthorizedError)
    async def handle_unauthorized(request: Request, exc: UnauthorizedError):
        logger.debug("[%s] Unauthorized request to %s", request_id_var.get(""), request.url.path)
        return _error_response(401, "unauthorized", exc.message)

    @app.exception_handler(InvalidCredentialsError)
    async def handle_invalid_credentials(request: Request, exc: InvalidCredentialsError):
        return _error_response(401, "invalid_credentials", exc.message)

    @app.exception_handler(ForbiddenError)
    async def handle_forbidden(request: Request, exc: ForbiddenError):
        logger.warning("[%s] Forbidden: %s requires %s", request_id_var.get(""), request.url.path, exc.required_role)
        return _error_response(403, "forbidden", exc.message)

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(404, "not_found", exc.message)

    @app.exception_handler(DuplicateKeyError)
    async def handle_duplicate_key(request: Request, exc: DuplicateKeyError):
        logger.info("[%s] Duplicate key: %s", request_id_var.get(""), exc.message)
        field = exc.context.get("field")
        return _error_response(409, "duplicate_key", exc.message, {"field": field} if field else None)

    @app.exception_handler(SettingsUnavailableError)
    async def handle_settings_unavailable(request: Request, exc: SettingsUnavailableError):
        logger.error("[%s] %s", request_id_var.get(""), exc.message)
        return _error_response(503, "settings_unavailable", exc.message)

    @app.exception_handler(DialectError)
    async def handle_dialect_error(request: Request, exc: DialectError):
        logger.error("[%s] Untranslatable SQL: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(500, "server_error", "Server error")

    @app.exception_handler(DatabaseError)
    async def handle_database_error(request: Request, exc: DatabaseError):
        logger.error("[%s] Database error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        details = {"detail": exc.debug_detail} if exc.debug_detail else None
        return _error_response(500, "server_error", "Server error", details)

    @app.exception_handler(HoroscopeDeskError)
    async def handle_app_error(request: Request, exc: HoroscopeDeskError):
        logger.error("[%s] Application error: %s | Context: %s", request_id_var.get(""), exc.message, exc.context)
        return _error_response(500, "server_error", "Server error")

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error("[%s] Unexpected error: %s", request_id_var.get(""), str(exc), exc_info=True)
        return _error_response(500, "internal_server_error", "Server error")


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    app = FastAPI(
        title="Horoscope Desk API",
        description=(
            "Back office for a matchmaking office: profiles, horoscope shares, "
            "follow-ups and role-based dashboard menus over MySQL or SQLite."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in reverse order of addition: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,  # session cookie
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(auth.router)
    app.include_router(settings_routes.router)
    app.include_router(registrations.router)
    app.include_router(shares.router)
    app.include_router(follow_ups.router)
    app.include_router(lookup.router)
    app.include_router(health.router)

    return app


app = create_app()
