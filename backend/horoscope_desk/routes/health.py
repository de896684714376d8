"""
Horoscope Desk Backend: Health Check Route
===========================================

What:  Liveness plus database reachability, for the desktop shell's
       startup probe and for monitoring.
How:   Runs SELECT 1 through the Gateway. On a fresh SQLite install the
       first probe also performs the schema bootstrap.

    healthy    database reachable       (HTTP 200)
    unhealthy  database unreachable     (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Depends, Response, status

from horoscope_desk import __version__
from horoscope_desk.database import Gateway, get_gateway
from horoscope_desk.schemas.api import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


@router.get("/health", response_model=HealthResponse, summary="Service health check")
async def health_check(response: Response, gateway: Gateway = Depends(get_gateway)) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"
    try:
        await gateway.ping()
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        backend=gateway.backend.value,
        database=db_status,
        uptime_seconds=round(time.time() - _start_time, 2),
    )
