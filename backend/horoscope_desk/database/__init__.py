"""
Horoscope Desk Backend: Database Package
=========================================

What:  The Gateway (one execute() over MySQL or SQLite), its result types,
       and the FastAPI dependency that hands the process-wide instance to
       route handlers.
When:  The Gateway is constructed in the app lifespan and stored on
       `app.state.gateway`; its engine opens on the first query.

Example usage in a route:
    @router.get("/things")
    async def list_things(gateway: Gateway = Depends(get_gateway)):
        rows, _ = await gateway.execute("SELECT * FROM things WHERE a = ?", [1])
        return rows
"""

from fastapi import Request

from horoscope_desk.database.gateway import (
    Backend,
    Gateway,
    Result,
    Rows,
    WriteResult,
    select_backend,
)

__all__ = [
    "Backend",
    "Gateway",
    "Result",
    "Rows",
    "WriteResult",
    "get_gateway",
    "select_backend",
]


def get_gateway(request: Request) -> Gateway:
    """FastAPI dependency returning the Gateway owned by the running app."""
    return request.app.state.gateway
