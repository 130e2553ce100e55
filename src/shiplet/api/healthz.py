"""
Health check endpoints.

- /health: always 200, reports whether the record store is connected
- /: plain-text liveness string
"""

from typing import Any, Dict

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.get(
    "/health",
    status_code=200,
    summary="Health check",
    description="""
    Health check endpoint.

    Always returns 200 OK while the process is serving. ``storeConnected``
    reflects the live MongoDB connection state.
    """,
)
async def health_check(request: Request) -> Dict[str, Any]:
    """
    Health check - never fails itself.
    """
    connector = getattr(request.app.state, "connector", None)
    store_connected = bool(connector is not None and connector.is_connected)

    if not store_connected:
        logger.debug("Health check while store disconnected")

    return {
        "status": "healthy",
        "environment": request.app.state.settings.environment,
        "storeConnected": store_connected,
    }


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root() -> str:
    """Liveness string."""
    return "Shiplet backend is running"
