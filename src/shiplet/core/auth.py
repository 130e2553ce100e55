"""
Shared API key authentication.
"""

import secrets
from typing import Optional

import structlog
from fastapi import Request, Security
from fastapi.security import APIKeyHeader

from ..config import Settings
from .exceptions import AuthenticationError, ConfigurationError

logger = structlog.get_logger(__name__)
api_key_header = APIKeyHeader(name="API-Key", auto_error=False)


def get_app_settings(request: Request) -> Settings:
    """Dependency returning the settings the app was created with."""
    return request.app.state.settings


async def require_api_key(
    request: Request,
    api_key: Optional[str] = Security(api_key_header),
) -> None:
    """
    Gate a route behind the configured API key.

    Fails closed when no key is configured.
    """
    expected = get_app_settings(request).security.api_key

    if not expected:
        logger.error("API key is not configured", path=request.url.path)
        raise ConfigurationError("Server configuration error: API key not set")

    if not api_key or not secrets.compare_digest(api_key.encode(), expected.encode()):
        logger.warning(
            "Authentication failed: invalid API key",
            api_key=api_key,
            path=request.url.path,
            method=request.method,
        )
        raise AuthenticationError()

    logger.debug("API key accepted", path=request.url.path)
