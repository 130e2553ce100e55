"""
Main FastAPI application entry point.

This module sets up the FastAPI app with all middleware, routes, and lifecycle events.
"""

import asyncio
import errno
import logging
import socket
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .api import healthz_router, placeholder_router, signup_router
from .config import Settings, get_settings
from .core.connector import StoreConnector
from .core.exceptions import ShipletException, error_content


def configure_logging(log_level: str = "INFO", json_logs: bool = False) -> None:
    """Configure structured logging for the application."""
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, log_level.upper()),
    )

    # Silence the verbose watchfiles logger
    logging.getLogger("watchfiles").setLevel(logging.WARNING)

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if json_logs:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def log_unhandled_exception(loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
    """Event loop exception handler: log, never crash."""
    logger = structlog.get_logger(__name__)
    exception = context.get("exception")
    logger.error(
        "Unhandled exception in background task",
        message=context.get("message"),
        error=str(exception) if exception else None,
        error_type=type(exception).__name__ if exception else None,
        exc_info=exception,
    )


def create_lifespan_handler(settings: Settings, connector: StoreConnector) -> Any:
    """Create a lifespan handler with access to settings and the store connector."""
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """
        FastAPI lifespan context manager.

        Starts the store connector and installs the loop exception handler.
        """
        logger = structlog.get_logger(__name__)
        logger.info("Starting Shiplet backend", version=app.version)

        loop = asyncio.get_running_loop()
        previous_handler = loop.get_exception_handler()
        loop.set_exception_handler(log_unhandled_exception)

        try:
            await connector.start()

            logger.info(
                "Shiplet backend server running",
                host=settings.host,
                port=settings.port,
                environment=settings.environment,
                cors="allow-list" if settings.is_production else "open",
                database=connector.database_name,
            )
            yield
        finally:
            logger.info("Shutting down Shiplet backend")
            await connector.stop()
            loop.set_exception_handler(previous_handler)
            logger.info("Shiplet backend shutdown complete")

    return lifespan


async def shiplet_exception_handler(request: Request, exc: ShipletException) -> JSONResponse:
    """Handle custom Shiplet exceptions."""
    logger = structlog.get_logger(__name__)
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Request rejected",
        error=str(exc),
        error_code=exc.error_code,
        status_code=exc.status_code,
        path=request.url.path,
        method=request.method,
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_content(str(exc), None, request.app.state.settings.is_production),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger = structlog.get_logger(__name__)
    logger.error(
        "Unexpected exception occurred",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )

    return JSONResponse(
        status_code=500,
        content=error_content(
            "Internal server error", str(exc), request.app.state.settings.is_production
        ),
    )


def create_app(
    settings: Optional[Settings] = None,
    connector: Optional[StoreConnector] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    The store connector is created here and owned by the app; handlers reach
    it through ``app.state``.
    """
    if settings is None:
        settings = get_settings()
    if connector is None:
        connector = StoreConnector(settings.store)

    configure_logging(settings.log_level, json_logs=settings.is_production)

    app = FastAPI(
        title="Shiplet",
        description="Signup backend for Shiplet businesses and space providers",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=create_lifespan_handler(settings, connector),
    )
    app.state.settings = settings
    app.state.connector = connector

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.security.allowed_origins if settings.is_production else ["*"],
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )

    app.add_exception_handler(ShipletException, shiplet_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # Include routers
    app.include_router(signup_router, prefix="/api", tags=["signup"])
    app.include_router(placeholder_router, prefix="/api", tags=["placeholder"])
    app.include_router(healthz_router, tags=["health"])

    return app


def port_in_use(host: str, port: int) -> bool:
    """Check whether host:port is already bound by another process."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            sock.bind((host, port))
        except OSError as e:
            if e.errno == errno.EADDRINUSE:
                return True
            raise
    return False


def run() -> None:
    """Process entry point: validate configuration and serve with uvicorn."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings.log_level, json_logs=settings.is_production)
    logger = structlog.get_logger(__name__)

    if not settings.store.uri:
        logger.error("MONGODB_URI environment variable is not set")
        sys.exit(1)

    if port_in_use(settings.host, settings.port):
        logger.error("Port is already in use", host=settings.host, port=settings.port)
        sys.exit(1)

    uvicorn.run(
        "shiplet.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


# Create the app instance
app = create_app()


if __name__ == "__main__":
    run()
