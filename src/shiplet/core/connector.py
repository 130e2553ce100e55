"""
Background service owning the MongoDB connection.

Connects with a fixed-delay retry loop, keeps checking the connection while
the app runs and exposes the live state to the health endpoint.
"""

import asyncio
from typing import Any, Callable, Optional

import structlog
from motor.motor_asyncio import AsyncIOMotorClient

from ..config import StoreSettings
from .exceptions import ConfigurationError, StoreConnectivityError
from .store import RecordStore

logger = structlog.get_logger(__name__)


class StoreConnector:
    """
    Owns the single shared motor client and the record store built on it.

    Features:
    - Unbounded connection retries on a fixed delay
    - Periodic ping while connected
    - Live connection state for health checks
    """

    def __init__(
        self,
        settings: StoreSettings,
        client_factory: Callable[..., Any] = AsyncIOMotorClient,
    ) -> None:
        self.settings = settings
        self.client_factory = client_factory
        self.client: Optional[Any] = None
        self.store: Optional[RecordStore] = None
        self.attempts = 0
        self._task: Optional[asyncio.Task[None]] = None
        self._running = False
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def database_name(self) -> str:
        if self.client is None:
            return self.settings.db_name
        return self.client.get_default_database(self.settings.db_name).name

    async def start(self) -> None:
        """
        Create the client and start the connection loop.

        Raises ConfigurationError when no connection string is configured.
        """
        if self._running:
            return

        if not self.settings.uri:
            logger.error("MONGODB_URI is not set, refusing to start")
            raise ConfigurationError("MONGODB_URI environment variable is not set")

        self.client = self.client_factory(
            self.settings.uri,
            serverSelectionTimeoutMS=self.settings.server_selection_timeout_ms,
            tz_aware=True,
        )

        self._running = True
        self._task = asyncio.create_task(self._run_connection_loop())
        self._task.add_done_callback(self._on_loop_done)

        logger.info(
            "Store Connector started",
            retry_delay_seconds=self.settings.retry_delay_seconds,
            heartbeat_seconds=self.settings.heartbeat_seconds,
        )

    async def stop(self) -> None:
        """Stop the connection loop and close the client."""
        if not self._running:
            return

        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        if self.client is not None:
            self.client.close()

        self._connected = False
        logger.info("Store Connector stopped")

    def get_store(self) -> RecordStore:
        """Return the record store, or raise if there is no live connection."""
        if self.store is None or not self._connected:
            raise StoreConnectivityError()
        return self.store

    async def check_connection(self) -> None:
        """
        Ping the server once.

        The first successful ping builds the record store and its indexes.
        """
        await self.client.admin.command("ping")

        if self.store is None:
            store = RecordStore(self.client.get_default_database(self.settings.db_name))
            await store.ensure_indexes()
            self.store = store

    async def _run_connection_loop(self) -> None:
        """Main connection loop."""
        while self._running:
            try:
                await self.check_connection()

                if not self._connected:
                    self._connected = True
                    logger.info(
                        "MongoDB connected successfully",
                        database=self.database_name,
                        attempts=self.attempts + 1,
                    )
                    self.attempts = 0

                await asyncio.sleep(self.settings.heartbeat_seconds)

            except asyncio.CancelledError:
                break
            except Exception as e:
                if self._connected:
                    logger.error("MongoDB connection lost", error=str(e))
                self._connected = False
                self.attempts += 1
                logger.error(
                    "MongoDB connection error",
                    attempt=self.attempts,
                    error=str(e),
                    error_type=type(e).__name__,
                    retry_in_seconds=self.settings.retry_delay_seconds,
                )
                await asyncio.sleep(self.settings.retry_delay_seconds)

    def _on_loop_done(self, task: "asyncio.Task[None]") -> None:
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._connected = False
            logger.error(
                "Store connection loop exited unexpectedly",
                error=str(error),
                error_type=type(error).__name__,
            )
