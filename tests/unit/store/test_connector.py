"""
Tests for the store connector lifecycle and retry loop.
"""

import asyncio

import pytest

from shiplet.config import StoreSettings
from shiplet.core.connector import StoreConnector
from shiplet.core.exceptions import ConfigurationError, StoreConnectivityError


async def wait_connected(connector: StoreConnector, expected: bool = True, timeout: float = 2.0) -> None:
    async def _poll() -> None:
        while connector.is_connected is not expected:
            await asyncio.sleep(0.005)

    await asyncio.wait_for(_poll(), timeout)


def fast_settings(**kwargs) -> StoreSettings:
    return StoreSettings(
        uri=kwargs.pop("uri", "mongodb://localhost:27017"),
        db_name="shiplet_test",
        retry_delay_seconds=0.01,
        heartbeat_seconds=kwargs.pop("heartbeat_seconds", 0.02),
        **kwargs,
    )


class TestStoreConnector:
    """Test connection handling."""

    @pytest.mark.asyncio
    async def test_missing_uri_is_fatal(self, fake_client_class) -> None:
        """An empty connection string raises instead of retrying."""
        client = fake_client_class()
        connector = StoreConnector(fast_settings(uri=""), client_factory=client.factory)

        with pytest.raises(ConfigurationError) as exc_info:
            await connector.start()

        assert "MONGODB_URI" in str(exc_info.value)
        assert client.uri is None
        assert connector.is_connected is False

    @pytest.mark.asyncio
    async def test_connects_and_builds_store(self, fake_client_class) -> None:
        client = fake_client_class()
        connector = StoreConnector(fast_settings(), client_factory=client.factory)

        await connector.start()
        try:
            await wait_connected(connector)
            store = connector.get_store()
            assert client.uri == "mongodb://localhost:27017"
            assert client.options["serverSelectionTimeoutMS"] == 5000
            assert connector.database_name == "shiplet_test"
            assert store.database is client.databases["shiplet_test"]
            assert client.databases["shiplet_test"]["businesses"].indexes == [[("timestamp", -1)]]
        finally:
            await connector.stop()

        assert client.closed is True
        assert connector.is_connected is False

    @pytest.mark.asyncio
    async def test_retries_until_connected(self, fake_client_class) -> None:
        """Failed pings are retried on the fixed delay."""
        client = fake_client_class(failing_pings=3)
        connector = StoreConnector(fast_settings(), client_factory=client.factory)

        await connector.start()
        try:
            with pytest.raises(StoreConnectivityError):
                connector.get_store()

            await wait_connected(connector)
            assert client.ping_calls >= 4
            assert connector.attempts == 0
        finally:
            await connector.stop()

    @pytest.mark.asyncio
    async def test_connection_loss_is_reported(self, fake_client_class) -> None:
        """A failed heartbeat marks the store disconnected until a ping succeeds."""
        client = fake_client_class()
        connector = StoreConnector(fast_settings(), client_factory=client.factory)

        await connector.start()
        try:
            await wait_connected(connector)

            client.failing_pings = 1_000_000
            await wait_connected(connector, expected=False)
            with pytest.raises(StoreConnectivityError):
                connector.get_store()

            client.failing_pings = 0
            await wait_connected(connector)
            assert connector.get_store() is not None
        finally:
            await connector.stop()

    @pytest.mark.asyncio
    async def test_start_and_stop_are_idempotent(self, fake_client_class) -> None:
        client = fake_client_class()
        connector = StoreConnector(fast_settings(), client_factory=client.factory)

        await connector.stop()
        await connector.start()
        await connector.start()
        await connector.stop()
        await connector.stop()

        assert client.closed is True
