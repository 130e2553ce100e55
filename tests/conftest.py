"""
Pytest configuration and shared fixtures.

Contains common test fixtures and an in-memory stand-in for the motor client
so the service can be exercised without a MongoDB server.
"""

import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generator, Iterator, List, Optional, Tuple

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from shiplet.config import SecuritySettings, Settings, StoreSettings
from shiplet.core.connector import StoreConnector
from shiplet.main import create_app

TEST_API_KEY = "test_api_key_123456789abc"


class FakeInsertResult:
    def __init__(self, inserted_id: ObjectId) -> None:
        self.inserted_id = inserted_id


class FakeCursor:
    def __init__(self, documents: List[Dict[str, Any]]) -> None:
        self._documents = documents

    def sort(self, keys: List[Any]) -> "FakeCursor":
        # Stable sorts applied from the least significant key
        for key, direction in reversed(keys):
            self._documents.sort(key=lambda doc: doc[key], reverse=direction < 0)
        return self

    async def to_list(self, length: Optional[int] = None) -> List[Dict[str, Any]]:
        return [dict(doc) for doc in self._documents]


class FakeCollection:
    def __init__(self) -> None:
        self.documents: List[Dict[str, Any]] = []
        self.indexes: List[Any] = []
        self.fail_with: Optional[Exception] = None

    async def insert_one(self, document: Dict[str, Any]) -> FakeInsertResult:
        if self.fail_with is not None:
            raise self.fail_with
        stored = dict(document)
        stored["_id"] = ObjectId()
        self.documents.append(stored)
        return FakeInsertResult(stored["_id"])

    def find(self, filter: Optional[Dict[str, Any]] = None) -> FakeCursor:
        if self.fail_with is not None:
            raise self.fail_with
        return FakeCursor(list(self.documents))

    async def create_index(self, keys: Any, **kwargs: Any) -> str:
        self.indexes.append(keys)
        return "_".join(f"{key}_{direction}" for key, direction in keys)


class FakeDatabase:
    def __init__(self, name: str) -> None:
        self.name = name
        self.collections: Dict[str, FakeCollection] = {}

    def __getitem__(self, name: str) -> FakeCollection:
        return self.collections.setdefault(name, FakeCollection())


class FakeAdminDatabase:
    def __init__(self, client: "FakeMotorClient") -> None:
        self.client = client

    async def command(self, name: str) -> Dict[str, Any]:
        self.client.ping_calls += 1
        if self.client.failing_pings > 0:
            self.client.failing_pings -= 1
            raise ServerSelectionTimeoutError("fake server unreachable")
        return {"ok": 1.0}


class FakeMotorClient:
    """Just enough of AsyncIOMotorClient for the connector and record store."""

    def __init__(self, failing_pings: int = 0) -> None:
        self.failing_pings = failing_pings
        self.ping_calls = 0
        self.closed = False
        self.uri: Optional[str] = None
        self.options: Dict[str, Any] = {}
        self.databases: Dict[str, FakeDatabase] = {}
        self.admin = FakeAdminDatabase(self)

    def factory(self, uri: str, **options: Any) -> "FakeMotorClient":
        self.uri = uri
        self.options = options
        return self

    def get_default_database(self, default: Optional[str] = None) -> FakeDatabase:
        return self.databases.setdefault(default, FakeDatabase(default))

    def close(self) -> None:
        self.closed = True


def wait_for(condition: Callable[[], bool], timeout: float = 2.0) -> bool:
    """Poll a condition from the test thread while the app loop runs."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if condition():
            return True
        time.sleep(0.01)
    return condition()


def make_settings(**overrides: Any) -> Settings:
    """Build test settings without touching the process environment."""
    api_key = overrides.pop("api_key", TEST_API_KEY)
    uri = overrides.pop("uri", "mongodb://localhost:27017/shiplet_test")
    return Settings(
        environment=overrides.pop("environment", "development"),
        security=SecuritySettings(api_key=api_key),
        store=StoreSettings(
            uri=uri,
            db_name="shiplet_test",
            retry_delay_seconds=0.01,
            heartbeat_seconds=0.05,
        ),
        **overrides,
    )


@pytest.fixture
def test_settings() -> Settings:
    """Development-mode settings with a configured API key."""
    return make_settings()


@pytest.fixture
def fake_client() -> FakeMotorClient:
    return FakeMotorClient()


@pytest.fixture
def fake_database() -> FakeDatabase:
    return FakeDatabase("shiplet_test")


@pytest.fixture
def connector(test_settings: Settings, fake_client: FakeMotorClient) -> StoreConnector:
    return StoreConnector(test_settings.store, client_factory=fake_client.factory)


@pytest.fixture
def test_client(test_settings: Settings, connector: StoreConnector) -> Generator[TestClient, None, None]:
    """FastAPI test client with a connected in-memory store."""
    app = create_app(test_settings, connector)
    with TestClient(app) as client:
        assert wait_for(lambda: connector.is_connected)
        yield client


@pytest.fixture
def auth_headers() -> Dict[str, str]:
    return {"API-Key": TEST_API_KEY}


@pytest.fixture
def business_payload() -> Dict[str, Any]:
    """Valid business signup."""
    return {
        "userType": "business",
        "businessName": "Acme Retail",
        "email": "ops@acme-retail.com",
        "phone": "555-0100",
        "website": "https://acme-retail.com",
        "orderVolume": "100-500/month",
        "notes": "Looking for space near the port",
    }


@pytest.fixture
def provider_payload() -> Dict[str, Any]:
    """Valid provider signup."""
    return {
        "userType": "provider",
        "name": "Acme",
        "email": "a@acme.com",
        "phone": "555",
        "address": "1 Main",
        "spaceSize": 500,
        "spaceType": "warehouse",
        "availability": "immediate",
    }


@pytest.fixture
def fake_client_class() -> type:
    """The fake client class, for tests that need several configured clients."""
    return FakeMotorClient


@pytest.fixture
def make_client(fake_client: FakeMotorClient) -> Callable[..., Any]:
    """Factory for test clients built from custom settings."""

    @contextmanager
    def _make_client(wait_connected: bool = True, **overrides: Any) -> Iterator[Tuple[TestClient, StoreConnector]]:
        settings = make_settings(**overrides)
        connector = StoreConnector(settings.store, client_factory=fake_client.factory)
        app = create_app(settings, connector)
        with TestClient(app, raise_server_exceptions=False) as client:
            if wait_connected:
                assert wait_for(lambda: connector.is_connected)
            yield client, connector

    return _make_client
