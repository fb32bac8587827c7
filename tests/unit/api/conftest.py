"""Fixtures for API unit tests: seeded in-memory store, mock broadcast channel, signed tokens, AsyncClient."""

import time
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from incident_audit.config.settings import get_settings
from incident_audit.infrastructure.memory.incident_log_store_memory import InMemoryIncidentLogStore
from incident_audit.main import app
from incident_audit.security.identity import JWTIdentityProvider


@pytest.fixture
async def memory_store(record):
    store = InMemoryIncidentLogStore()
    await store.add_record(record)
    return store


@pytest.fixture
def mock_channel():
    """Mock broadcast channel so tests do not connect to a real broker."""
    c = AsyncMock()
    c.broadcast = AsyncMock(return_value=None)
    return c


@pytest.fixture
def app_with_overrides(memory_store, mock_channel):
    """App with store and broadcast channel overridden for testing."""
    from incident_audit.api import dependencies

    app.dependency_overrides[dependencies.get_store] = lambda: memory_store
    app.dependency_overrides[dependencies.get_broadcast_channel] = lambda: mock_channel
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(app_with_overrides):
    """Async HTTP client for testing; uses overridden app."""
    transport = ASGITransport(app=app_with_overrides)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def issue_token():
    settings = get_settings()
    provider = JWTIdentityProvider(secret=settings.jwt_secret, algorithm=settings.jwt_algorithm)

    def _issue(sub: str, **claims) -> dict:
        token = provider.issue({"sub": sub, "exp": int(time.time()) + 300, **claims})
        return {"Authorization": f"Bearer {token}"}

    return _issue


@pytest.fixture
def logger_headers(issue_token):
    return issue_token(
        "user-logger",
        name="Sam Logger",
        role="operator",
        event_roles={"event-1": "operator"},
        callsigns={"event-1": "Alpha 1"},
    )


@pytest.fixture
def controller_headers(issue_token):
    return issue_token(
        "user-controller",
        name="Casey Controller",
        role="operator",
        event_roles={"event-1": "controller"},
        callsigns={"event-1": "Control"},
    )


@pytest.fixture
def operator_headers(issue_token):
    return issue_token(
        "user-other",
        name="Robin Other",
        role="operator",
        event_roles={"event-1": "operator"},
    )
