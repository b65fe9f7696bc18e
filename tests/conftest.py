"""Global pytest fixtures for Betboard.

This module provides shared fixtures for testing including:
- An in-memory store and in-process change feed per test
- A lifecycle service wired to both
- An HTTP client over the ASGI app with the same store and feed
- Token helpers and a mock Redis client
"""

import os

os.environ.setdefault("BETBOARD_JWT_SECRET_KEY", "test-secret-key-for-betboard-tests")
os.environ.setdefault("BETBOARD_STORE_BACKEND", "memory")
os.environ.setdefault("BETBOARD_LOG_FORMAT", "console")

from collections.abc import AsyncGenerator, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from betboard import dependencies
from betboard.auth import create_access_token, new_anonymous_user_id
from betboard.services.event_service import InProcessChangeFeed
from betboard.services.lifecycle_service import LifecycleService
from betboard.stores import InMemoryChallengeStore


# ===========================================
# STORE / FEED / SERVICE FIXTURES
# ===========================================


@pytest.fixture
def memory_store() -> InMemoryChallengeStore:
    """A fresh, empty in-memory store."""
    return InMemoryChallengeStore()


@pytest.fixture
def feed() -> InProcessChangeFeed:
    """A private in-process change feed."""
    return InProcessChangeFeed()


@pytest.fixture
def service(memory_store: InMemoryChallengeStore, feed: InProcessChangeFeed) -> LifecycleService:
    return LifecycleService(memory_store, feed=feed)


@pytest.fixture
def db_session() -> AsyncMock:
    """Create a mock async database session for SQL store tests."""
    session = AsyncMock()
    session.add = MagicMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    return session


@pytest.fixture
def mock_redis_client() -> MagicMock:
    """Create a mock Redis client for unit tests."""
    redis = MagicMock()
    redis.publish = AsyncMock(return_value=1)
    redis.ping = AsyncMock(return_value=True)
    redis.aclose = AsyncMock()

    pubsub = MagicMock()
    pubsub.subscribe = AsyncMock()
    pubsub.unsubscribe = AsyncMock()
    pubsub.aclose = AsyncMock()
    pubsub.get_message = AsyncMock(return_value=None)
    redis.pubsub = MagicMock(return_value=pubsub)
    return redis


# ===========================================
# IDENTITY FIXTURES
# ===========================================


@pytest.fixture
def auth_headers() -> Callable[[str], dict[str, str]]:
    """Build Authorization headers for a given user id."""

    def _headers(user_id: str) -> dict[str, str]:
        token, _ = create_access_token(user_id)
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def alice() -> str:
    return new_anonymous_user_id()


@pytest.fixture
def bob() -> str:
    return new_anonymous_user_id()


# ===========================================
# HTTP CLIENT FIXTURES
# ===========================================


@pytest_asyncio.fixture
async def async_client(
    monkeypatch: pytest.MonkeyPatch,
    memory_store: InMemoryChallengeStore,
    feed: InProcessChangeFeed,
) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for API testing, bound to this test's store and feed."""
    from betboard.main import create_app

    monkeypatch.setattr(dependencies, "_memory_store", memory_store)
    app = create_app()
    app.dependency_overrides[dependencies.get_feed] = lambda: feed

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
