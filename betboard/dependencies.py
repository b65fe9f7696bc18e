"""FastAPI dependencies shared by the routers."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator

from fastapi import Depends

from betboard.config import get_settings
from betboard.database import get_db_session
from betboard.logging_config import get_logger
from betboard.redis import get_redis_optional
from betboard.services.event_service import ChangeFeed, get_change_feed
from betboard.services.lifecycle_service import LifecycleService
from betboard.stores import STORE_BACKENDS, ChallengeStore, InMemoryChallengeStore, SqlChallengeStore

logger = get_logger(__name__)

_memory_store: InMemoryChallengeStore | None = None


def get_memory_store() -> InMemoryChallengeStore:
    """Process-wide store used when BETBOARD_STORE_BACKEND=memory."""
    global _memory_store
    if _memory_store is None:
        _memory_store = InMemoryChallengeStore()
        logger.warning("memory_store_initialized", persisted=False)
    return _memory_store


def validate_store_backend(backend: str) -> str:
    backend = backend.lower()
    if backend not in STORE_BACKENDS:
        raise RuntimeError(f"Invalid BETBOARD_STORE_BACKEND={backend}")
    return backend


@asynccontextmanager
async def open_store() -> AsyncIterator[ChallengeStore]:
    """Open the configured store for one unit of work."""
    backend = validate_store_backend(get_settings().store_backend)
    if backend == "memory":
        yield get_memory_store()
        return

    async with get_db_session() as session:
        yield SqlChallengeStore(session)


async def get_store() -> AsyncGenerator[ChallengeStore, None]:
    """Yield the configured store; SQL stores get a fresh session per request."""
    async with open_store() as store:
        yield store


def get_feed() -> ChangeFeed:
    """The change feed, backed by Redis when it was initialized at startup."""
    return get_change_feed(get_redis_optional())


async def get_lifecycle_service(
    store: ChallengeStore = Depends(get_store),
    feed: ChangeFeed = Depends(get_feed),
) -> LifecycleService:
    return LifecycleService(store, feed=feed)
