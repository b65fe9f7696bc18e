"""Change feed: publish change events after writes, let readers watch snapshots.

Two transports share one interface:

- ``RedisChangeFeed`` fans events out through Redis pub/sub, so every worker
  process sees every write.
- ``InProcessChangeFeed`` fans events out to per-subscriber queues inside
  this process. Used when no Redis URL is configured.

``watch`` turns either feed into the "current record set whenever it
changes" primitive that the SSE endpoints stream.
"""

from __future__ import annotations

import asyncio
import json
from abc import ABC, abstractmethod
from collections import defaultdict
from contextlib import asynccontextmanager
from dataclasses import asdict, dataclass, field
from typing import Any, AsyncIterator, Awaitable, Callable, TypeVar
from uuid import UUID

from betboard.base import utcnow
from betboard.logging_config import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

CHALLENGES_TOPIC = "challenges"
_MAX_QUEUE_SIZE = 100


def challenge_topic(challenge_id: UUID | str) -> str:
    return f"challenge:{challenge_id}"


@dataclass(frozen=True)
class ChangeEvent:
    topic: str
    event_type: str
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: str = field(default_factory=lambda: utcnow().isoformat())

    def to_json(self) -> str:
        return json.dumps(asdict(self), default=str)

    @classmethod
    def from_json(cls, raw: str | bytes) -> "ChangeEvent":
        data = json.loads(raw)
        return cls(
            topic=data["topic"],
            event_type=data["event_type"],
            payload=data.get("payload") or {},
            timestamp=data.get("timestamp", ""),
        )


class Subscription(ABC):
    """A live subscription to one topic."""

    @abstractmethod
    async def next_event(self, timeout: float) -> ChangeEvent | None:
        """Wait up to ``timeout`` seconds for the next event; None on timeout."""


class ChangeFeed(ABC):
    """Publish/subscribe transport for change events."""

    @abstractmethod
    async def _send(self, event: ChangeEvent) -> None:
        ...

    @abstractmethod
    def subscribe(self, topic: str) -> Any:
        """Async context manager yielding a ``Subscription``."""

    async def publish(self, topic: str, event_type: str, payload: dict[str, Any] | None = None) -> None:
        """Publish a change event. Transport failures are logged, never raised."""
        event = ChangeEvent(topic=topic, event_type=event_type, payload=payload or {})
        try:
            await self._send(event)
        except Exception as e:
            logger.warning("change_publish_failed", topic=topic, event_type=event_type, error=str(e))
            return
        logger.debug("change_published", topic=topic, event_type=event_type)


# ---------------------------------------------------------------------------
# In-process transport
# ---------------------------------------------------------------------------


class _QueueSubscription(Subscription):
    def __init__(self, queue: asyncio.Queue[ChangeEvent]):
        self.queue = queue

    async def next_event(self, timeout: float) -> ChangeEvent | None:
        try:
            return await asyncio.wait_for(self.queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None


class InProcessChangeFeed(ChangeFeed):
    """Fan-out to one bounded queue per subscriber. Oldest event dropped when full."""

    def __init__(self, max_queue_size: int = _MAX_QUEUE_SIZE):
        self.max_queue_size = max_queue_size
        self._subscribers: defaultdict[str, set[asyncio.Queue[ChangeEvent]]] = defaultdict(set)

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, ()))

    async def _send(self, event: ChangeEvent) -> None:
        for queue in list(self._subscribers.get(event.topic, ())):
            if queue.full():
                try:
                    queue.get_nowait()
                except asyncio.QueueEmpty:
                    pass
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning("change_queue_full", topic=event.topic)

    @asynccontextmanager
    async def subscribe(self, topic: str) -> AsyncIterator[Subscription]:
        queue: asyncio.Queue[ChangeEvent] = asyncio.Queue(maxsize=self.max_queue_size)
        self._subscribers[topic].add(queue)
        try:
            yield _QueueSubscription(queue)
        finally:
            self._subscribers[topic].discard(queue)
            if not self._subscribers[topic]:
                del self._subscribers[topic]


# ---------------------------------------------------------------------------
# Redis transport
# ---------------------------------------------------------------------------


class _RedisSubscription(Subscription):
    def __init__(self, pubsub):
        self.pubsub = pubsub

    async def next_event(self, timeout: float) -> ChangeEvent | None:
        message = await self.pubsub.get_message(ignore_subscribe_messages=True, timeout=timeout)
        if not message or message.get("type") != "message":
            return None
        try:
            return ChangeEvent.from_json(message["data"])
        except (json.JSONDecodeError, KeyError, TypeError):
            logger.warning("change_event_undecodable", channel=message.get("channel"))
            return None


class RedisChangeFeed(ChangeFeed):
    """Redis pub/sub transport; channel name is ``betboard:<topic>``."""

    def __init__(self, redis):
        self.redis = redis

    @staticmethod
    def channel(topic: str) -> str:
        return f"betboard:{topic}"

    async def _send(self, event: ChangeEvent) -> None:
        await self.redis.publish(self.channel(event.topic), event.to_json())

    @asynccontextmanager
    async def subscribe(self, topic: str) -> AsyncIterator[Subscription]:
        channel = self.channel(topic)
        pubsub = self.redis.pubsub()
        await pubsub.subscribe(channel)
        try:
            yield _RedisSubscription(pubsub)
        finally:
            await pubsub.unsubscribe(channel)
            await pubsub.aclose()


_in_process_feed = InProcessChangeFeed()


def get_change_feed(redis=None) -> ChangeFeed:
    """Redis transport when a connection is available, else the process-wide queue feed."""
    if redis is not None:
        return RedisChangeFeed(redis)
    return _in_process_feed


# ---------------------------------------------------------------------------
# Snapshot watching
# ---------------------------------------------------------------------------


async def watch(
    feed: ChangeFeed,
    topic: str,
    load_snapshot: Callable[[], Awaitable[T]],
    idle_timeout: float = 30.0,
) -> AsyncIterator[T | None]:
    """Yield the current snapshot now and again after every change on ``topic``.

    Yields None when ``idle_timeout`` passes without a change so callers can
    emit keepalives. The subscription is opened before the first snapshot is
    loaded, so no change between the two is missed.
    """
    async with feed.subscribe(topic) as subscription:
        yield await load_snapshot()
        while True:
            event = await subscription.next_event(timeout=idle_timeout)
            if event is None:
                yield None
                continue
            logger.debug("snapshot_refresh", topic=topic, event_type=event.event_type)
            yield await load_snapshot()
