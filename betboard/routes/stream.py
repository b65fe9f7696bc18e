"""Server-Sent Events endpoints for live challenge updates.

Each connection gets a ``snapshot`` event right away and another one after
every change to the watched records, plus a ``ping`` every 30 seconds of
silence. No auth required; a Bearer token only adds the caller's own bet
to challenge snapshots.
"""

from __future__ import annotations

import json
from typing import Any, AsyncGenerator, Awaitable, Callable
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sse_starlette.sse import EventSourceResponse

from betboard.auth import get_current_user_id
from betboard.dependencies import get_feed, open_store
from betboard.exceptions import LifecycleError, raise_http_exception
from betboard.logging_config import get_logger
from betboard.schemas import ChallengeDetailResponse, ChallengeResponse
from betboard.services.event_service import (
    CHALLENGES_TOPIC,
    ChangeFeed,
    challenge_topic,
    watch,
)
from betboard.services.lifecycle_service import MAX_PAGE_SIZE, LifecycleService

logger = get_logger(__name__)
router = APIRouter(prefix="/api/challenges", tags=["stream"])

KEEPALIVE_SECONDS = 30.0


async def _event_generator(
    request: Request,
    feed: ChangeFeed,
    topic: str,
    load_snapshot: Callable[[], Awaitable[Any]],
) -> AsyncGenerator[dict[str, str], None]:
    """Translate ``watch`` output into sse-starlette event dicts."""
    logger.info("stream_opened", topic=topic)
    snapshots = watch(feed, topic, load_snapshot, idle_timeout=KEEPALIVE_SECONDS)
    try:
        async for snapshot in snapshots:
            if await request.is_disconnected():
                break
            if snapshot is None:
                yield {"event": "ping", "data": json.dumps({"topic": topic})}
                continue
            yield {"event": "snapshot", "data": json.dumps(snapshot, default=str)}
    finally:
        await snapshots.aclose()
        logger.info("stream_closed", topic=topic)


@router.get("/stream")
async def stream_challenges(
    request: Request,
    status: str | None = Query(None),
    creator_id: str | None = None,
    limit: int = Query(50, ge=1, le=MAX_PAGE_SIZE),
    feed: ChangeFeed = Depends(get_feed),
):
    """Stream the challenge list, newest first, whenever it changes."""

    async def load() -> dict:
        async with open_store() as store:
            challenges, total = await LifecycleService(store).list_challenges(
                status=status, creator_id=creator_id, limit=limit
            )
        return {
            "items": [ChallengeResponse.model_validate(c).model_dump(mode="json") for c in challenges],
            "total": total,
        }

    # Surface filter errors as a plain HTTP error before the stream starts.
    try:
        await load()
    except LifecycleError as e:
        raise_http_exception(e)

    return EventSourceResponse(_event_generator(request, feed, CHALLENGES_TOPIC, load))


@router.get("/{challenge_id}/stream")
async def stream_challenge(
    request: Request,
    challenge_id: UUID,
    user_id: str | None = Depends(get_current_user_id),
    feed: ChangeFeed = Depends(get_feed),
):
    """Stream one challenge with its tally and the caller's bet."""

    async def load() -> dict:
        async with open_store() as store:
            snapshot = await LifecycleService(store).get_snapshot(challenge_id, user_id)
        return ChallengeDetailResponse.from_snapshot(snapshot, user_id).model_dump(mode="json")

    try:
        await load()
    except LifecycleError as e:
        raise_http_exception(e)

    return EventSourceResponse(
        _event_generator(request, feed, challenge_topic(challenge_id), load)
    )
