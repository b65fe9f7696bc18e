"""Process-local challenge store.

Keeps everything in dicts and serializes writes per challenge with
``asyncio.Lock``. State is lost on restart and is not shared between
worker processes, so this backend is meant for development and tests.
"""

import asyncio
from collections import defaultdict
from contextlib import asynccontextmanager
from dataclasses import replace
from typing import AsyncIterator
from uuid import UUID

from betboard.base import BetRecord, BetTally, ChallengeRecord, ChallengeStatus, utcnow
from betboard.exceptions import DuplicateBetError
from betboard.logging_config import get_logger
from betboard.stores.base import ChallengeStore

logger = get_logger(__name__)


class InMemoryChallengeStore(ChallengeStore):
    """Dict-backed store with per-challenge asyncio locks."""

    def __init__(self) -> None:
        self._challenges: dict[UUID, ChallengeRecord] = {}
        self._bets: dict[tuple[UUID, str], BetRecord] = {}
        self._locks: defaultdict[UUID, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def add_challenge(self, challenge: ChallengeRecord) -> ChallengeRecord:
        self._challenges[challenge.id] = replace(challenge)
        return replace(challenge)

    async def get_challenge(self, challenge_id: UUID) -> ChallengeRecord | None:
        challenge = self._challenges.get(challenge_id)
        return replace(challenge) if challenge else None

    async def list_challenges(
        self,
        status: ChallengeStatus | None = None,
        creator_id: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[ChallengeRecord], int]:
        matches = [
            c
            for c in self._challenges.values()
            if (status is None or c.status == status)
            and (creator_id is None or c.creator_id == creator_id)
        ]
        matches.sort(key=lambda c: c.created_at, reverse=True)
        page = matches[offset : offset + limit]
        return [replace(c) for c in page], len(matches)

    @asynccontextmanager
    async def lock_challenge(self, challenge_id: UUID) -> AsyncIterator[ChallengeRecord | None]:
        if challenge_id not in self._challenges:
            yield None
            return
        async with self._locks[challenge_id]:
            yield replace(self._challenges[challenge_id])

    async def compare_and_set_status(
        self,
        challenge_id: UUID,
        expected: ChallengeStatus,
        new: ChallengeStatus,
    ) -> ChallengeRecord | None:
        challenge = self._challenges.get(challenge_id)
        if challenge is None or challenge.status != expected:
            return None
        challenge.status = new
        challenge.finalized_at = utcnow() if new != ChallengeStatus.OPEN else None
        return replace(challenge)

    async def add_bet(self, bet: BetRecord) -> BetRecord:
        key = (bet.challenge_id, bet.bettor_id)
        if key in self._bets:
            raise DuplicateBetError(str(bet.challenge_id), bet.bettor_id)
        self._bets[key] = bet
        return bet

    async def get_bet(self, challenge_id: UUID, bettor_id: str) -> BetRecord | None:
        return self._bets.get((challenge_id, bettor_id))

    async def list_bets(self, challenge_id: UUID) -> list[BetRecord]:
        bets = [b for b in self._bets.values() if b.challenge_id == challenge_id]
        return sorted(bets, key=lambda b: b.created_at)

    async def list_bets_by_bettor(self, bettor_id: str) -> list[BetRecord]:
        bets = [b for b in self._bets.values() if b.bettor_id == bettor_id]
        return sorted(bets, key=lambda b: b.created_at, reverse=True)

    async def count_bets(self, challenge_id: UUID) -> BetTally:
        success = failure = 0
        for bet in self._bets.values():
            if bet.challenge_id != challenge_id:
                continue
            if bet.prediction:
                success += 1
            else:
                failure += 1
        return BetTally(success_count=success, failure_count=failure)

    def clear(self) -> None:
        """Drop all state."""
        self._challenges.clear()
        self._bets.clear()
        self._locks.clear()
        logger.debug("memory_store_cleared")
