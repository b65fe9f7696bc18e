"""Abstract durable store for challenges and bets.

A store is the only place challenge and bet state lives. The lifecycle
service never keeps its own copy; it reads through the store and performs
every check-then-write inside ``lock_challenge``.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from uuid import UUID

from betboard.base import BetRecord, BetTally, ChallengeRecord, ChallengeStatus


class ChallengeStore(ABC):
    """Storage interface used by the lifecycle service.

    Implementations must guarantee:
        - ``lock_challenge`` excludes every other ``lock_challenge`` holder for
          the same challenge id until the context exits, and writes made inside
          it become visible atomically on exit.
        - ``add_bet`` raises ``DuplicateBetError`` rather than storing a second
          bet for the same (challenge_id, bettor_id).
        - ``compare_and_set_status`` only writes when the stored status equals
          ``expected``.
    """

    @abstractmethod
    async def add_challenge(self, challenge: ChallengeRecord) -> ChallengeRecord:
        """Persist a new challenge and return the stored record."""

    @abstractmethod
    async def get_challenge(self, challenge_id: UUID) -> ChallengeRecord | None:
        """Return the challenge or None."""

    @abstractmethod
    async def list_challenges(
        self,
        status: ChallengeStatus | None = None,
        creator_id: str | None = None,
        offset: int = 0,
        limit: int = 20,
    ) -> tuple[list[ChallengeRecord], int]:
        """Return a page of challenges (newest first) and the total match count."""

    @abstractmethod
    def lock_challenge(
        self, challenge_id: UUID
    ) -> AbstractAsyncContextManager[ChallengeRecord | None]:
        """Hold the exclusive per-challenge lock, yielding the current record."""

    @abstractmethod
    async def compare_and_set_status(
        self,
        challenge_id: UUID,
        expected: ChallengeStatus,
        new: ChallengeStatus,
    ) -> ChallengeRecord | None:
        """Set ``new`` if the current status is ``expected``; None if it was not."""

    @abstractmethod
    async def add_bet(self, bet: BetRecord) -> BetRecord:
        """Persist a bet. Raises DuplicateBetError on a (challenge, bettor) clash."""

    @abstractmethod
    async def get_bet(self, challenge_id: UUID, bettor_id: str) -> BetRecord | None:
        """Return the bettor's bet on the challenge, if any."""

    @abstractmethod
    async def list_bets(self, challenge_id: UUID) -> list[BetRecord]:
        """Return all bets on a challenge, oldest first."""

    @abstractmethod
    async def list_bets_by_bettor(self, bettor_id: str) -> list[BetRecord]:
        """Return all bets placed by one user, newest first."""

    @abstractmethod
    async def count_bets(self, challenge_id: UUID) -> BetTally:
        """Count bets on a challenge grouped by prediction."""
