"""Core data structures shared by the stores and the lifecycle service."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from uuid import UUID, uuid4


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ChallengeStatus(str, Enum):
    """Status of a challenge."""

    OPEN = "open"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ChallengeRecord:
    """A posted challenge with a binary eventual outcome."""

    creator_id: str
    title: str
    description: str
    media_ref: str | None = None
    status: ChallengeStatus = ChallengeStatus.OPEN
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)
    finalized_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.status == ChallengeStatus.OPEN


@dataclass(frozen=True)
class BetRecord:
    """One user's prediction on one challenge. Immutable once placed."""

    challenge_id: UUID
    bettor_id: str
    prediction: bool
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)


@dataclass(frozen=True)
class BetTally:
    """Bet counts grouped by prediction."""

    success_count: int = 0
    failure_count: int = 0

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count


@dataclass(frozen=True)
class ChallengeSnapshot:
    """Everything a detail view needs about one challenge, read together."""

    challenge: ChallengeRecord
    tally: BetTally
    user_bet: BetRecord | None = None
