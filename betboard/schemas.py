"""Pydantic v2 request/response schemas for all endpoints."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StrictBool

from betboard.base import BetTally, ChallengeSnapshot, ChallengeStatus


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class AnonymousSessionResponse(BaseModel):
    user_id: str
    access_token: str
    token_type: str = "bearer"
    expires_at: datetime


class CurrentUserResponse(BaseModel):
    user_id: str


# ---------------------------------------------------------------------------
# Challenges
# ---------------------------------------------------------------------------


class ChallengeCreate(BaseModel):
    # Emptiness and length are checked by the lifecycle service (400, not 422).
    title: str
    description: str
    media_ref: str | None = Field(default=None, max_length=2048)


class ChallengeResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    creator_id: str
    title: str
    description: str
    media_ref: str | None
    status: ChallengeStatus
    created_at: datetime
    finalized_at: datetime | None = None


class FinalizeRequest(BaseModel):
    outcome: str = Field(..., description="completed or failed")


class TallyResponse(BaseModel):
    challenge_id: UUID
    success_count: int
    failure_count: int
    total: int

    @classmethod
    def from_tally(cls, challenge_id: UUID, tally: BetTally) -> "TallyResponse":
        return cls(
            challenge_id=challenge_id,
            success_count=tally.success_count,
            failure_count=tally.failure_count,
            total=tally.total,
        )


# ---------------------------------------------------------------------------
# Bets
# ---------------------------------------------------------------------------


class BetCreate(BaseModel):
    prediction: StrictBool = Field(..., description="true = the challenge will succeed")


class BetResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    challenge_id: UUID
    bettor_id: str
    prediction: bool
    created_at: datetime


class ChallengeDetailResponse(BaseModel):
    challenge: ChallengeResponse
    tally: TallyResponse
    my_bet: BetResponse | None = None
    can_bet: bool = False
    can_finalize: bool = False

    @classmethod
    def from_snapshot(
        cls, snapshot: ChallengeSnapshot, user_id: str | None
    ) -> "ChallengeDetailResponse":
        challenge = snapshot.challenge
        return cls(
            challenge=ChallengeResponse.model_validate(challenge),
            tally=TallyResponse.from_tally(challenge.id, snapshot.tally),
            my_bet=BetResponse.model_validate(snapshot.user_bet) if snapshot.user_bet else None,
            can_bet=bool(user_id) and challenge.is_open and snapshot.user_bet is None,
            can_finalize=bool(user_id) and challenge.is_open and challenge.creator_id == user_id,
        )


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------


class PaginatedResponse(BaseModel):
    items: list
    total: int
    page: int
    per_page: int
