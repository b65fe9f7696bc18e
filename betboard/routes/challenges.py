"""Challenge endpoints: create, list, detail, bet, finalize, tally."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query

from betboard.auth import get_current_user_id
from betboard.dependencies import get_lifecycle_service
from betboard.exceptions import LifecycleError, raise_http_exception
from betboard.logging_config import get_logger
from betboard.schemas import (
    BetCreate,
    BetResponse,
    ChallengeCreate,
    ChallengeDetailResponse,
    ChallengeResponse,
    FinalizeRequest,
    PaginatedResponse,
    TallyResponse,
)
from betboard.services.lifecycle_service import MAX_PAGE_SIZE, LifecycleService

logger = get_logger(__name__)
router = APIRouter(prefix="/api/challenges", tags=["challenges"])


@router.post("", response_model=ChallengeResponse, status_code=201)
async def create_challenge(
    body: ChallengeCreate,
    user_id: str | None = Depends(get_current_user_id),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """Post a new challenge. The caller becomes its creator."""
    try:
        challenge = await service.create_challenge(
            creator_id=user_id,
            title=body.title,
            description=body.description,
            media_ref=body.media_ref,
        )
    except LifecycleError as e:
        raise_http_exception(e)
    return ChallengeResponse.model_validate(challenge)


@router.get("", response_model=PaginatedResponse)
async def list_challenges(
    status: str | None = Query(None, description="open, completed or failed"),
    creator_id: str | None = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=MAX_PAGE_SIZE),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """List challenges, newest first."""
    try:
        challenges, total = await service.list_challenges(
            status=status,
            creator_id=creator_id,
            offset=(page - 1) * per_page,
            limit=per_page,
        )
    except LifecycleError as e:
        raise_http_exception(e)

    return PaginatedResponse(
        items=[ChallengeResponse.model_validate(c) for c in challenges],
        total=total,
        page=page,
        per_page=per_page,
    )


@router.get("/{challenge_id}", response_model=ChallengeDetailResponse)
async def get_challenge(
    challenge_id: UUID,
    user_id: str | None = Depends(get_current_user_id),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """Challenge detail with tally and the caller's own bet."""
    try:
        snapshot = await service.get_snapshot(challenge_id, user_id)
    except LifecycleError as e:
        raise_http_exception(e)
    return ChallengeDetailResponse.from_snapshot(snapshot, user_id)


@router.post("/{challenge_id}/bets", response_model=BetResponse, status_code=201)
async def place_bet(
    challenge_id: UUID,
    body: BetCreate,
    user_id: str | None = Depends(get_current_user_id),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """Place the caller's single bet on an open challenge."""
    try:
        bet = await service.place_bet(challenge_id, user_id, body.prediction)
    except LifecycleError as e:
        raise_http_exception(e)
    return BetResponse.model_validate(bet)


@router.get("/{challenge_id}/bets", response_model=list[BetResponse])
async def list_bets(
    challenge_id: UUID,
    service: LifecycleService = Depends(get_lifecycle_service),
):
    try:
        bets = await service.list_bets(challenge_id)
    except LifecycleError as e:
        raise_http_exception(e)
    return [BetResponse.model_validate(b) for b in bets]


@router.get("/{challenge_id}/bets/me", response_model=BetResponse | None)
async def get_my_bet(
    challenge_id: UUID,
    user_id: str | None = Depends(get_current_user_id),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """The caller's bet on this challenge, or null."""
    try:
        bet = await service.user_bet(challenge_id, user_id)
    except LifecycleError as e:
        raise_http_exception(e)
    return BetResponse.model_validate(bet) if bet else None


@router.post("/{challenge_id}/finalize", response_model=ChallengeResponse)
async def finalize_challenge(
    challenge_id: UUID,
    body: FinalizeRequest,
    user_id: str | None = Depends(get_current_user_id),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """Declare the outcome. Only the creator may call this, once."""
    try:
        challenge = await service.finalize_challenge(challenge_id, user_id, body.outcome)
    except LifecycleError as e:
        raise_http_exception(e)
    return ChallengeResponse.model_validate(challenge)


@router.get("/{challenge_id}/tally", response_model=TallyResponse)
async def get_tally(
    challenge_id: UUID,
    service: LifecycleService = Depends(get_lifecycle_service),
):
    try:
        tally = await service.tally(challenge_id)
    except LifecycleError as e:
        raise_http_exception(e)
    return TallyResponse.from_tally(challenge_id, tally)
