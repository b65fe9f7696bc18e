"""Bets across challenges for the current user."""

from fastapi import APIRouter, Depends

from betboard.auth import get_current_user_id
from betboard.dependencies import get_lifecycle_service
from betboard.exceptions import LifecycleError, raise_http_exception
from betboard.schemas import BetResponse
from betboard.services.lifecycle_service import LifecycleService

router = APIRouter(prefix="/api/bets", tags=["bets"])


@router.get("/me", response_model=list[BetResponse])
async def list_my_bets(
    user_id: str | None = Depends(get_current_user_id),
    service: LifecycleService = Depends(get_lifecycle_service),
):
    """Every bet the caller has placed, newest first."""
    try:
        bets = await service.list_user_bets(user_id)
    except LifecycleError as e:
        raise_http_exception(e)
    return [BetResponse.model_validate(b) for b in bets]
