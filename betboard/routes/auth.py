"""Anonymous session endpoints."""

from fastapi import APIRouter, Depends

from betboard.auth import create_access_token, get_current_user_id, new_anonymous_user_id
from betboard.exceptions import UnauthenticatedError, raise_http_exception
from betboard.logging_config import get_logger
from betboard.schemas import AnonymousSessionResponse, CurrentUserResponse

logger = get_logger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/anonymous", response_model=AnonymousSessionResponse, status_code=201)
async def create_anonymous_session():
    """Mint a new anonymous identity and a bearer token for it."""
    user_id = new_anonymous_user_id()
    token, expires_at = create_access_token(user_id)
    logger.info("anonymous_session_created", user_id=user_id)
    return AnonymousSessionResponse(user_id=user_id, access_token=token, expires_at=expires_at)


@router.get("/me", response_model=CurrentUserResponse)
async def get_me(user_id: str | None = Depends(get_current_user_id)):
    if not user_id:
        raise_http_exception(UnauthenticatedError("view your identity"))
    return CurrentUserResponse(user_id=user_id)
