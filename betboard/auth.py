"""Anonymous identity: JWT issuance and the current-user dependency."""

import secrets
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import jwt
from fastapi import HTTPException, Request, status

from betboard.config import get_settings
from betboard.logging_config import get_logger

logger = get_logger(__name__)

ACCESS_TOKEN_TYPE = "access"


def _jwt_secret() -> str:
    secret = get_settings().jwt_secret_key
    if not secret:
        raise RuntimeError("BETBOARD_JWT_SECRET_KEY environment variable is required")
    return secret


def new_anonymous_user_id() -> str:
    """Mint a fresh opaque user identifier."""
    return str(uuid4())


def create_access_token(user_id: str) -> tuple[str, datetime]:
    """Create a JWT access token for a user. Returns (token, expires_at)."""
    settings = get_settings()
    expire = datetime.now(timezone.utc) + timedelta(
        minutes=settings.jwt_access_token_expire_minutes
    )
    payload = {
        "sub": user_id,
        "exp": expire,
        "type": ACCESS_TOKEN_TYPE,
        "jti": secrets.token_urlsafe(16),
    }
    token = jwt.encode(payload, _jwt_secret(), algorithm=settings.jwt_algorithm)
    return token, expire


def decode_jwt(token: str) -> dict:
    """Decode and validate a JWT token. Raises HTTPException on failure."""
    try:
        return jwt.decode(token, _jwt_secret(), algorithms=[get_settings().jwt_algorithm])
    except jwt.ExpiredSignatureError:
        logger.info("token_rejected", reason="expired")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token expired")
    except jwt.InvalidTokenError:
        logger.info("token_rejected", reason="invalid")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token")


async def get_current_user_id(request: Request) -> str | None:
    """
    FastAPI dependency: resolve the caller's user id from a Bearer token.

    Returns None when no Authorization header is sent, so the lifecycle
    service can decide whether the action needs an identity. A header that
    is present but invalid is always a 401.
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    if not auth_header.startswith("Bearer "):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Authorization header",
        )

    token = auth_header.removeprefix("Bearer ").strip()
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Empty token")

    payload = decode_jwt(token)
    if payload.get("type") != ACCESS_TOKEN_TYPE:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token type")

    user_id = payload.get("sub")
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token payload")

    request.state.user_id = user_id
    return user_id
