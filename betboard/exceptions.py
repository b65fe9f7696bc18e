"""Custom exceptions for the challenge lifecycle."""

from fastapi import HTTPException, status


class LifecycleError(Exception):
    """Base exception for lifecycle service errors."""

    def __init__(self, message: str, error_type: str = "lifecycle_error"):
        self.message = message
        self.error_type = error_type
        super().__init__(message)


class ValidationError(LifecycleError):
    """Raised when challenge or bet input is invalid."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message, "validation_error")
        self.field = field


class UnauthenticatedError(LifecycleError):
    """Raised when an action requires an identity and none was supplied."""

    def __init__(self, action: str):
        super().__init__(f"You must be signed in to {action}", "unauthenticated")
        self.action = action


class UnauthorizedError(LifecycleError):
    """Raised when the caller's identity does not permit the action."""

    def __init__(self, user_id: str, action: str):
        super().__init__(
            f"User {user_id} is not allowed to {action}",
            "unauthorized",
        )
        self.user_id = user_id
        self.action = action


class NotFoundError(LifecycleError):
    """Raised when a challenge is not found."""

    def __init__(self, challenge_id: str):
        super().__init__(
            f"Challenge '{challenge_id}' not found",
            "challenge_not_found",
        )
        self.challenge_id = challenge_id


class ClosedError(LifecycleError):
    """Raised when betting on a challenge that is no longer open."""

    def __init__(self, challenge_id: str, current_status: str):
        super().__init__(
            f"Challenge '{challenge_id}' is {current_status} and no longer accepts bets",
            "challenge_closed",
        )
        self.challenge_id = challenge_id
        self.current_status = current_status


class AlreadyFinalizedError(LifecycleError):
    """Raised when finalizing a challenge that already has an outcome."""

    def __init__(self, challenge_id: str, current_status: str):
        super().__init__(
            f"Challenge '{challenge_id}' was already finalized as {current_status}",
            "already_finalized",
        )
        self.challenge_id = challenge_id
        self.current_status = current_status


class DuplicateBetError(LifecycleError):
    """Raised when a user bets twice on the same challenge."""

    def __init__(self, challenge_id: str, bettor_id: str):
        super().__init__(
            f"User {bettor_id} has already placed a bet on challenge '{challenge_id}'",
            "duplicate_bet",
        )
        self.challenge_id = challenge_id
        self.bettor_id = bettor_id


STATUS_MAP: dict[str, int] = {
    "validation_error": status.HTTP_400_BAD_REQUEST,
    "unauthenticated": status.HTTP_401_UNAUTHORIZED,
    "unauthorized": status.HTTP_403_FORBIDDEN,
    "challenge_not_found": status.HTTP_404_NOT_FOUND,
    "challenge_closed": status.HTTP_409_CONFLICT,
    "already_finalized": status.HTTP_409_CONFLICT,
    "duplicate_bet": status.HTTP_409_CONFLICT,
    "lifecycle_error": status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def raise_http_exception(error: LifecycleError) -> None:
    """Convert LifecycleError to HTTPException."""
    status_code = STATUS_MAP.get(error.error_type, status.HTTP_500_INTERNAL_SERVER_ERROR)
    headers = {"WWW-Authenticate": "Bearer"} if status_code == status.HTTP_401_UNAUTHORIZED else None

    raise HTTPException(
        status_code=status_code,
        detail={
            "type": f"https://betboard.app/errors/{error.error_type}",
            "title": error.error_type.replace("_", " ").title(),
            "status": status_code,
            "detail": error.message,
        },
        headers=headers,
    ) from error
