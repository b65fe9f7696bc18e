"""Unit tests for lifecycle exceptions and their HTTP mapping."""

import pytest
from fastapi import HTTPException

from betboard.exceptions import (
    STATUS_MAP,
    AlreadyFinalizedError,
    ClosedError,
    DuplicateBetError,
    LifecycleError,
    NotFoundError,
    UnauthenticatedError,
    UnauthorizedError,
    ValidationError,
    raise_http_exception,
)


@pytest.mark.parametrize(
    "error, expected_status",
    [
        (ValidationError("Title must not be empty", field="title"), 400),
        (UnauthenticatedError("place a bet"), 401),
        (UnauthorizedError("u-1", "finalize this challenge"), 403),
        (NotFoundError("abc"), 404),
        (ClosedError("abc", "completed"), 409),
        (AlreadyFinalizedError("abc", "failed"), 409),
        (DuplicateBetError("abc", "u-1"), 409),
        (LifecycleError("boom"), 500),
    ],
)
def test_raise_http_exception_status(error, expected_status):
    with pytest.raises(HTTPException) as exc_info:
        raise_http_exception(error)
    assert exc_info.value.status_code == expected_status
    assert exc_info.value.detail["status"] == expected_status
    assert exc_info.value.detail["detail"] == error.message
    assert exc_info.value.__cause__ is error


def test_problem_details_shape():
    with pytest.raises(HTTPException) as exc_info:
        raise_http_exception(DuplicateBetError("abc", "u-1"))
    detail = exc_info.value.detail
    assert detail["type"] == "https://betboard.app/errors/duplicate_bet"
    assert detail["title"] == "Duplicate Bet"


def test_unauthenticated_sets_www_authenticate():
    with pytest.raises(HTTPException) as exc_info:
        raise_http_exception(UnauthenticatedError("finalize a challenge"))
    assert exc_info.value.headers == {"WWW-Authenticate": "Bearer"}


def test_every_error_type_is_mapped():
    for error in [
        ValidationError("x"),
        UnauthenticatedError("x"),
        UnauthorizedError("u", "x"),
        NotFoundError("x"),
        ClosedError("x", "failed"),
        AlreadyFinalizedError("x", "failed"),
        DuplicateBetError("x", "u"),
    ]:
        assert error.error_type in STATUS_MAP


def test_validation_error_keeps_field():
    error = ValidationError("Description must not be empty", field="description")
    assert error.field == "description"
    assert isinstance(error, LifecycleError)
