"""Unit tests for error codes and HTTP status mapping."""

import pytest

from src.sl_common.errors import (
    AccountClosedError,
    AlreadyCanceledError,
    AppError,
    BalanceNotFoundError,
    BookingNotFoundError,
    DuplicateBookingError,
    InsufficientPointsError,
    InternalError,
    NotAuthorizedError,
    NotFoundError,
    RefundUnavailableError,
    SelfBookingError,
    SpotNotFoundError,
    SpotUnavailableError,
    TransientStoreError,
    ValidationError,
)


@pytest.mark.parametrize(
    ("error", "code", "status"),
    [
        (NotAuthorizedError(), 1001, 403),
        (SpotNotFoundError("s1"), 2001, 404),
        (BookingNotFoundError(7), 2002, 404),
        (BalanceNotFoundError("u1"), 2003, 404),
        (AccountClosedError(), 2004, 404),
        (SelfBookingError(), 3001, 422),
        (SpotUnavailableError("s1"), 3002, 409),
        (DuplicateBookingError("s1"), 3003, 409),
        (InsufficientPointsError("u1", 30, 10), 3004, 422),
        (AlreadyCanceledError(7), 3005, 409),
        (RefundUnavailableError(), 3006, 422),
        (TransientStoreError(), 9001, 503),
        (ValidationError("bad"), 9002, 422),
        (InternalError(), 9003, 500),
    ],
)
def test_codes_and_statuses(error: AppError, code: int, status: int) -> None:
    assert isinstance(error, AppError)
    assert error.code == code
    assert error.http_status == status


def test_not_found_family() -> None:
    for err in (
        SpotNotFoundError("s"),
        BookingNotFoundError(1),
        BalanceNotFoundError("u"),
        AccountClosedError(),
    ):
        assert isinstance(err, NotFoundError)


def test_messages_carry_context() -> None:
    assert "required 30, available 10" in InsufficientPointsError("u1", 30, 10).message
    assert AlreadyCanceledError(7, "completed").message == "Booking 7 is already completed"
    assert str(SpotNotFoundError("s1")) == "Parking spot not found: s1"


def test_refund_unavailable_hides_owner_details() -> None:
    message = RefundUnavailableError().message
    assert "owner" in message
    assert not any(ch.isdigit() for ch in message)
