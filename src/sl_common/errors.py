"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Authorization
  2xxx: Not found
  3xxx: Booking / points validation
  9xxx: System
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


# --- 1xxx: Authorization ---

class NotAuthorizedError(AppError):
    def __init__(self, detail: str = "Not authorized to act on this resource") -> None:
        super().__init__(1001, detail, 403)


# --- 2xxx: Not found ---

class NotFoundError(AppError):
    """Booking, spot or balance absent. Terminal, never retried."""


class SpotNotFoundError(NotFoundError):
    def __init__(self, spot_id: str) -> None:
        super().__init__(2001, f"Parking spot not found: {spot_id}", 404)


class BookingNotFoundError(NotFoundError):
    def __init__(self, booking_id: int | str) -> None:
        super().__init__(2002, f"Booking not found: {booking_id}", 404)


class BalanceNotFoundError(NotFoundError):
    def __init__(self, user_id: str) -> None:
        super().__init__(2003, f"Points balance not found for user {user_id}", 404)


class AccountClosedError(NotFoundError):
    """The principal's account was purged. Its balance is never reopened."""

    def __init__(self) -> None:
        super().__init__(2004, "Account has been deleted", 404)


# --- 3xxx: Booking / points validation ---

class SelfBookingError(AppError):
    def __init__(self) -> None:
        super().__init__(3001, "You cannot book your own spot", 422)


class SpotUnavailableError(AppError):
    def __init__(self, spot_id: str) -> None:
        super().__init__(3002, f"Parking spot is already booked: {spot_id}", 409)


class DuplicateBookingError(AppError):
    def __init__(self, spot_id: str) -> None:
        super().__init__(3003, f"You already hold an active booking for spot {spot_id}", 409)


class InsufficientPointsError(AppError):
    def __init__(self, user_id: str, required: int, available: int) -> None:
        super().__init__(
            3004,
            f"Insufficient Park Points for user {user_id}: "
            f"required {required}, available {available}",
            422,
        )


class RefundUnavailableError(AppError):
    def __init__(self) -> None:
        super().__init__(
            3006,
            "This booking cannot be canceled right now: the spot owner cannot return the points",
            422,
        )


class AlreadyCanceledError(AppError):
    def __init__(self, booking_id: int | str, status: str = "canceled") -> None:
        super().__init__(3005, f"Booking {booking_id} is already {status}", 409)


# --- 9xxx: System ---

class TransientStoreError(AppError):
    """Transaction conflict or store unavailability. Safe for the caller to retry."""

    def __init__(self, detail: str = "Store temporarily unavailable, retry later") -> None:
        super().__init__(9001, detail, 503)


class ValidationError(AppError):
    def __init__(self, detail: str) -> None:
        super().__init__(9002, detail, 422)


class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9003, detail, 500)
