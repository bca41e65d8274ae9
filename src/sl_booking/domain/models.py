"""Booking domain model — pure dataclasses, no SQLAlchemy dependency."""
from dataclasses import dataclass
from datetime import datetime

from src.sl_common.enums import BookingStatus


@dataclass(frozen=True)
class BookingSnapshot:
    """Spot terms in force when the booking was made. Never rewritten."""

    price: int
    owner_id: str
    address: str


@dataclass
class Booking:
    id: int  # BIGSERIAL
    user_id: str
    spot_id: str  # may dangle once the spot is deleted
    snapshot: BookingSnapshot
    status: str = BookingStatus.ACTIVE.value
    created_at: datetime | None = None
    canceled_at: datetime | None = None

    @property
    def is_active(self) -> bool:
        return self.status == BookingStatus.ACTIVE.value
