"""Domain models for sl_points — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Balance:
    user_id: str
    points: int              # Park Points, never negative
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class PointEntry:
    id: int                          # BIGSERIAL
    user_id: str
    entry_type: str                  # PointEntryType value
    amount: int                      # positive=credit negative=debit
    balance_after: int
    booking_id: int | None = None
    created_at: datetime | None = None
