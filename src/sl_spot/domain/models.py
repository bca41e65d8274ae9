"""Spot domain model — pure dataclass, no SQLAlchemy dependency."""
from dataclasses import dataclass
from datetime import datetime


@dataclass
class Spot:
    id: str
    owner_id: str
    address: str
    price: int  # Park Points per booking, > 0
    bookable: bool = True  # exclusive availability flag, owned by the ledger engine
    description: str = "No description provided"
    latitude: float = 0.0
    longitude: float = 0.0
    created_at: datetime | None = None
    updated_at: datetime | None = None
