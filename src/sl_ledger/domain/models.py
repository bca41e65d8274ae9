"""Result types of ledger operations that do not return a booking."""
from dataclasses import dataclass


@dataclass
class PurgeResult:
    user_id: str
    spots_deleted: int = 0
    bookings_refunded: int = 0   # step 1: bookings on the user's spots, booker refunded
    bookings_released: int = 0   # step 2: bookings the user held, owner debited
    balance_deleted: bool = False


@dataclass
class WithdrawResult:
    spot_id: str
    bookings_refunded: int = 0
