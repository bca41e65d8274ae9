"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class BookingStatus(str, Enum):
    ACTIVE = "active"
    CANCELED = "canceled"
    COMPLETED = "completed"  # set only by the out-of-band scheduler


class PointEntryType(str, Enum):
    # Opening balance
    GRANT = "GRANT"
    # Reserve (booker + owner paired)
    BOOKING_DEBIT = "BOOKING_DEBIT"
    BOOKING_CREDIT = "BOOKING_CREDIT"
    # Cancel / cascade (booker + owner paired, owner side may be absent)
    REFUND_CREDIT = "REFUND_CREDIT"
    REFUND_DEBIT = "REFUND_DEBIT"
