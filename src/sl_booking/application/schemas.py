"""Pydantic schemas for sl_booking API."""
from pydantic import BaseModel, Field


class ReserveRequest(BaseModel):
    spot_id: str = Field(..., min_length=1, max_length=64)


class SnapshotResponse(BaseModel):
    price: int
    owner_id: str
    address: str


class BookingResponse(BaseModel):
    id: int
    user_id: str
    spot_id: str
    status: str
    snapshot: SnapshotResponse
    created_at: str | None
    canceled_at: str | None


class BookingListResponse(BaseModel):
    bookings: list[BookingResponse]


class BookingHistoryResponse(BaseModel):
    items: list[BookingResponse]
    next_cursor: str | None
    has_more: bool
