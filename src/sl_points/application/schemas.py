"""Pydantic schemas for sl_points API."""

from pydantic import BaseModel


class BalanceResponse(BaseModel):
    user_id: str
    points: int


class PointEntryItem(BaseModel):
    id: int
    entry_type: str
    amount: int
    balance_after: int
    booking_id: int | None
    created_at: str  # ISO8601 string


class PointLedgerResponse(BaseModel):
    items: list[PointEntryItem]
    next_cursor: str | None
    has_more: bool
