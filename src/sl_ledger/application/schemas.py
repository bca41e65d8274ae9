"""Pydantic response schemas for account purge and the invariant audit."""
from pydantic import BaseModel


class PurgeResponse(BaseModel):
    user_id: str
    spots_deleted: int
    bookings_refunded: int
    bookings_released: int
    balance_deleted: bool


class InvariantReport(BaseModel):
    ok: bool
    violations: list[str]
