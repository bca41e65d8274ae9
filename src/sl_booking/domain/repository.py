# src/sl_booking/domain/repository.py
"""BookingRepository Protocol — interface contract for the Booking Store."""
from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.sl_booking.domain.models import Booking, BookingSnapshot


class BookingRepositoryProtocol(Protocol):
    async def insert(
        self,
        db: AsyncSession,
        user_id: str,
        spot_id: str,
        snapshot: BookingSnapshot,
        created_at: datetime,
    ) -> Booking: ...

    async def get_by_id(
        self, db: AsyncSession, booking_id: int, for_update: bool = False
    ) -> Booking | None: ...

    async def find_active(
        self, db: AsyncSession, user_id: str, spot_id: str
    ) -> Booking | None: ...

    async def list_active_for_spot(
        self, db: AsyncSession, spot_id: str, for_update: bool = False
    ) -> list[Booking]: ...

    async def list_active_for_user(
        self, db: AsyncSession, user_id: str
    ) -> list[Booking]: ...

    async def mark_canceled(
        self, db: AsyncSession, booking_id: int, canceled_at: datetime
    ) -> Booking | None: ...

    async def list_history(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
    ) -> list[Booking]: ...

    async def list_not_canceled(
        self, db: AsyncSession, user_id: str
    ) -> list[Booking]: ...
