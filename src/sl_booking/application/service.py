"""BookingApplicationService — Reserve/Cancel go through the LedgerEngine,
read paths go straight to the Booking Store."""
from sqlalchemy.ext.asyncio import AsyncSession

from src.sl_booking.application.schemas import (
    BookingHistoryResponse,
    BookingListResponse,
    BookingResponse,
    SnapshotResponse,
)
from src.sl_booking.domain.models import Booking
from src.sl_booking.domain.repository import BookingRepositoryProtocol
from src.sl_booking.infrastructure.persistence import BookingRepository
from src.sl_common.datetime_utils import to_iso
from src.sl_common.pagination import cursor_decode, cursor_encode
from src.sl_ledger.application.service import get_ledger_engine
from src.sl_ledger.engine.engine import LedgerEngine


def _booking_to_response(booking: Booking) -> BookingResponse:
    return BookingResponse(
        id=booking.id,
        user_id=booking.user_id,
        spot_id=booking.spot_id,
        status=booking.status,
        snapshot=SnapshotResponse(
            price=booking.snapshot.price,
            owner_id=booking.snapshot.owner_id,
            address=booking.snapshot.address,
        ),
        created_at=to_iso(booking.created_at),
        canceled_at=to_iso(booking.canceled_at),
    )


class BookingApplicationService:
    def __init__(
        self,
        engine: LedgerEngine | None = None,
        repo: BookingRepositoryProtocol | None = None,
    ) -> None:
        self._engine = engine
        self._repo: BookingRepositoryProtocol = repo or BookingRepository()

    @property
    def engine(self) -> LedgerEngine:
        return self._engine or get_ledger_engine()

    async def reserve(
        self, db: AsyncSession, user_id: str, spot_id: str
    ) -> BookingResponse:
        booking = await self.engine.reserve(db, user_id, spot_id)
        return _booking_to_response(booking)

    async def cancel(
        self, db: AsyncSession, user_id: str, booking_id: int
    ) -> BookingResponse:
        booking = await self.engine.cancel(db, booking_id, user_id)
        return _booking_to_response(booking)

    async def list_active(self, db: AsyncSession, user_id: str) -> BookingListResponse:
        """Bookings still in effect for the user: active and completed, newest first."""
        bookings = await self._repo.list_not_canceled(db, user_id)
        return BookingListResponse(bookings=[_booking_to_response(b) for b in bookings])

    async def list_history(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
    ) -> BookingHistoryResponse:
        cursor_id = cursor_decode(cursor)
        bookings = await self._repo.list_history(db, user_id, cursor_id, limit + 1)
        has_more = len(bookings) > limit
        page = bookings[:limit]
        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return BookingHistoryResponse(
            items=[_booking_to_response(b) for b in page],
            next_cursor=next_cursor,
            has_more=has_more,
        )
