# src/sl_booking/infrastructure/persistence.py
"""BookingRepository — raw SQL persistence implementation."""
from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.sl_booking.domain.models import Booking, BookingSnapshot
from src.sl_common.errors import InternalError

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    id, user_id, spot_id, status,
    snapshot_price, snapshot_owner_id, snapshot_address,
    created_at, canceled_at
"""

_INSERT_BOOKING_SQL = text(f"""
    INSERT INTO bookings (user_id, spot_id, status,
        snapshot_price, snapshot_owner_id, snapshot_address, created_at)
    VALUES (:user_id, :spot_id, 'active',
        :snapshot_price, :snapshot_owner_id, :snapshot_address, :created_at)
    RETURNING {_SELECT_COLUMNS}
""")

_GET_BOOKING_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bookings WHERE id = :id
""")

_GET_BOOKING_FOR_UPDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bookings WHERE id = :id
    FOR UPDATE
""")

_FIND_ACTIVE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bookings
    WHERE user_id = :user_id AND spot_id = :spot_id AND status = 'active'
    LIMIT 1
""")

_LIST_ACTIVE_FOR_SPOT_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bookings
    WHERE spot_id = :spot_id AND status = 'active'
    ORDER BY id
""")

_LIST_ACTIVE_FOR_SPOT_FOR_UPDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bookings
    WHERE spot_id = :spot_id AND status = 'active'
    ORDER BY id
    FOR UPDATE
""")

_LIST_ACTIVE_FOR_USER_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bookings
    WHERE user_id = :user_id AND status = 'active'
    ORDER BY id
""")

# Only an active booking can be canceled; 0 rows means someone got there first
_MARK_CANCELED_SQL = text(f"""
    UPDATE bookings
    SET status = 'canceled', canceled_at = :canceled_at
    WHERE id = :id AND status = 'active'
    RETURNING {_SELECT_COLUMNS}
""")

_LIST_HISTORY_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bookings
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
    ORDER BY id DESC
    LIMIT :limit
""")

_LIST_NOT_CANCELED_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM bookings
    WHERE user_id = :user_id AND status <> 'canceled'
    ORDER BY id DESC
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_booking(row: Any) -> Booking:
    """Convert a DB result row to a Booking domain object."""
    return Booking(
        id=row.id,
        user_id=row.user_id,
        spot_id=row.spot_id,
        status=row.status,
        snapshot=BookingSnapshot(
            price=row.snapshot_price,
            owner_id=row.snapshot_owner_id,
            address=row.snapshot_address,
        ),
        created_at=row.created_at,
        canceled_at=row.canceled_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class BookingRepository:
    """Concrete implementation of BookingRepositoryProtocol using raw SQL."""

    async def insert(
        self,
        db: AsyncSession,
        user_id: str,
        spot_id: str,
        snapshot: BookingSnapshot,
        created_at: datetime,
    ) -> Booking:
        result = await db.execute(
            _INSERT_BOOKING_SQL,
            {
                "user_id": user_id,
                "spot_id": spot_id,
                "snapshot_price": snapshot.price,
                "snapshot_owner_id": snapshot.owner_id,
                "snapshot_address": snapshot.address,
                "created_at": created_at,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Booking insert returned no rows")
        return _row_to_booking(row)

    async def get_by_id(
        self, db: AsyncSession, booking_id: int, for_update: bool = False
    ) -> Booking | None:
        sql = _GET_BOOKING_FOR_UPDATE_SQL if for_update else _GET_BOOKING_SQL
        result = await db.execute(sql, {"id": booking_id})
        row = result.fetchone()
        return _row_to_booking(row) if row else None

    async def find_active(
        self, db: AsyncSession, user_id: str, spot_id: str
    ) -> Booking | None:
        result = await db.execute(
            _FIND_ACTIVE_SQL, {"user_id": user_id, "spot_id": spot_id}
        )
        row = result.fetchone()
        return _row_to_booking(row) if row else None

    async def list_active_for_spot(
        self, db: AsyncSession, spot_id: str, for_update: bool = False
    ) -> list[Booking]:
        sql = (
            _LIST_ACTIVE_FOR_SPOT_FOR_UPDATE_SQL if for_update else _LIST_ACTIVE_FOR_SPOT_SQL
        )
        result = await db.execute(sql, {"spot_id": spot_id})
        return [_row_to_booking(row) for row in result.fetchall()]

    async def list_active_for_user(
        self, db: AsyncSession, user_id: str
    ) -> list[Booking]:
        result = await db.execute(_LIST_ACTIVE_FOR_USER_SQL, {"user_id": user_id})
        return [_row_to_booking(row) for row in result.fetchall()]

    async def mark_canceled(
        self, db: AsyncSession, booking_id: int, canceled_at: datetime
    ) -> Booking | None:
        result = await db.execute(
            _MARK_CANCELED_SQL, {"id": booking_id, "canceled_at": canceled_at}
        )
        row = result.fetchone()
        return _row_to_booking(row) if row else None

    async def list_history(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
    ) -> list[Booking]:
        result = await db.execute(
            _LIST_HISTORY_SQL,
            {"user_id": user_id, "cursor_id": cursor_id, "limit": limit},
        )
        return [_row_to_booking(row) for row in result.fetchall()]


    async def list_not_canceled(
        self, db: AsyncSession, user_id: str
    ) -> list[Booking]:
        result = await db.execute(_LIST_NOT_CANCELED_SQL, {"user_id": user_id})
        return [_row_to_booking(row) for row in result.fetchall()]
