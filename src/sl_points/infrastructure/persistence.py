"""BalanceRepository — concrete implementation of BalanceRepositoryProtocol.

All balance-mutating operations use atomic PostgreSQL UPDATE ... RETURNING and
append one point_entries row in the same statement batch. A result of 0 rows
means a business constraint was violated (missing balance / insufficient points).

Transaction ownership: The CALLER (ledger engine or application service) is
responsible for starting and committing the transaction via `async with db.begin()`.
"""

from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.sl_common.enums import PointEntryType
from src.sl_common.errors import (
    AccountClosedError,
    BalanceNotFoundError,
    InsufficientPointsError,
    InternalError,
)
from src.sl_points.domain.models import Balance, PointEntry

# ---------------------------------------------------------------------------
# SQL: point_balances
# ---------------------------------------------------------------------------

_GET_BALANCE_SQL = text("""
    SELECT user_id, points, created_at, updated_at
    FROM point_balances
    WHERE user_id = :user_id
""")

_GET_BALANCE_FOR_UPDATE_SQL = text("""
    SELECT user_id, points, created_at, updated_at
    FROM point_balances
    WHERE user_id = :user_id
    FOR UPDATE
""")

# A user whose journal already holds a GRANT was purged: no second grant.
_OPEN_BALANCE_SQL = text("""
    INSERT INTO point_balances (user_id, points)
    SELECT :user_id, :points
    WHERE NOT EXISTS (
        SELECT 1 FROM point_entries
        WHERE user_id = :user_id AND entry_type = 'GRANT'
    )
    ON CONFLICT (user_id) DO NOTHING
    RETURNING user_id, points, created_at, updated_at
""")

_CREDIT_SQL = text("""
    UPDATE point_balances
    SET points = points + :amount,
        updated_at = NOW()
    WHERE user_id = :user_id
    RETURNING user_id, points, created_at, updated_at
""")

_DEBIT_SQL = text("""
    UPDATE point_balances
    SET points = points - :amount,
        updated_at = NOW()
    WHERE user_id = :user_id AND points >= :amount
    RETURNING user_id, points, created_at, updated_at
""")

_DELETE_BALANCE_SQL = text("""
    DELETE FROM point_balances
    WHERE user_id = :user_id
    RETURNING user_id
""")

# ---------------------------------------------------------------------------
# SQL: point_entries (append-only)
# ---------------------------------------------------------------------------

_INSERT_ENTRY_SQL = text("""
    INSERT INTO point_entries
        (user_id, entry_type, amount, balance_after, booking_id)
    VALUES
        (:user_id, :entry_type, :amount, :balance_after, :booking_id)
    RETURNING id, user_id, entry_type, amount, balance_after, booking_id, created_at
""")

_LIST_ENTRIES_SQL = text("""
    SELECT id, user_id, entry_type, amount, balance_after, booking_id, created_at
    FROM point_entries
    WHERE user_id = :user_id
      AND (CAST(:cursor_id AS BIGINT) IS NULL OR id < :cursor_id)
      AND (CAST(:entry_type AS TEXT) IS NULL OR entry_type = :entry_type)
    ORDER BY id DESC
    LIMIT :limit
""")


def _row_to_balance(row: Any) -> Balance:
    return Balance(
        user_id=row.user_id,
        points=row.points,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


def _row_to_entry(row: Any) -> PointEntry:
    return PointEntry(
        id=row.id,
        user_id=row.user_id,
        entry_type=row.entry_type,
        amount=row.amount,
        balance_after=row.balance_after,
        booking_id=row.booking_id,
        created_at=row.created_at,
    )


class BalanceRepository:
    """Concrete repository — all operations atomic at the SQL level."""

    async def get_balance(
        self, db: AsyncSession, user_id: str, for_update: bool = False
    ) -> Balance | None:
        sql = _GET_BALANCE_FOR_UPDATE_SQL if for_update else _GET_BALANCE_SQL
        result = await db.execute(sql, {"user_id": user_id})
        row = result.fetchone()
        return _row_to_balance(row) if row else None

    async def open_balance(
        self, db: AsyncSession, user_id: str, initial_points: int
    ) -> Balance:
        """Idempotent: an existing balance is returned untouched, without a second grant.

        Raises AccountClosedError if the user was granted once and later purged.
        """
        result = await db.execute(
            _OPEN_BALANCE_SQL, {"user_id": user_id, "points": initial_points}
        )
        row = result.fetchone()
        if row is None:
            existing = await self.get_balance(db, user_id)
            if existing is None:
                raise AccountClosedError()
            return existing
        balance = _row_to_balance(row)
        await self._append_entry(
            db, user_id, PointEntryType.GRANT.value, initial_points, balance.points, None
        )
        return balance

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        booking_id: int | None,
    ) -> Balance:
        result = await db.execute(_CREDIT_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            raise BalanceNotFoundError(user_id)
        balance = _row_to_balance(row)
        await self._append_entry(db, user_id, entry_type, amount, balance.points, booking_id)
        return balance

    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        booking_id: int | None,
    ) -> Balance:
        result = await db.execute(_DEBIT_SQL, {"user_id": user_id, "amount": amount})
        row = result.fetchone()
        if row is None:
            current = await self.get_balance(db, user_id)
            if current is None:
                raise BalanceNotFoundError(user_id)
            raise InsufficientPointsError(user_id, amount, current.points)
        balance = _row_to_balance(row)
        await self._append_entry(db, user_id, entry_type, -amount, balance.points, booking_id)
        return balance

    async def delete_balance(self, db: AsyncSession, user_id: str) -> bool:
        result = await db.execute(_DELETE_BALANCE_SQL, {"user_id": user_id})
        return result.fetchone() is not None

    async def list_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[PointEntry]:
        result = await db.execute(
            _LIST_ENTRIES_SQL,
            {
                "user_id": user_id,
                "cursor_id": cursor_id,
                "entry_type": entry_type,
                "limit": limit,
            },
        )
        return [_row_to_entry(row) for row in result.fetchall()]

    async def _append_entry(
        self,
        db: AsyncSession,
        user_id: str,
        entry_type: str,
        amount: int,
        balance_after: int,
        booking_id: int | None,
    ) -> PointEntry:
        result = await db.execute(
            _INSERT_ENTRY_SQL,
            {
                "user_id": user_id,
                "entry_type": entry_type,
                "amount": amount,
                "balance_after": balance_after,
                "booking_id": booking_id,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Point entry insert returned no rows")
        return _row_to_entry(row)
