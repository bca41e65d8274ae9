"""Ledger-wide consistency checks, run read-only against the live store.

Each check returns human-readable violation strings; an empty list means healthy.
"""
import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

_NEGATIVE_BALANCES_SQL = text("""
    SELECT user_id, points FROM point_balances WHERE points < 0
""")

# Every balance equals the signed sum of its journal entries
_JOURNAL_MISMATCH_SQL = text("""
    SELECT b.user_id, b.points, COALESCE(SUM(e.amount), 0) AS journal_sum
    FROM point_balances b
    LEFT JOIN point_entries e ON e.user_id = b.user_id
    GROUP BY b.user_id, b.points
    HAVING b.points <> COALESCE(SUM(e.amount), 0)
""")

_MULTIPLE_ACTIVE_SQL = text("""
    SELECT spot_id, COUNT(*) AS active_count
    FROM bookings
    WHERE status = 'active'
    GROUP BY spot_id
    HAVING COUNT(*) > 1
""")

# bookable must be exactly "no active booking exists"
_AVAILABILITY_MISMATCH_SQL = text("""
    SELECT s.id, s.bookable,
           EXISTS (
               SELECT 1 FROM bookings b
               WHERE b.spot_id = s.id AND b.status = 'active'
           ) AS has_active
    FROM spots s
    WHERE s.bookable = EXISTS (
        SELECT 1 FROM bookings b
        WHERE b.spot_id = s.id AND b.status = 'active'
    )
""")

_ORPHANED_ACTIVE_SQL = text("""
    SELECT b.id, b.spot_id
    FROM bookings b
    LEFT JOIN spots s ON s.id = b.spot_id
    WHERE b.status = 'active' AND s.id IS NULL
""")


async def verify_ledger_invariants(db: AsyncSession) -> list[str]:
    """Run every ledger check and log each violation at ERROR."""
    violations: list[str] = []

    for row in (await db.execute(_NEGATIVE_BALANCES_SQL)).fetchall():
        violations.append(f"Negative balance: user={row.user_id} points={row.points}")

    for row in (await db.execute(_JOURNAL_MISMATCH_SQL)).fetchall():
        violations.append(
            f"Balance/journal mismatch: user={row.user_id} "
            f"points={row.points} journal_sum={row.journal_sum}"
        )

    for row in (await db.execute(_MULTIPLE_ACTIVE_SQL)).fetchall():
        violations.append(
            f"Spot {row.spot_id} has {row.active_count} active bookings"
        )

    for row in (await db.execute(_AVAILABILITY_MISMATCH_SQL)).fetchall():
        violations.append(
            f"Spot {row.id} bookable={row.bookable} but has_active_booking={row.has_active}"
        )

    for row in (await db.execute(_ORPHANED_ACTIVE_SQL)).fetchall():
        violations.append(
            f"Active booking {row.id} references missing spot {row.spot_id}"
        )

    for msg in violations:
        logger.error("Ledger invariant violated: %s", msg)
    return violations
