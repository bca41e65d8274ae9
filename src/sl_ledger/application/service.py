# src/sl_ledger/application/service.py
"""Process-wide LedgerEngine plus the account and audit use cases built on it.

The engine owns the per-spot and per-user locks, so every caller in the
process must share the one returned by get_ledger_engine().
"""
from sqlalchemy.ext.asyncio import AsyncSession

from src.sl_ledger.application.schemas import InvariantReport, PurgeResponse
from src.sl_ledger.domain.invariants import verify_ledger_invariants
from src.sl_ledger.engine.engine import LedgerEngine

_engine: LedgerEngine | None = None


def get_ledger_engine() -> LedgerEngine:
    global _engine  # noqa: PLW0603
    if _engine is None:
        _engine = LedgerEngine()
    return _engine


async def purge_account(
    user_id: str, db: AsyncSession, engine: LedgerEngine | None = None
) -> PurgeResponse:
    result = await (engine or get_ledger_engine()).purge_account(db, user_id)
    return PurgeResponse(
        user_id=result.user_id,
        spots_deleted=result.spots_deleted,
        bookings_refunded=result.bookings_refunded,
        bookings_released=result.bookings_released,
        balance_deleted=result.balance_deleted,
    )


async def audit_invariants(db: AsyncSession) -> InvariantReport:
    try:
        violations = await verify_ledger_invariants(db)
    finally:
        await db.rollback()
    return InvariantReport(ok=not violations, violations=violations)
