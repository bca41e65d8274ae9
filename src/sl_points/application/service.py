"""PointsApplicationService — thin composition layer over the Balance Store.

get_balance opens the balance (signup grant) on first access and therefore
commits; list_entries is read-only and runs without explicit transaction.
A purged account raises AccountClosedError instead of being granted again.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.sl_common.pagination import cursor_decode, cursor_encode
from src.sl_points.application.schemas import (
    BalanceResponse,
    PointEntryItem,
    PointLedgerResponse,
)
from src.sl_points.domain.repository import BalanceRepositoryProtocol
from src.sl_points.infrastructure.persistence import BalanceRepository


class PointsApplicationService:
    def __init__(self, repo: BalanceRepositoryProtocol | None = None) -> None:
        self._repo: BalanceRepositoryProtocol = repo or BalanceRepository()

    async def get_balance(self, db: AsyncSession, user_id: str) -> BalanceResponse:
        try:
            balance = await self._repo.get_balance(db, user_id)
            if balance is None:
                balance = await self._repo.open_balance(
                    db, user_id, settings.SIGNUP_GRANT_POINTS
                )
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return BalanceResponse(user_id=balance.user_id, points=balance.points)

    async def list_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor: str | None,
        limit: int,
        entry_type: str | None,
    ) -> PointLedgerResponse:
        cursor_id = cursor_decode(cursor)
        # Fetch limit+1 to detect has_more without a COUNT(*) query
        entries = await self._repo.list_entries(
            db, user_id, cursor_id, limit + 1, entry_type
        )
        has_more = len(entries) > limit
        page = entries[:limit]

        items = [
            PointEntryItem(
                id=e.id,
                entry_type=e.entry_type,
                amount=e.amount,
                balance_after=e.balance_after,
                booking_id=e.booking_id,
                created_at=e.created_at.isoformat() if e.created_at else "",
            )
            for e in page
        ]

        next_cursor = cursor_encode(page[-1].id) if has_more and page else None
        return PointLedgerResponse(items=items, next_cursor=next_cursor, has_more=has_more)
