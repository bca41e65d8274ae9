"""Balance Store Protocol — dependency inversion for testability.

Unit tests inject an in-memory fake that conforms to this Protocol.
Infrastructure layer provides the real implementation.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.sl_points.domain.models import Balance, PointEntry


class BalanceRepositoryProtocol(Protocol):
    async def get_balance(
        self, db: AsyncSession, user_id: str, for_update: bool = False
    ) -> Balance | None: ...

    async def open_balance(
        self, db: AsyncSession, user_id: str, initial_points: int
    ) -> Balance: ...

    async def credit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        booking_id: int | None,
    ) -> Balance: ...

    async def debit(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        entry_type: str,
        booking_id: int | None,
    ) -> Balance: ...

    async def delete_balance(self, db: AsyncSession, user_id: str) -> bool: ...

    async def list_entries(
        self,
        db: AsyncSession,
        user_id: str,
        cursor_id: int | None,
        limit: int,
        entry_type: str | None,
    ) -> list[PointEntry]: ...
