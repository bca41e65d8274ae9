"""SpotRepository Protocol — interface contract for the Spot Directory."""
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.sl_spot.domain.models import Spot


class SpotRepositoryProtocol(Protocol):
    # --- consumed by the ledger engine ---

    async def get_spot(
        self, db: AsyncSession, spot_id: str, for_update: bool = False
    ) -> Spot | None: ...

    async def set_bookable(
        self,
        db: AsyncSession,
        spot_id: str,
        bookable: bool,
        expected: bool | None = None,
    ) -> Spot | None: ...

    async def delete_spot(self, db: AsyncSession, spot_id: str) -> bool: ...

    async def list_by_owner(self, db: AsyncSession, owner_id: str) -> list[Spot]: ...

    # --- directory CRUD ---

    async def create_spot(self, db: AsyncSession, spot: Spot) -> Spot: ...

    async def update_spot(
        self,
        db: AsyncSession,
        spot_id: str,
        address: str | None = None,
        description: str | None = None,
        price: int | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> Spot | None: ...

    async def list_available(self, db: AsyncSession) -> list[Spot]: ...

    async def list_available_in_box(
        self,
        db: AsyncSession,
        min_lat: float,
        max_lat: float,
        min_lng: float,
        max_lng: float,
    ) -> list[Spot]: ...
