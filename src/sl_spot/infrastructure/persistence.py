"""SpotRepository — raw SQL persistence implementation."""
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.sl_common.errors import InternalError
from src.sl_spot.domain.models import Spot

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = """
    id, owner_id, address, description, latitude, longitude,
    price, bookable, created_at, updated_at
"""

_INSERT_SPOT_SQL = text(f"""
    INSERT INTO spots (owner_id, address, description, latitude, longitude, price, bookable)
    VALUES (:owner_id, :address, :description, :latitude, :longitude, :price, TRUE)
    RETURNING {_SELECT_COLUMNS}
""")

_GET_SPOT_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM spots WHERE id = :id
""")

_GET_SPOT_FOR_UPDATE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM spots WHERE id = :id
    FOR UPDATE
""")

# Unconditional write: used when releasing a spot whose flag may already be true
_SET_BOOKABLE_SQL = text(f"""
    UPDATE spots
    SET bookable = :bookable, updated_at = NOW()
    WHERE id = :id
    RETURNING {_SELECT_COLUMNS}
""")

# Compare-and-set: 0 rows means another writer flipped the flag first
_SET_BOOKABLE_CAS_SQL = text(f"""
    UPDATE spots
    SET bookable = :bookable, updated_at = NOW()
    WHERE id = :id AND bookable = :expected
    RETURNING {_SELECT_COLUMNS}
""")

_UPDATE_SPOT_SQL = text(f"""
    UPDATE spots
    SET address     = COALESCE(CAST(:address AS VARCHAR), address),
        description = COALESCE(CAST(:description AS TEXT), description),
        price       = COALESCE(CAST(:price AS BIGINT), price),
        latitude    = COALESCE(CAST(:latitude AS DOUBLE PRECISION), latitude),
        longitude   = COALESCE(CAST(:longitude AS DOUBLE PRECISION), longitude),
        updated_at  = NOW()
    WHERE id = :id
    RETURNING {_SELECT_COLUMNS}
""")

_DELETE_SPOT_SQL = text("""
    DELETE FROM spots WHERE id = :id RETURNING id
""")

_LIST_BY_OWNER_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM spots WHERE owner_id = :owner_id
    ORDER BY created_at DESC
""")

_LIST_AVAILABLE_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM spots WHERE bookable = TRUE
    ORDER BY created_at DESC
""")

_LIST_AVAILABLE_IN_BOX_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM spots
    WHERE bookable = TRUE
      AND latitude  BETWEEN :min_lat AND :max_lat
      AND longitude BETWEEN :min_lng AND :max_lng
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_spot(row: Any) -> Spot:
    """Convert a DB result row to a Spot domain object."""
    return Spot(
        id=str(row.id),
        owner_id=row.owner_id,
        address=row.address,
        description=row.description,
        latitude=row.latitude,
        longitude=row.longitude,
        price=row.price,
        bookable=row.bookable,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class SpotRepository:
    """Concrete implementation of SpotRepositoryProtocol using raw SQL."""

    async def get_spot(
        self, db: AsyncSession, spot_id: str, for_update: bool = False
    ) -> Spot | None:
        sql = _GET_SPOT_FOR_UPDATE_SQL if for_update else _GET_SPOT_SQL
        result = await db.execute(sql, {"id": spot_id})
        row = result.fetchone()
        return _row_to_spot(row) if row else None

    async def set_bookable(
        self,
        db: AsyncSession,
        spot_id: str,
        bookable: bool,
        expected: bool | None = None,
    ) -> Spot | None:
        """Write the availability flag. Returns None when no row matched.

        With `expected` set the write is a compare-and-set on the current flag.
        """
        if expected is None:
            result = await db.execute(
                _SET_BOOKABLE_SQL, {"id": spot_id, "bookable": bookable}
            )
        else:
            result = await db.execute(
                _SET_BOOKABLE_CAS_SQL,
                {"id": spot_id, "bookable": bookable, "expected": expected},
            )
        row = result.fetchone()
        return _row_to_spot(row) if row else None

    async def delete_spot(self, db: AsyncSession, spot_id: str) -> bool:
        result = await db.execute(_DELETE_SPOT_SQL, {"id": spot_id})
        return result.fetchone() is not None

    async def list_by_owner(self, db: AsyncSession, owner_id: str) -> list[Spot]:
        result = await db.execute(_LIST_BY_OWNER_SQL, {"owner_id": owner_id})
        return [_row_to_spot(row) for row in result.fetchall()]

    async def create_spot(self, db: AsyncSession, spot: Spot) -> Spot:
        result = await db.execute(
            _INSERT_SPOT_SQL,
            {
                "owner_id": spot.owner_id,
                "address": spot.address,
                "description": spot.description,
                "latitude": spot.latitude,
                "longitude": spot.longitude,
                "price": spot.price,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Spot insert returned no rows")
        return _row_to_spot(row)

    async def update_spot(
        self,
        db: AsyncSession,
        spot_id: str,
        address: str | None = None,
        description: str | None = None,
        price: int | None = None,
        latitude: float | None = None,
        longitude: float | None = None,
    ) -> Spot | None:
        result = await db.execute(
            _UPDATE_SPOT_SQL,
            {
                "id": spot_id,
                "address": address,
                "description": description,
                "price": price,
                "latitude": latitude,
                "longitude": longitude,
            },
        )
        row = result.fetchone()
        return _row_to_spot(row) if row else None

    async def list_available(self, db: AsyncSession) -> list[Spot]:
        result = await db.execute(_LIST_AVAILABLE_SQL)
        return [_row_to_spot(row) for row in result.fetchall()]

    async def list_available_in_box(
        self,
        db: AsyncSession,
        min_lat: float,
        max_lat: float,
        min_lng: float,
        max_lng: float,
    ) -> list[Spot]:
        result = await db.execute(
            _LIST_AVAILABLE_IN_BOX_SQL,
            {
                "min_lat": min_lat,
                "max_lat": max_lat,
                "min_lng": min_lng,
                "max_lng": max_lng,
            },
        )
        return [_row_to_spot(row) for row in result.fetchall()]
