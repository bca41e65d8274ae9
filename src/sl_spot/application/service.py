# src/sl_spot/application/service.py
"""Spot Directory use cases. Deleting a spot is a ledger operation (see sl_ledger)."""
import logging

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.sl_common.datetime_utils import to_iso
from src.sl_common.errors import NotAuthorizedError, SpotNotFoundError, ValidationError
from src.sl_points.domain.repository import BalanceRepositoryProtocol
from src.sl_points.infrastructure.persistence import BalanceRepository
from src.sl_spot.application.schemas import (
    CreateSpotRequest,
    NearbySpotListResponse,
    NearbySpotResponse,
    SpotListResponse,
    SpotResponse,
    UpdateSpotRequest,
)
from src.sl_spot.domain.geo import bounding_box, haversine_m
from src.sl_spot.domain.models import Spot
from src.sl_spot.domain.repository import SpotRepositoryProtocol
from src.sl_spot.infrastructure.persistence import SpotRepository

logger = logging.getLogger(__name__)

_repo: SpotRepositoryProtocol = SpotRepository()
_balances: BalanceRepositoryProtocol = BalanceRepository()

_DEFAULT_DESCRIPTION = "No description provided"


def _spot_to_response(spot: Spot) -> SpotResponse:
    return SpotResponse(
        id=spot.id,
        owner_id=spot.owner_id,
        address=spot.address,
        description=spot.description,
        latitude=spot.latitude,
        longitude=spot.longitude,
        price=spot.price,
        bookable=spot.bookable,
        created_at=to_iso(spot.created_at),
    )


async def create_spot(
    req: CreateSpotRequest,
    owner_id: str,
    db: AsyncSession,
    repo: SpotRepositoryProtocol | None = None,
    balances: BalanceRepositoryProtocol | None = None,
) -> SpotResponse:
    """List a new spot. The owner's balance is opened in the same transaction
    so that a Reserve on the spot always has an account to credit."""
    repo = repo or _repo
    balances = balances or _balances
    spot = Spot(
        id="",
        owner_id=owner_id,
        address=req.address,
        description=req.description or _DEFAULT_DESCRIPTION,
        latitude=req.latitude,
        longitude=req.longitude,
        price=req.price,
    )
    try:
        await balances.open_balance(db, owner_id, settings.SIGNUP_GRANT_POINTS)
        created = await repo.create_spot(db, spot)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    logger.info("Spot listed: spot=%s owner=%s price=%d", created.id, owner_id, created.price)
    return _spot_to_response(created)


async def update_spot(
    spot_id: str,
    req: UpdateSpotRequest,
    user_id: str,
    db: AsyncSession,
    repo: SpotRepositoryProtocol | None = None,
) -> SpotResponse:
    """Owner-only edit. Existing booking snapshots keep the old terms."""
    repo = repo or _repo
    if req.is_empty():
        raise ValidationError("At least one field must be updated")
    try:
        spot = await repo.get_spot(db, spot_id, for_update=True)
        if spot is None:
            raise SpotNotFoundError(spot_id)
        if spot.owner_id != user_id:
            raise NotAuthorizedError("You are not authorized to edit this spot")
        updated = await repo.update_spot(
            db,
            spot_id,
            address=req.address,
            description=req.description,
            price=req.price,
            latitude=req.latitude,
            longitude=req.longitude,
        )
        if updated is None:
            raise SpotNotFoundError(spot_id)
        await db.commit()
    except Exception:
        await db.rollback()
        raise
    return _spot_to_response(updated)


async def list_available(
    db: AsyncSession, repo: SpotRepositoryProtocol | None = None
) -> SpotListResponse:
    spots = await (repo or _repo).list_available(db)
    return SpotListResponse(spots=[_spot_to_response(s) for s in spots])


async def list_owned(
    owner_id: str, db: AsyncSession, repo: SpotRepositoryProtocol | None = None
) -> SpotListResponse:
    spots = await (repo or _repo).list_by_owner(db, owner_id)
    return SpotListResponse(spots=[_spot_to_response(s) for s in spots])


async def list_nearby(
    lat: float,
    lng: float,
    radius_m: int,
    db: AsyncSession,
    repo: SpotRepositoryProtocol | None = None,
) -> NearbySpotListResponse:
    """Available spots within radius_m of (lat, lng), nearest first."""
    if radius_m > settings.NEARBY_MAX_RADIUS_M:
        raise ValidationError(
            f"radius must not exceed {settings.NEARBY_MAX_RADIUS_M} meters"
        )
    min_lat, max_lat, min_lng, max_lng = bounding_box(lat, lng, radius_m)
    candidates = await (repo or _repo).list_available_in_box(
        db, min_lat, max_lat, min_lng, max_lng
    )
    hits: list[NearbySpotResponse] = []
    for spot in candidates:
        distance = haversine_m(lat, lng, spot.latitude, spot.longitude)
        if distance <= radius_m:
            hits.append(
                NearbySpotResponse(
                    **_spot_to_response(spot).model_dump(), distance_m=round(distance, 1)
                )
            )
    hits.sort(key=lambda s: s.distance_m)
    return NearbySpotListResponse(spots=hits)
