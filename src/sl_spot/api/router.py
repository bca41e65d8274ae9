# src/sl_spot/api/router.py
"""Spot Directory REST API."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.sl_common.database import get_db_session
from src.sl_common.response import ApiResponse, success_response
from src.sl_gateway.auth.dependencies import get_current_principal
from src.sl_gateway.auth.identity import Principal
from src.sl_ledger.application.service import get_ledger_engine
from src.sl_spot.application import service
from src.sl_spot.application.schemas import CreateSpotRequest, UpdateSpotRequest

router = APIRouter(prefix="/spots", tags=["spots"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_spot(
    body: CreateSpotRequest,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await service.create_spot(body, principal.user_id, db)
    return success_response(data.model_dump(), "Spot listed")


@router.get("")
async def list_available(
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await service.list_available(db)
    return success_response(data.model_dump())


@router.get("/mine")
async def list_mine(
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await service.list_owned(principal.user_id, db)
    return success_response(data.model_dump())


@router.get("/nearby")
async def list_nearby(
    db: Annotated[AsyncSession, Depends(get_db_session)],
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius: int = Query(1000, gt=0, description="Search radius in meters"),
) -> ApiResponse:
    data = await service.list_nearby(lat, lng, radius, db)
    return success_response(data.model_dump())


@router.patch("/{spot_id}")
async def update_spot(
    spot_id: str,
    body: UpdateSpotRequest,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    data = await service.update_spot(spot_id, body, principal.user_id, db)
    return success_response(data.model_dump(), "Spot updated")


@router.delete("/{spot_id}")
async def withdraw_spot(
    spot_id: str,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    """Owner removes a spot; an active booking on it is refunded first."""
    result = await get_ledger_engine().withdraw_spot(db, spot_id, principal.user_id)
    return success_response(
        {"spot_id": result.spot_id, "bookings_refunded": result.bookings_refunded},
        "Spot deleted",
    )
