"""sl_booking REST API — reserve, cancel and the caller's booking lists."""
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.sl_booking.application.schemas import ReserveRequest
from src.sl_booking.application.service import BookingApplicationService
from src.sl_common.database import get_db_session
from src.sl_common.response import ApiResponse, success_response
from src.sl_gateway.auth.dependencies import get_current_principal
from src.sl_gateway.auth.identity import Principal

router = APIRouter(prefix="/bookings", tags=["bookings"])

_service = BookingApplicationService()


def _with_request_id(resp: ApiResponse, request: Request) -> ApiResponse:
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("", status_code=status.HTTP_201_CREATED)
async def reserve(
    body: ReserveRequest,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.reserve(db, principal.user_id, body.spot_id)
    return _with_request_id(success_response(data.model_dump(), "Booking confirmed"), request)


@router.delete("/{booking_id}")
async def cancel(
    booking_id: int,
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.cancel(db, principal.user_id, booking_id)
    return _with_request_id(success_response(data.model_dump(), "Booking canceled"), request)


@router.get("/active")
async def list_active(
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.list_active(db, principal.user_id)
    return _with_request_id(success_response(data.model_dump()), request)


@router.get("/history")
async def list_history(
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
) -> ApiResponse:
    data = await _service.list_history(db, principal.user_id, cursor, limit)
    return _with_request_id(success_response(data.model_dump()), request)
