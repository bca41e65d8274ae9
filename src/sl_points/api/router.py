"""sl_points REST API — balance and journal, both require a bearer token."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.sl_common.database import get_db_session
from src.sl_common.enums import PointEntryType
from src.sl_common.response import ApiResponse, success_response
from src.sl_gateway.auth.dependencies import get_current_principal
from src.sl_gateway.auth.identity import Principal
from src.sl_points.application.service import PointsApplicationService

router = APIRouter(prefix="/points", tags=["points"])

_service = PointsApplicationService()


@router.get("/balance")
async def get_balance(
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get_balance(db, principal.user_id)
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/ledger")
async def list_ledger(
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    cursor: str | None = Query(None, description="Pagination cursor (opaque Base64)"),
    limit: int = Query(20, ge=1, le=100, description="Items per page"),
    entry_type: PointEntryType | None = Query(None, description="Filter by PointEntryType"),
) -> ApiResponse:
    data = await _service.list_entries(
        db,
        principal.user_id,
        cursor,
        limit,
        entry_type.value if entry_type else None,
    )
    resp = success_response(data.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
