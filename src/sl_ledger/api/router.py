# src/sl_ledger/api/router.py
"""Account purge and the admin ledger audit."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.sl_common.database import get_db_session
from src.sl_common.errors import NotAuthorizedError
from src.sl_common.response import ApiResponse, success_response
from src.sl_gateway.auth.dependencies import get_current_principal
from src.sl_gateway.auth.identity import Principal
from src.sl_ledger.application import service

router = APIRouter(tags=["account"])


@router.delete("/account")
async def purge_account(
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    """Called by the Identity Provider flow after the user deletes their account."""
    data = await service.purge_account(principal.user_id, db)
    resp = success_response(data.model_dump(), message="Account purged")
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("/admin/invariants")
async def verify_invariants(
    principal: Annotated[Principal, Depends(get_current_principal)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    if principal.user_id not in settings.ADMIN_USER_IDS:
        raise NotAuthorizedError("Admin access required")
    data = await service.audit_invariants(db)
    return success_response(data.model_dump())
