# src/pm_admin/api/router.py
"""Admin REST API — result declaration and payout approval.

Every endpoint requires the SETTLE_MARKETS capability.
"""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_account.domain.models import Account
from src.pm_admin.application.schemas import ResultRequest
from src.pm_admin.application.service import SettlementCoordinator
from src.pm_common.database import get_db_session
from src.pm_common.enums import Capability
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import require_capability

router = APIRouter(prefix="/admin", tags=["admin"])
_coordinator = SettlementCoordinator()

_Settler = Annotated[Account, Depends(require_capability(Capability.SETTLE_MARKETS))]


@router.post("/markets/{market_id}/declare")
async def declare_winner(
    market_id: str,
    body: ResultRequest,
    request: Request,
    admin: _Settler,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _coordinator.declare_winner(db, market_id, body.number)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/markets/{market_id}/correct")
async def correct_winner(
    market_id: str,
    body: ResultRequest,
    request: Request,
    admin: _Settler,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    result = await _coordinator.correct_winner(db, market_id, body.number)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.post("/markets/{market_id}/approve")
async def approve_payouts(
    market_id: str,
    request: Request,
    admin: _Settler,
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    report = await _coordinator.approve_payouts(db, market_id)
    resp = success_response(report.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
