"""pm_wager REST endpoints.

POST /wagers   — place a ticket (freeform text or structured groups); dealers
                may name one of their sub-accounts in ``account_id``
GET  /wagers   — the caller's wager history with projected outcomes
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.pm_common.database import get_db_session
from src.pm_common.response import ApiResponse, success_response
from src.pm_gateway.auth.dependencies import get_caller_id
from src.pm_wager.application.schemas import PlaceWagerRequest
from src.pm_wager.application.service import WagerApplicationService

router = APIRouter(prefix="/wagers", tags=["wagers"])

_service = WagerApplicationService()


@router.post("")
async def place_wager(
    body: PlaceWagerRequest,
    request: Request,
    caller_id: Annotated[str, Depends(get_caller_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> ApiResponse:
    groups = (
        [(g.subgame_type, g.numbers, g.amount_per_number_cents) for g in body.groups]
        if body.groups is not None
        else None
    )
    if body.account_id is not None and body.account_id != caller_id:
        result = await _service.place_wager_for(
            db, caller_id, body.account_id, body.market_id,
            ticket_text=body.ticket_text, groups=groups,
        )
    else:
        result = await _service.place_wager(
            db, caller_id, body.market_id, ticket_text=body.ticket_text, groups=groups
        )
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp


@router.get("")
async def list_wagers(
    request: Request,
    caller_id: Annotated[str, Depends(get_caller_id)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    market_id: str | None = Query(None),
    limit: int = Query(100, ge=1, le=500),
) -> ApiResponse:
    result = await _service.list_wagers(db, caller_id, market_id, limit)
    resp = success_response(result.model_dump())
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return resp
