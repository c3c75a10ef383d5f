# src/ps_revenue/api/router.py
"""Revenue REST API (shop staff)."""
from datetime import date
from typing import Annotated
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.ps_common.database import get_db_session
from src.ps_common.errors import InvalidOrderError
from src.ps_common.params import get_timezone
from src.ps_common.response import ApiResponse, success_response
from src.ps_gateway.auth.dependencies import require_staff
from src.ps_gateway.auth.session import Session
from src.ps_revenue.application.service import RevenueService

router = APIRouter(prefix="/revenue", tags=["revenue"])
_service = RevenueService()


def get_revenue_service() -> RevenueService:
    return _service


@router.get("")
async def get_revenue(
    request: Request,
    session: Annotated[Session, Depends(require_staff)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[RevenueService, Depends(get_revenue_service)],
    tz: Annotated[ZoneInfo, Depends(get_timezone)],
    start: date | None = Query(None, description="First day (YYYY-MM-DD); alone selects one day"),
    end: date | None = Query(None, description="Last day, inclusive"),
) -> ApiResponse:
    if start is not None and end is not None and end < start:
        raise InvalidOrderError("end must not be before start")
    result = await service.get_revenue(session, db, tz, start, end)
    return success_response(result.model_dump(mode="json"), request)
