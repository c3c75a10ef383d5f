"""Shared query-parameter dependencies."""
from zoneinfo import ZoneInfo

from fastapi import HTTPException, Query, status

from config.settings import settings
from src.ps_common.datetime_utils import resolve_timezone


async def get_timezone(
    tz: str | None = Query(None, description="IANA zone used for day boundaries"),
) -> ZoneInfo:
    try:
        return resolve_timezone(tz or settings.DEFAULT_TIMEZONE)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from None
