# src/ps_admin/api/router.py
"""Server-status REST API."""
from typing import Annotated

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession

from src.ps_admin.application.service import AdminService
from src.ps_admin.domain.models import ServerStatus
from src.ps_common.database import get_db_session
from src.ps_common.response import ApiResponse, success_response
from src.ps_gateway.auth.dependencies import get_current_session, require_staff
from src.ps_gateway.auth.session import Session

router = APIRouter(prefix="/server-status", tags=["admin"])
_service = AdminService()


def get_admin_service() -> AdminService:
    return _service


class ServerStatusResponse(BaseModel):
    is_active: bool
    last_updated: str | None = None

    @classmethod
    def from_domain(cls, status: ServerStatus) -> "ServerStatusResponse":
        return cls(
            is_active=status.is_active,
            last_updated=status.last_updated.isoformat() if status.last_updated else None,
        )


@router.get("")
async def get_server_status(
    request: Request,
    session: Annotated[Session, Depends(get_current_session)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AdminService, Depends(get_admin_service)],
) -> ApiResponse:
    status = await service.get_server_status(db)
    return success_response(ServerStatusResponse.from_domain(status).model_dump(), request)


@router.post("/toggle")
async def toggle_server(
    request: Request,
    session: Annotated[Session, Depends(require_staff)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    service: Annotated[AdminService, Depends(get_admin_service)],
) -> ApiResponse:
    status = await service.toggle_server(db, session.user_id)
    return success_response(ServerStatusResponse.from_domain(status).model_dump(), request)
