# src/ps_order/api/router.py
from typing import Annotated
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ps_common.database import get_db_session
from src.ps_common.enums import HistoryTab
from src.ps_common.params import get_timezone
from src.ps_common.response import ApiResponse, success_response
from src.ps_gateway.auth.dependencies import get_current_session, require_admin, require_staff
from src.ps_gateway.auth.session import Session
from src.ps_order.application.schemas import SubmitOrderRequest, UpdateStatusRequest
from src.ps_order.application.service import OrderApplicationService
from src.ps_order.domain.uploads import check_upload_size

router = APIRouter(prefix="/orders", tags=["orders"])
_service = OrderApplicationService()


def get_order_service() -> OrderApplicationService:
    return _service


ServiceDep = Annotated[OrderApplicationService, Depends(get_order_service)]
SessionDep = Annotated[Session, Depends(get_current_session)]
DbDep = Annotated[AsyncSession, Depends(get_db_session)]


@router.post("/uploads", status_code=201)
async def upload_file(
    request: Request,
    session: SessionDep,
    db: DbDep,
    service: ServiceDep,
    file: UploadFile = File(...),
) -> ApiResponse:
    # Checked before read()
    check_upload_size(file.filename, file.size, settings.MAX_UPLOAD_BYTES)
    data = await file.read()
    result = await service.upload_file(session, file.filename, file.content_type, data, db)
    return success_response(result.model_dump(mode="json"), request)


@router.post("", status_code=201)
async def submit_order(
    request: Request,
    req: SubmitOrderRequest,
    session: SessionDep,
    db: DbDep,
    service: ServiceDep,
) -> ApiResponse:
    result = await service.submit_order(req, session, db)
    return success_response(result.model_dump(mode="json"), request)


@router.get("")
async def list_orders(
    request: Request, session: SessionDep, db: DbDep, service: ServiceDep
) -> ApiResponse:
    result = await service.list_orders(session, db)
    return success_response(result.model_dump(mode="json"), request)


@router.get("/active")
async def list_active(
    request: Request,
    session: SessionDep,
    db: DbDep,
    service: ServiceDep,
) -> ApiResponse:
    result = await service.list_active(session, db)
    return success_response(result.model_dump(mode="json"), request)


@router.get("/completed")
async def list_completed(
    request: Request,
    session: SessionDep,
    db: DbDep,
    service: ServiceDep,
    tz: Annotated[ZoneInfo, Depends(get_timezone)],
) -> ApiResponse:
    result = await service.list_completed(session, db, tz)
    return success_response(result.model_dump(mode="json"), request)


@router.get("/history")
async def list_history(
    request: Request,
    session: SessionDep,
    db: DbDep,
    service: ServiceDep,
    tab: HistoryTab = Query(HistoryTab.ALL),
    search: str | None = Query(None, alias="q", max_length=200),
) -> ApiResponse:
    result = await service.list_history(session, db, tab, search)
    return success_response(result.model_dump(mode="json"), request)


@router.get("/{order_id}/quote")
async def get_quote(
    request: Request, order_id: str, session: SessionDep, db: DbDep, service: ServiceDep
) -> ApiResponse:
    result = await service.get_quote(order_id, session, db)
    return success_response(result.model_dump(mode="json"), request)


@router.post("/{order_id}/pay")
async def complete_payment(
    request: Request, order_id: str, session: SessionDep, db: DbDep, service: ServiceDep
) -> ApiResponse:
    result = await service.complete_payment(order_id, session, db)
    return success_response(result.model_dump(mode="json"), request)


@router.post("/{order_id}/status")
async def update_status(
    request: Request,
    order_id: str,
    body: UpdateStatusRequest,
    session: Annotated[Session, Depends(require_staff)],
    db: DbDep,
    service: ServiceDep,
) -> ApiResponse:
    result = await service.update_status(order_id, body.status, session, db)
    return success_response(result.model_dump(mode="json"), request)


@router.get("/{order_id}/files/{index}/signed-url")
async def get_signed_file_url(
    request: Request,
    order_id: str,
    index: int,
    session: Annotated[Session, Depends(require_staff)],
    db: DbDep,
    service: ServiceDep,
) -> ApiResponse:
    result = await service.get_signed_file_url(order_id, index, session, db)
    return success_response(result.model_dump(mode="json"), request)


@router.delete("/{order_id}")
async def delete_order(
    request: Request,
    order_id: str,
    session: Annotated[Session, Depends(require_admin)],
    db: DbDep,
    service: ServiceDep,
) -> ApiResponse:
    await service.delete_order(order_id, session, db)
    return success_response({"id": order_id, "deleted": True}, request)
