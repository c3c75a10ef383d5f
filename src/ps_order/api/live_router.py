# src/ps_order/api/live_router.py
"""Websocket that streams a viewer's live order snapshot.

Connect with ``/api/v1/orders/live?token=<jwt>&tz=<zone>``. Client commands:
``{"action": "reload"}`` refetches, ``{"action": "resubscribe"}`` reopens the
change feed and refetches.
"""
import asyncio
import contextlib
import json
import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status

from config.settings import settings
from src.ps_common.datetime_utils import resolve_timezone
from src.ps_common.errors import InvalidTokenError
from src.ps_gateway.auth.jwt_handler import decode_session
from src.ps_order.api.router import get_order_service
from src.ps_order.application.live import LiveOrderSession
from src.ps_order.application.service import OrderApplicationService
from src.ps_order.infrastructure.loader import DbOrderLoader
from src.ps_revenue.application.service import policy_from_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


async def _send_frames(websocket: WebSocket, live: LiveOrderSession) -> None:
    try:
        while True:
            frame = await live.next_frame()
            await websocket.send_json(frame)
    except WebSocketDisconnect:
        logger.debug("Live client went away while sending")


@router.websocket("/live")
async def live_orders(
    websocket: WebSocket,
    service: Annotated[OrderApplicationService, Depends(get_order_service)],
    token: str = Query(...),
    tz: str | None = Query(None),
) -> None:
    try:
        session = decode_session(token)
        zone = resolve_timezone(tz or settings.DEFAULT_TIMEZONE)
    except (InvalidTokenError, ValueError) as e:
        logger.info("Live connection refused: %s", e)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    live = LiveOrderSession(
        session,
        feed=service.feed,
        loader=DbOrderLoader(service.repo),
        tz=zone,
        policy=policy_from_settings(),
    )
    sender = asyncio.create_task(_send_frames(websocket, live))
    try:
        await live.start()
        async for text in websocket.iter_text():
            try:
                message = json.loads(text)
            except ValueError:
                live.send_error(422, "command is not valid JSON")
                continue
            action = message.get("action") if isinstance(message, dict) else None
            if action == "reload":
                await live.reload()
            elif action == "resubscribe":
                await live.resubscribe()
            else:
                live.send_error(422, f"unknown action: {action}")
    except WebSocketDisconnect:
        pass
    finally:
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sender
        await live.close()
        logger.debug("Live connection for %s ended", session.user_id)
