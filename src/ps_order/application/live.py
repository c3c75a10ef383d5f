"""LiveOrderSession — one viewer's order mirror kept current by the feed.

Start-up subscribes first and loads second: events that arrive during the
load are held by the store and replayed on top of the loaded rows, so
nothing falls between the two. Store changes queue a snapshot frame (plus
recomputed revenue for staff) for the websocket to send. At most one
snapshot waits in the queue; it is rendered from the latest store state
when taken, so a slow reader skips intermediate states.

Frames:
    {"type": "snapshot", "degraded": bool, "orders": [...], "revenue": {...}|null}
    {"type": "server_status", "is_active": bool}
    {"type": "warning", "code": int, "message": str}      # feed down, data may be stale
    {"type": "error", "code": int, "message": str, "retry": bool}   # load failed or bad command
"""
import asyncio
import logging
from typing import Any
from zoneinfo import ZoneInfo

from src.ps_admin.application.service import SERVER_STATUS_TABLE
from src.ps_common.errors import FetchError, SubscriptionError
from src.ps_gateway.auth.session import Session
from src.ps_order.application.schemas import OrderResponse
from src.ps_order.domain.events import ChangeEvent
from src.ps_order.domain.models import Order, OrderScope
from src.ps_order.domain.repository import ChangeFeedProtocol, OrderLoaderProtocol
from src.ps_order.domain.store import OrderStore
from src.ps_revenue.application.service import build_revenue_report
from src.ps_revenue.domain.aggregator import RevenuePolicy

logger = logging.getLogger(__name__)

# Queue placeholder for the next snapshot, rendered in next_frame
_SNAPSHOT_PENDING: dict[str, Any] = {"type": "snapshot"}


class LiveOrderSession:
    def __init__(
        self,
        session: Session,
        feed: ChangeFeedProtocol,
        loader: OrderLoaderProtocol,
        tz: ZoneInfo,
        policy: RevenuePolicy,
    ) -> None:
        self._session = session
        self._feed = feed
        self._tz = tz
        self._policy = policy
        self.store = OrderStore(loader, OrderScope.for_viewer(session.user_id, session.role))
        self.frames: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self.degraded = False
        self._snapshot_queued = False
        self._handles: list[Any] = []
        self._closed = False
        self.store.add_listener(self._on_store_change)

    async def start(self) -> bool:
        await self._subscribe()
        return await self.reload()

    async def reload(self) -> bool:
        """Fresh bulk load. On failure queues an error frame; the viewer may retry."""
        try:
            await self.store.load()
        except FetchError as e:
            logger.warning("Live load failed for %s: %s", self._session.user_id, e.message)
            self.send_error(e.code, e.message, retry=True)
            return False
        return True

    async def resubscribe(self) -> bool:
        """Drop the feed connection, open a new one, then reload."""
        await self._unsubscribe_all()
        self.degraded = False
        await self._subscribe()
        return await self.reload()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.store.close()
        await self._unsubscribe_all()
        logger.debug("Live session closed for %s", self._session.user_id)

    async def _subscribe(self) -> None:
        try:
            self._handles.append(
                await self._feed.subscribe(
                    OrderStore.TABLE, self.store.scope, self.store.apply_change, self._on_feed_error
                )
            )
            self._handles.append(
                await self._feed.subscribe(
                    SERVER_STATUS_TABLE, None, self._on_server_status, self._on_feed_error
                )
            )
        except SubscriptionError as e:
            self._on_feed_error(e)

    async def _unsubscribe_all(self) -> None:
        handles, self._handles = self._handles, []
        for handle in handles:
            await self._feed.unsubscribe(handle)

    def _put(self, frame: dict[str, Any]) -> None:
        if not self._closed:
            self.frames.put_nowait(frame)

    def send_error(self, code: int, message: str, retry: bool = False) -> None:
        self._put({"type": "error", "code": code, "message": message, "retry": retry})

    async def next_frame(self) -> dict[str, Any]:
        frame = await self.frames.get()
        if frame is _SNAPSHOT_PENDING:
            self._snapshot_queued = False
            return self.snapshot_frame(self.store.snapshot())
        return frame

    def snapshot_frame(self, orders: tuple[Order, ...]) -> dict[str, Any]:
        revenue = None
        if self._session.is_staff:
            revenue = build_revenue_report(orders, self._policy, self._tz).model_dump(mode="json")
        return {
            "type": "snapshot",
            "degraded": self.degraded,
            "orders": [OrderResponse.from_domain(o).model_dump(mode="json") for o in orders],
            "revenue": revenue,
        }

    def _on_store_change(self, orders: tuple[Order, ...]) -> None:
        if not self._snapshot_queued:
            self._snapshot_queued = True
            self._put(_SNAPSHOT_PENDING)

    def _on_server_status(self, event: ChangeEvent) -> None:
        self._put({"type": "server_status", "is_active": bool(event.new.get("is_active"))})

    def _on_feed_error(self, error: SubscriptionError) -> None:
        self.degraded = True
        self._put({"type": "warning", "code": error.code, "message": error.message})
