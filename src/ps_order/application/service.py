# src/ps_order/application/service.py
"""OrderApplicationService — lifecycle actions and dashboard views.

Writes follow one pattern: read the current row, run the lifecycle check,
write, commit, then publish the stored row on the change feed. Nothing is
applied to any local store here; viewers see the change when the feed
event reaches them.
"""
import logging
import uuid
from collections.abc import Awaitable
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ps_admin.domain.models import ServerStatusRepositoryProtocol
from src.ps_admin.infrastructure.persistence import ServerStatusRepository
from src.ps_common.datetime_utils import local_date, utc_now
from src.ps_common.enums import ChangeType, HistoryTab, OrderStatus, UserRole
from src.ps_common.errors import (
    FetchError,
    ForbiddenError,
    InternalError,
    InvalidOrderError,
    InvalidTransitionError,
    OrderNotFoundError,
    ServerInactiveError,
    SubscriptionError,
)
from src.ps_gateway.auth.session import Session
from src.ps_order.application.schemas import (
    CompletedOrdersResponse,
    OrderListResponse,
    OrderResponse,
    QuoteResponse,
    SignedUrlResponse,
    SubmitOrderRequest,
    UploadResponse,
)
from src.ps_order.domain.events import ChangeEvent
from src.ps_order.domain.lifecycle import (
    check_payment,
    check_status_change,
    generate_otp,
    new_order_row,
)
from src.ps_order.domain.models import Order, OrderScope, order_to_row
from src.ps_order.domain.pricing import quote_cents, unit_price_cents
from src.ps_order.domain.repository import (
    BlobStoreProtocol,
    ChangeFeedProtocol,
    OrderRepositoryProtocol,
)
from src.ps_order.domain.store import OrderStore
from src.ps_order.domain.uploads import object_path_for, validate_upload
from src.ps_order.domain.views import active_orders, history, summarize_completed
from src.ps_order.infrastructure.blob_store import HttpBlobStore
from src.ps_order.infrastructure.change_feed import RedisChangeFeed
from src.ps_order.infrastructure.loader import DbOrderLoader
from src.ps_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)

ORDERS_TABLE = OrderStore.TABLE


def _check_order_id(order_id: str) -> None:
    # Ids are UUIDs; anything else cannot exist
    try:
        uuid.UUID(order_id)
    except ValueError:
        raise OrderNotFoundError(order_id) from None


class OrderApplicationService:
    def __init__(
        self,
        repo: OrderRepositoryProtocol | None = None,
        feed: ChangeFeedProtocol | None = None,
        blob_store: BlobStoreProtocol | None = None,
        server_status: ServerStatusRepositoryProtocol | None = None,
    ) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()
        self._feed: ChangeFeedProtocol = feed or RedisChangeFeed()
        self._blob_store: BlobStoreProtocol = blob_store or HttpBlobStore()
        self._server_status: ServerStatusRepositoryProtocol = (
            server_status or ServerStatusRepository()
        )

    @property
    def feed(self) -> ChangeFeedProtocol:
        return self._feed

    @property
    def repo(self) -> OrderRepositoryProtocol:
        return self._repo

    async def aclose(self) -> None:
        await self._blob_store.aclose()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _get(self, order_id: str, db: AsyncSession) -> Order | None:
        _check_order_id(order_id)
        try:
            return await self._repo.get_by_id(order_id, db)
        except SQLAlchemyError as e:
            logger.error("Reading order %s failed: %s", order_id, e)
            raise FetchError("Could not load the order, please retry") from e

    async def _get_visible(self, order_id: str, session: Session, db: AsyncSession) -> Order:
        order = await self._get(order_id, db)
        if order is None:
            raise OrderNotFoundError(order_id)
        if not session.is_staff and order.user_id != session.user_id:
            raise ForbiddenError("This order belongs to another user")
        return order

    async def _commit_write(
        self, db: AsyncSession, write: Awaitable[Order | None]
    ) -> Order | None:
        try:
            order = await write
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            logger.error("Order write failed: %s", e)
            raise FetchError("Could not save the order, please retry") from e
        return order

    async def _publish(self, change: ChangeType, order: Order) -> None:
        row = order_to_row(order)
        if change == ChangeType.DELETE:
            event = ChangeEvent(type=change, table=ORDERS_TABLE, old=row)
        else:
            event = ChangeEvent(type=change, table=ORDERS_TABLE, new=row)
        try:
            await self._feed.publish(event)
        except SubscriptionError as e:
            # Committed already; live viewers pick it up on their next load
            logger.warning("Order %s %s not broadcast: %s", order.id, change.value, e.message)

    async def _require_server_open(self, session: Session, db: AsyncSession) -> None:
        if session.role != UserRole.STUDENT:
            return
        try:
            status = await self._server_status.get(db)
        except SQLAlchemyError as e:
            raise FetchError("Could not read server status") from e
        if not status.is_active:
            raise ServerInactiveError()

    # ------------------------------------------------------------------
    # Lifecycle actions
    # ------------------------------------------------------------------

    async def upload_file(
        self,
        session: Session,
        filename: str | None,
        content_type: str | None,
        data: bytes,
        db: AsyncSession,
    ) -> UploadResponse:
        await self._require_server_open(session, db)
        filename, content_type = validate_upload(
            filename,
            content_type,
            len(data),
            settings.ALLOWED_UPLOAD_TYPES,
            settings.MAX_UPLOAD_BYTES,
        )
        path = object_path_for(session.user_id, filename)
        url = await self._blob_store.upload(path, data, content_type)
        logger.info("Stored %s for %s at %s", filename, session.user_id, path)
        return UploadResponse(name=filename, url=url)

    async def submit_order(
        self, req: SubmitOrderRequest, session: Session, db: AsyncSession
    ) -> OrderResponse:
        await self._require_server_open(session, db)
        row = new_order_row(
            user_id=session.user_id,
            files=[f.to_domain() for f in req.files],
            paper_size=req.paper_size.value,
            copies=req.copies,
            is_color_print=req.is_color_print,
            is_double_sided=req.is_double_sided,
            notes=req.notes,
            now=utc_now(),
        )
        order = await self._commit_write(db, self._repo.insert(row, db))
        if order is None:
            raise InternalError("Order insert returned no row")
        logger.info("Order %s submitted by %s (%d files)", order.id, session.user_id, len(order.files))
        await self._publish(ChangeType.INSERT, order)
        return OrderResponse.from_domain(order)

    async def complete_payment(
        self, order_id: str, session: Session, db: AsyncSession
    ) -> OrderResponse:
        order = await self._get(order_id, db)
        check_payment(order, order_id, session.user_id)
        updated = await self._commit_write(
            db, self._repo.mark_paid(order_id, session.user_id, generate_otp(), db)
        )
        if updated is None:
            # Paid or removed between the read and the write
            raise InvalidTransitionError(f"Order {order_id} is not awaiting payment")
        logger.info("Order %s paid by %s", order_id, session.user_id)
        await self._publish(ChangeType.UPDATE, updated)
        return OrderResponse.from_domain(updated)

    async def update_status(
        self, order_id: str, target: OrderStatus, session: Session, db: AsyncSession
    ) -> OrderResponse:
        if not session.is_staff:
            raise ForbiddenError("Only shop staff can change order status")
        order = await self._get(order_id, db)
        check_status_change(order, order_id, session.role, target)
        updated = await self._commit_write(
            db, self._repo.update_status(order_id, target.value, db)
        )
        if updated is None:
            # Delivered or removed between the read and the write
            raise InvalidTransitionError(f"Order {order_id} can no longer change status")
        logger.info("Order %s -> %s by %s", order_id, target.value, session.user_id)
        await self._publish(ChangeType.UPDATE, updated)
        return OrderResponse.from_domain(updated)

    async def delete_order(self, order_id: str, session: Session, db: AsyncSession) -> None:
        if session.role != UserRole.ADMIN:
            raise ForbiddenError("Admin access required")
        _check_order_id(order_id)
        deleted = await self._commit_write(db, self._repo.delete(order_id, db))
        if deleted is None:
            raise OrderNotFoundError(order_id)
        logger.info("Order %s deleted by %s", order_id, session.user_id)
        await self._publish(ChangeType.DELETE, deleted)

    async def get_signed_file_url(
        self, order_id: str, index: int, session: Session, db: AsyncSession
    ) -> SignedUrlResponse:
        if not session.is_staff:
            raise ForbiddenError("Shop staff access required")
        order = await self._get_visible(order_id, session, db)
        if not 0 <= index < len(order.files):
            raise InvalidOrderError(f"order {order_id} has no file #{index}")
        file = order.files[index]
        path = self._blob_store.object_path(file.url)
        if path is None:
            raise FetchError(f"{file.name} is not held by the document store")
        ttl = settings.SIGNED_URL_TTL_SECONDS
        url = await self._blob_store.get_signed_url(path, ttl)
        return SignedUrlResponse(name=file.name, url=url, expires_in=ttl)

    async def get_quote(self, order_id: str, session: Session, db: AsyncSession) -> QuoteResponse:
        order = await self._get_visible(order_id, session, db)
        return QuoteResponse.from_cents(order, unit_price_cents(order), quote_cents(order))

    # ------------------------------------------------------------------
    # Views (one bulk load per request)
    # ------------------------------------------------------------------

    async def load_store(self, session: Session, db: AsyncSession) -> OrderStore:
        store = OrderStore(
            DbOrderLoader(self._repo, db),
            OrderScope.for_viewer(session.user_id, session.role),
        )
        await store.load()
        return store

    async def list_orders(self, session: Session, db: AsyncSession) -> OrderListResponse:
        store = await self.load_store(session, db)
        return OrderListResponse.from_orders(list(store.snapshot()))

    async def list_active(self, session: Session, db: AsyncSession) -> OrderListResponse:
        store = await self.load_store(session, db)
        return OrderListResponse.from_orders(active_orders(store.snapshot()))

    async def list_completed(
        self, session: Session, db: AsyncSession, tz: ZoneInfo
    ) -> CompletedOrdersResponse:
        store = await self.load_store(session, db)
        today = local_date(utc_now(), tz)
        return CompletedOrdersResponse.from_summary(
            summarize_completed(store.snapshot(), today, tz)
        )

    async def list_history(
        self, session: Session, db: AsyncSession, tab: HistoryTab, search: str | None
    ) -> OrderListResponse:
        store = await self.load_store(session, db)
        return OrderListResponse.from_orders(history(store.snapshot(), tab, search))
