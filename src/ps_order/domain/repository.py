# src/ps_order/domain/repository.py
"""Port protocols — interface contracts for the external collaborators."""
from collections.abc import Callable
from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.ps_common.errors import SubscriptionError
from src.ps_order.domain.events import ChangeEvent
from src.ps_order.domain.models import Order, OrderScope


class OrderRepositoryProtocol(Protocol):
    async def insert(self, row: dict[str, Any], db: AsyncSession) -> Order: ...

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None: ...

    async def list_orders(self, scope: OrderScope, db: AsyncSession) -> list[Order]: ...

    async def mark_paid(
        self, order_id: str, user_id: str, otp: str, db: AsyncSession
    ) -> Order | None: ...

    async def update_status(
        self, order_id: str, status: str, db: AsyncSession
    ) -> Order | None: ...

    async def delete(self, order_id: str, db: AsyncSession) -> Order | None: ...


class OrderLoaderProtocol(Protocol):
    """Bulk read used by OrderStore.load; raises FetchError on failure."""

    async def fetch_orders(self, scope: OrderScope) -> list[Order]: ...


class ChangeFeedProtocol(Protocol):
    async def publish(self, event: ChangeEvent) -> None: ...

    async def subscribe(
        self,
        table: str,
        scope: OrderScope | None,
        on_event: Callable[[ChangeEvent], None],
        on_error: Callable[[SubscriptionError], None],
    ) -> Any: ...

    async def unsubscribe(self, handle: Any) -> None: ...


class BlobStoreProtocol(Protocol):
    async def upload(self, path: str, data: bytes, content_type: str) -> str: ...

    async def get_signed_url(self, path: str, ttl_seconds: int) -> str: ...

    def object_path(self, url: str) -> str | None: ...

    async def aclose(self) -> None: ...
