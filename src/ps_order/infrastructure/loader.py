"""Bulk order read for OrderStore.load, with errors mapped to FetchError."""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.ps_common.database import session_scope
from src.ps_common.errors import FetchError
from src.ps_order.domain.models import Order, OrderScope
from src.ps_order.domain.repository import OrderRepositoryProtocol
from src.ps_order.infrastructure.persistence import OrderRepository

logger = logging.getLogger(__name__)


class DbOrderLoader:
    """Reads through the request's session when given one, else opens its own."""

    def __init__(
        self,
        repo: OrderRepositoryProtocol | None = None,
        db: AsyncSession | None = None,
    ) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()
        self._db = db

    async def fetch_orders(self, scope: OrderScope) -> list[Order]:
        try:
            if self._db is not None:
                return await self._repo.list_orders(scope, self._db)
            async with session_scope() as db:
                return await self._repo.list_orders(scope, db)
        except SQLAlchemyError as e:
            logger.error("Order load failed for scope %s: %s", scope, e)
            raise FetchError("Could not load orders, please retry") from e
