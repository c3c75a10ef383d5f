# src/ps_admin/application/service.py
"""Admin application service: the server-active switch."""
import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from src.ps_admin.domain.models import ServerStatus, ServerStatusRepositoryProtocol
from src.ps_admin.infrastructure.persistence import ServerStatusRepository
from src.ps_common.enums import ChangeType
from src.ps_common.errors import FetchError, SubscriptionError
from src.ps_order.domain.events import ChangeEvent
from src.ps_order.domain.repository import ChangeFeedProtocol
from src.ps_order.infrastructure.change_feed import RedisChangeFeed

logger = logging.getLogger(__name__)

SERVER_STATUS_TABLE = "server_status"


class AdminService:
    def __init__(
        self,
        repo: ServerStatusRepositoryProtocol | None = None,
        feed: ChangeFeedProtocol | None = None,
    ) -> None:
        self._repo: ServerStatusRepositoryProtocol = repo or ServerStatusRepository()
        self._feed: ChangeFeedProtocol = feed or RedisChangeFeed()

    async def get_server_status(self, db: AsyncSession) -> ServerStatus:
        try:
            return await self._repo.get(db)
        except SQLAlchemyError as e:
            raise FetchError("Could not read server status") from e

    async def toggle_server(self, db: AsyncSession, actor_id: str) -> ServerStatus:
        try:
            current = await self._repo.get(db)
            status = await self._repo.set_active(not current.is_active, db)
            await db.commit()
        except SQLAlchemyError as e:
            await db.rollback()
            raise FetchError("Could not update server status") from e

        logger.info(
            "Server %s by %s", "activated" if status.is_active else "deactivated", actor_id
        )
        event = ChangeEvent(
            type=ChangeType.UPDATE,
            table=SERVER_STATUS_TABLE,
            new={
                "id": 1,
                "is_active": status.is_active,
                "last_updated": status.last_updated.isoformat() if status.last_updated else None,
            },
        )
        try:
            await self._feed.publish(event)
        except SubscriptionError as e:
            logger.warning("Server status change not broadcast: %s", e.message)
        return status
