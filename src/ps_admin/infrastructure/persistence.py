"""ServerStatusRepository — single-row table ``server_status`` (id = 1)."""
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ps_admin.domain.models import ServerStatus
from src.ps_common.datetime_utils import utc_now

_GET_STATUS_SQL = text("SELECT is_active, last_updated FROM server_status WHERE id = 1")

_UPSERT_STATUS_SQL = text("""
    INSERT INTO server_status (id, is_active, last_updated)
    VALUES (1, :is_active, :last_updated)
    ON CONFLICT (id) DO UPDATE
    SET is_active = EXCLUDED.is_active, last_updated = EXCLUDED.last_updated
    RETURNING is_active, last_updated
""")


class ServerStatusRepository:
    async def get(self, db: AsyncSession) -> ServerStatus:
        row = (await db.execute(_GET_STATUS_SQL)).fetchone()
        if row is None:
            # No row yet: the shop starts open
            return ServerStatus(is_active=True)
        return ServerStatus(is_active=bool(row.is_active), last_updated=row.last_updated)

    async def set_active(self, is_active: bool, db: AsyncSession) -> ServerStatus:
        row = (
            await db.execute(
                _UPSERT_STATUS_SQL, {"is_active": is_active, "last_updated": utc_now()}
            )
        ).fetchone()
        return ServerStatus(is_active=bool(row.is_active), last_updated=row.last_updated)
