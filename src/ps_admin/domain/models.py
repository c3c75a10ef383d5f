"""Server status: the shop's open/closed switch for new orders."""
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession


@dataclass(frozen=True)
class ServerStatus:
    is_active: bool
    last_updated: datetime | None = None


class ServerStatusRepositoryProtocol(Protocol):
    async def get(self, db: AsyncSession) -> ServerStatus: ...

    async def set_active(self, is_active: bool, db: AsyncSession) -> ServerStatus: ...
