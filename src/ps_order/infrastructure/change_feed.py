"""Row change feed over Redis pub/sub.

One channel per table (``{prefix}:{table}``). Messages are JSON:

    {"type": "UPDATE", "table": "orders", "new": {...row...}, "old": {"id": "..."}}

Delivery order is per connection only. A dropped connection or a failing
``on_event`` handler is reported through ``on_error`` and the subscription
ends; resubscribing (and reloading the store) is up to the caller.
"""
import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

import redis.asyncio as aioredis
from pydantic import BaseModel, ValidationError
from redis.exceptions import RedisError

from config.settings import settings
from src.ps_common.enums import ChangeType
from src.ps_common.errors import SubscriptionError
from src.ps_common.redis_client import get_redis
from src.ps_order.domain.events import ChangeEvent
from src.ps_order.domain.models import OrderScope

logger = logging.getLogger(__name__)


class ChangeMessage(BaseModel):
    """Wire format of one change event."""

    type: ChangeType
    table: str
    new: dict[str, Any] = {}
    old: dict[str, Any] = {}

    @classmethod
    def from_event(cls, event: ChangeEvent) -> "ChangeMessage":
        return cls(type=event.type, table=event.table, new=dict(event.new), old=dict(event.old))

    def to_event(self) -> ChangeEvent:
        return ChangeEvent(type=self.type, table=self.table, new=self.new, old=self.old)


@dataclass
class Subscription:
    channel: str
    pubsub: Any
    task: asyncio.Task[None] | None = None
    closed: bool = field(default=False)


def channel_for(table: str) -> str:
    return f"{settings.ORDER_CHANGES_CHANNEL_PREFIX}:{table}"


class RedisChangeFeed:
    def __init__(
        self, redis_factory: Callable[[], Awaitable[aioredis.Redis]] = get_redis
    ) -> None:
        self._redis_factory = redis_factory

    async def publish(self, event: ChangeEvent) -> None:
        payload = ChangeMessage.from_event(event).model_dump_json()
        try:
            redis = await self._redis_factory()
            await redis.publish(channel_for(event.table), payload)
        except RedisError as e:
            # The write itself is committed; viewers catch up on their next load
            logger.warning("Could not publish %s on %s: %s", event.type.value, event.table, e)
            raise SubscriptionError(str(e)) from e

    async def subscribe(
        self,
        table: str,
        scope: OrderScope | None,
        on_event: Callable[[ChangeEvent], None],
        on_error: Callable[[SubscriptionError], None],
    ) -> Subscription:
        channel = channel_for(table)
        try:
            redis = await self._redis_factory()
            pubsub = redis.pubsub(ignore_subscribe_messages=True)
            await pubsub.subscribe(channel)
        except RedisError as e:
            raise SubscriptionError(str(e)) from e

        sub = Subscription(channel=channel, pubsub=pubsub)
        sub.task = asyncio.create_task(
            self._pump(sub, scope, on_event, on_error), name=f"feed:{channel}"
        )
        logger.debug("Subscribed to %s (scope=%s)", channel, scope)
        return sub

    async def _pump(
        self,
        sub: Subscription,
        scope: OrderScope | None,
        on_event: Callable[[ChangeEvent], None],
        on_error: Callable[[SubscriptionError], None],
    ) -> None:
        try:
            async for message in sub.pubsub.listen():
                if sub.closed:
                    break
                if message.get("type") != "message":
                    continue
                event = _decode(message["data"])
                if event is None:
                    continue
                if scope is not None and event.owner_id is not None and not scope.matches(
                    event.owner_id
                ):
                    continue
                try:
                    on_event(event)
                except Exception as e:
                    # Mirror may now be stale; the caller resubscribes and reloads
                    logger.exception("Change handler failed on %s", sub.channel)
                    on_error(SubscriptionError(f"change handler failed: {e}"))
                    return
        except RedisError as e:
            if not sub.closed:
                logger.warning("Change feed %s dropped: %s", sub.channel, e)
                on_error(SubscriptionError(str(e)))

    async def unsubscribe(self, handle: Subscription) -> None:
        handle.closed = True
        if handle.task is not None:
            handle.task.cancel()
            try:
                await handle.task
            except asyncio.CancelledError:
                pass
        try:
            await handle.pubsub.unsubscribe(handle.channel)
            await handle.pubsub.aclose()
        except RedisError as e:
            logger.debug("Ignoring error while closing %s: %s", handle.channel, e)


def _decode(data: str | bytes) -> ChangeEvent | None:
    try:
        return ChangeMessage.model_validate(json.loads(data)).to_event()
    except (ValueError, ValidationError) as e:
        logger.warning("Dropping malformed change message: %s", e)
        return None
