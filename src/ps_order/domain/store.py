"""OrderStore — session-scoped mirror of the orders a viewer can see.

State changes only through two entry points: ``load`` (bulk read, replaces
the snapshot) and ``apply_change`` (one feed event). Events are applied in
the order they are handed in; the store never reorders them, so the last
event applied for an id wins.

Replay safety: the feed may be resubscribed and the store reloaded at any
time. Inserts are idempotent, events that land while a load is in flight
are held back and replayed on top of the loaded rows, and deleted ids are
remembered until the next load so a late event cannot bring them back.
"""
import logging
from collections.abc import Callable, Sequence

from src.ps_common.enums import ChangeType
from src.ps_order.domain.events import ChangeEvent
from src.ps_order.domain.models import Order, OrderScope, merge_row, order_from_row
from src.ps_order.domain.repository import OrderLoaderProtocol

logger = logging.getLogger(__name__)

StoreListener = Callable[[tuple[Order, ...]], None]


def _newest_first(orders: Sequence[Order]) -> list[Order]:
    # Rows without created_at sort last
    return sorted(
        orders,
        key=lambda o: o.created_at.timestamp() if o.created_at else float("-inf"),
        reverse=True,
    )


class OrderStore:
    TABLE = "orders"

    def __init__(self, loader: OrderLoaderProtocol, scope: OrderScope | None = None) -> None:
        self._loader = loader
        self._scope = scope or OrderScope()
        self._orders: list[Order] = []
        self._tombstones: set[str] = set()
        self._listeners: list[StoreListener] = []
        self._pending: list[ChangeEvent] = []
        self._load_generation = 0
        self._loading = False
        self._closed = False

    @property
    def scope(self) -> OrderScope:
        return self._scope

    @property
    def closed(self) -> bool:
        return self._closed

    def snapshot(self) -> tuple[Order, ...]:
        return tuple(self._orders)

    def get(self, order_id: str) -> Order | None:
        for order in self._orders:
            if order.id == order_id:
                return order
        return None

    def add_listener(self, listener: StoreListener) -> Callable[[], None]:
        """Register a change callback; returns a function that removes it."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    async def load(self, scope: OrderScope | None = None) -> tuple[Order, ...]:
        """Replace the snapshot with one bulk read, newest first.

        Raises FetchError and keeps the previous snapshot if the read fails.
        """
        if self._closed:
            return self.snapshot()
        if scope is not None:
            self._scope = scope
        self._load_generation += 1
        generation = self._load_generation
        self._loading = True
        try:
            rows = await self._loader.fetch_orders(self._scope)
        except Exception:
            if generation == self._load_generation:
                self._finish_load(None)
            raise

        if self._closed:
            logger.debug("Discarding load result for closed store")
            return ()
        if generation != self._load_generation:
            # A newer load superseded this one
            return self.snapshot()
        self._finish_load([o for o in rows if self._scope.matches(o.user_id)])
        logger.debug("Order store loaded %d orders", len(self._orders))
        return self.snapshot()

    def _finish_load(self, rows: list[Order] | None) -> None:
        self._loading = False
        if rows is not None:
            self._orders = _newest_first(rows)
            self._tombstones.clear()
        pending, self._pending = self._pending, []
        for event in pending:
            self._apply(event)
        self._notify()

    def apply_change(self, event: ChangeEvent) -> bool:
        """Apply one feed event. Returns True if the snapshot changed."""
        if self._closed or event.table != self.TABLE:
            return False
        if self._loading:
            self._pending.append(event)
            return False
        changed = self._apply(event)
        if changed:
            self._notify()
        return changed

    def _apply(self, event: ChangeEvent) -> bool:
        try:
            return self._apply_row(event)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Skipping malformed %s event: %s", event.type.value, e)
            return False

    def _apply_row(self, event: ChangeEvent) -> bool:
        order_id = event.row_id
        if order_id is None:
            logger.warning("Ignoring %s event without row id", event.type.value)
            return False

        if event.type == ChangeType.DELETE:
            self._tombstones.add(order_id)
            before = len(self._orders)
            self._orders = [o for o in self._orders if o.id != order_id]
            return len(self._orders) != before

        if order_id in self._tombstones:
            logger.debug("Ignoring %s for deleted order %s", event.type.value, order_id)
            return False

        if event.type == ChangeType.INSERT:
            if not self._scope.matches(event.owner_id):
                return False
            if self.get(order_id) is not None:
                return False
            self._orders.insert(0, order_from_row(event.new))
            return True

        # UPDATE: only rows already mirrored
        for index, existing in enumerate(self._orders):
            if existing.id == order_id:
                merged = merge_row(existing, event.new)
                if not self._scope.matches(merged.user_id):
                    del self._orders[index]
                    return True
                if merged == existing:
                    return False
                self._orders[index] = merged
                return True
        return False

    def _notify(self) -> None:
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            listener(snapshot)

    def close(self) -> None:
        """Stop applying events; later loads and events are discarded."""
        self._closed = True
        self._listeners.clear()
        self._pending.clear()
