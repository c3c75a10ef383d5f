"""Read-only projections of a store snapshot used by the dashboards."""
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from zoneinfo import ZoneInfo

from src.ps_common.datetime_utils import local_date
from src.ps_common.enums import HistoryTab, OrderStatus
from src.ps_order.domain.models import Order
from src.ps_order.domain.status import TERMINAL_STATUSES

_HISTORY_TABS: dict[HistoryTab, frozenset[OrderStatus]] = {
    HistoryTab.PROCESSING: frozenset({OrderStatus.PAID, OrderStatus.PRINTING}),
    HistoryTab.READY: frozenset({OrderStatus.READY_TO_PRINT}),
    HistoryTab.COMPLETED: frozenset({OrderStatus.COMPLETED}),
    HistoryTab.DELIVERED: frozenset({OrderStatus.DELIVERED}),
}


@dataclass(frozen=True)
class CompletedSummary:
    orders: list[Order]
    completed_today: int
    delivered_today: int
    copies_today: int


def active_orders(orders: Iterable[Order]) -> list[Order]:
    """Paid orders still being worked on: the shop queue and the student tracker."""
    return [o for o in orders if o.is_active]


def completed_orders(orders: Iterable[Order]) -> list[Order]:
    return [o for o in orders if o.status in TERMINAL_STATUSES]


def summarize_completed(orders: Iterable[Order], today: date, tz: ZoneInfo) -> CompletedSummary:
    done = completed_orders(orders)
    todays = [o for o in done if o.created_at and local_date(o.created_at, tz) == today]
    return CompletedSummary(
        orders=done,
        completed_today=sum(1 for o in todays if o.status == OrderStatus.COMPLETED),
        delivered_today=sum(1 for o in todays if o.status == OrderStatus.DELIVERED),
        copies_today=sum(o.copies for o in todays),
    )


def _matches_search(order: Order, term: str) -> bool:
    needle = term.lower()
    if needle in order.id.lower() or needle in order.user_id.lower():
        return True
    return any(needle in f.name.lower() for f in order.files)


def history(
    orders: Iterable[Order], tab: HistoryTab = HistoryTab.ALL, search: str | None = None
) -> list[Order]:
    """Paid orders for one history tab, optionally narrowed by a search term."""
    wanted = _HISTORY_TABS.get(tab)
    result = []
    for order in orders:
        if not order.is_paid:
            continue
        if wanted is not None and order.status not in wanted:
            continue
        if search and not _matches_search(order, search):
            continue
        result.append(order)
    return result
