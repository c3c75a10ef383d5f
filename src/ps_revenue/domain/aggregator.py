"""Daily revenue buckets derived from an order snapshot.

Pure function of its inputs: the live session and the REST endpoint both
recompute from the full snapshot rather than updating buckets in place.

Pricing is a placeholder: every copy earns a flat ``unit_rate_cents`` and a
fixed share ``expense_ratio_bps`` of that is booked as expense. Both come
from settings so a real pricing policy can replace them.
"""
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from zoneinfo import ZoneInfo

from src.ps_common.datetime_utils import local_date_key
from src.ps_common.money import apply_bps, validate_bps
from src.ps_order.domain.models import Order
from src.ps_order.domain.status import TERMINAL_STATUSES


@dataclass(frozen=True)
class RevenuePolicy:
    unit_rate_cents: int = 200
    expense_ratio_bps: int = 5000

    def __post_init__(self) -> None:
        if self.unit_rate_cents < 0:
            raise ValueError(f"unit_rate_cents must be >= 0, got {self.unit_rate_cents}")
        validate_bps(self.expense_ratio_bps)


@dataclass
class RevenueBucket:
    date: str  # YYYY-MM-DD in the viewer's zone
    orders: int = 0
    revenue: int = 0
    expenses: int = 0
    profit: int = 0


@dataclass(frozen=True)
class RevenueTotals:
    orders: int
    revenue: int
    expenses: int
    profit: int


def is_revenue_bearing(order: Order) -> bool:
    """Paid, or finished. Either is enough: old rows may lack payment_status."""
    return order.is_paid or order.status in TERMINAL_STATUSES


def aggregate_revenue(
    orders: Iterable[Order], policy: RevenuePolicy, tz: ZoneInfo
) -> list[RevenueBucket]:
    buckets: dict[str, RevenueBucket] = {}
    for order in orders:
        if not is_revenue_bearing(order) or order.created_at is None:
            continue
        key = local_date_key(order.created_at, tz)
        bucket = buckets.setdefault(key, RevenueBucket(date=key))
        order_revenue = order.copies * policy.unit_rate_cents
        expense = apply_bps(order_revenue, policy.expense_ratio_bps)
        bucket.orders += 1
        bucket.revenue += order_revenue
        bucket.expenses += expense
        bucket.profit += order_revenue - expense
    return [buckets[key] for key in sorted(buckets)]


def filter_buckets(
    buckets: Iterable[RevenueBucket], start: date | None = None, end: date | None = None
) -> list[RevenueBucket]:
    """Inclusive date range; a lone start selects that single day."""
    if start is not None and end is None:
        end = start
    result = []
    for bucket in buckets:
        day = date.fromisoformat(bucket.date)
        if start is not None and day < start:
            continue
        if end is not None and day > end:
            continue
        result.append(bucket)
    return result


def summarize(buckets: Iterable[RevenueBucket]) -> RevenueTotals:
    items = list(buckets)
    return RevenueTotals(
        orders=sum(b.orders for b in items),
        revenue=sum(b.revenue for b in items),
        expenses=sum(b.expenses for b in items),
        profit=sum(b.profit for b in items),
    )
