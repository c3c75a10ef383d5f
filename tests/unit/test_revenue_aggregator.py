# tests/unit/test_revenue_aggregator.py
"""Revenue buckets: per-day totals in the viewer's zone, integer money."""
from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

import pytest

from src.ps_common.enums import OrderStatus, PaymentStatus
from src.ps_revenue.domain.aggregator import (
    RevenueBucket,
    RevenuePolicy,
    aggregate_revenue,
    filter_buckets,
    is_revenue_bearing,
    summarize,
)
from order_factories import make_order, make_paid

UTC_ZONE = ZoneInfo("UTC")
IST = ZoneInfo("Asia/Kolkata")
DAY = datetime(2024, 3, 10, 6, 0, tzinfo=UTC)


class TestRevenuePolicy:
    def test_defaults(self) -> None:
        policy = RevenuePolicy()
        assert policy.unit_rate_cents == 200
        assert policy.expense_ratio_bps == 5000

    def test_rejects_bad_ratio(self) -> None:
        with pytest.raises(ValueError):
            RevenuePolicy(expense_ratio_bps=10001)

    def test_rejects_negative_rate(self) -> None:
        with pytest.raises(ValueError):
            RevenuePolicy(unit_rate_cents=-1)


class TestRevenueBearing:
    def test_paid_counts(self) -> None:
        assert is_revenue_bearing(make_paid())

    def test_finished_without_payment_flag_counts(self) -> None:
        assert is_revenue_bearing(make_order(status=OrderStatus.DELIVERED))

    def test_pending_does_not_count(self) -> None:
        assert not is_revenue_bearing(make_order())


class TestAggregateRevenue:
    def test_single_day_scenario(self) -> None:
        # Rate 2 per copy, half booked as expense
        policy = RevenuePolicy(unit_rate_cents=2, expense_ratio_bps=5000)
        orders = [
            make_paid(id="a", copies=1, created_at=DAY),
            make_paid(id="b", copies=2, created_at=DAY.replace(hour=9)),
            make_order(id="c", copies=3, status=OrderStatus.COMPLETED, created_at=DAY.replace(hour=12)),
        ]

        buckets = aggregate_revenue(orders, policy, UTC_ZONE)

        assert buckets == [RevenueBucket(date="2024-03-10", orders=3, revenue=12, expenses=6, profit=6)]

    def test_pending_orders_excluded(self) -> None:
        orders = [make_paid(id="a", copies=2), make_order(id="b", copies=50)]

        buckets = aggregate_revenue(orders, RevenuePolicy(), UTC_ZONE)

        assert buckets[0].orders == 1
        assert buckets[0].revenue == 400

    def test_buckets_follow_viewer_zone(self) -> None:
        # 20:00 UTC lands on the next calendar day in Kolkata
        orders = [
            make_paid(id="a", created_at=DAY),
            make_paid(id="b", created_at=DAY.replace(hour=20)),
        ]

        utc_keys = [b.date for b in aggregate_revenue(orders, RevenuePolicy(), UTC_ZONE)]
        ist_keys = [b.date for b in aggregate_revenue(orders, RevenuePolicy(), IST)]

        assert utc_keys == ["2024-03-10"]
        assert ist_keys == ["2024-03-10", "2024-03-11"]

    def test_buckets_sorted_ascending(self) -> None:
        orders = [
            make_paid(id="a", created_at=datetime(2024, 3, 12, tzinfo=UTC)),
            make_paid(id="b", created_at=datetime(2024, 3, 1, tzinfo=UTC)),
        ]
        keys = [b.date for b in aggregate_revenue(orders, RevenuePolicy(), UTC_ZONE)]
        assert keys == ["2024-03-01", "2024-03-12"]

    def test_expense_floored_and_parts_add_up(self) -> None:
        policy = RevenuePolicy(unit_rate_cents=3, expense_ratio_bps=5000)
        bucket = aggregate_revenue([make_paid(copies=1)], policy, UTC_ZONE)[0]
        assert bucket.expenses == 1
        assert bucket.profit == 2
        assert bucket.expenses + bucket.profit == bucket.revenue

    def test_orders_without_timestamp_skipped(self) -> None:
        assert aggregate_revenue([make_paid(created_at=None)], RevenuePolicy(), UTC_ZONE) == []

    def test_legacy_paid_label(self) -> None:
        order = make_order(status=OrderStatus.PRINTING, payment_status=PaymentStatus.PAID)
        assert aggregate_revenue([order], RevenuePolicy(), UTC_ZONE)[0].orders == 1


class TestFilterAndSummarize:
    def _buckets(self) -> list[RevenueBucket]:
        return [
            RevenueBucket(date="2024-03-01", orders=1, revenue=200, expenses=100, profit=100),
            RevenueBucket(date="2024-03-05", orders=2, revenue=600, expenses=300, profit=300),
            RevenueBucket(date="2024-03-09", orders=1, revenue=400, expenses=200, profit=200),
        ]

    def test_no_bounds_keeps_all(self) -> None:
        assert len(filter_buckets(self._buckets())) == 3

    def test_inclusive_range(self) -> None:
        result = filter_buckets(self._buckets(), date(2024, 3, 1), date(2024, 3, 5))
        assert [b.date for b in result] == ["2024-03-01", "2024-03-05"]

    def test_lone_start_selects_single_day(self) -> None:
        result = filter_buckets(self._buckets(), date(2024, 3, 5))
        assert [b.date for b in result] == ["2024-03-05"]

    def test_lone_end(self) -> None:
        result = filter_buckets(self._buckets(), end=date(2024, 3, 4))
        assert [b.date for b in result] == ["2024-03-01"]

    def test_summarize(self) -> None:
        totals = summarize(self._buckets())
        assert (totals.orders, totals.revenue, totals.expenses, totals.profit) == (4, 1200, 600, 600)

    def test_summarize_empty(self) -> None:
        totals = summarize([])
        assert totals.revenue == 0
