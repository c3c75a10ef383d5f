"""Tests for the dashboard projections over a snapshot."""
from datetime import UTC, date, datetime
from zoneinfo import ZoneInfo

from src.ps_common.enums import HistoryTab, OrderStatus
from src.ps_order.domain.models import OrderFile
from src.ps_order.domain.views import (
    active_orders,
    completed_orders,
    history,
    summarize_completed,
)
from order_factories import OTHER_STUDENT_ID, make_order, make_paid

IST = ZoneInfo("Asia/Kolkata")


def _snapshot():
    return [
        make_order(id="pending"),
        make_paid(id="paid"),
        make_paid(id="ready", status=OrderStatus.READY_TO_PRINT),
        make_paid(id="printing", status=OrderStatus.PRINTING),
        make_paid(id="completed", status=OrderStatus.COMPLETED, copies=3),
        make_paid(id="delivered", status=OrderStatus.DELIVERED, copies=2),
    ]


class TestActiveOrders:
    def test_paid_non_terminal_only(self) -> None:
        ids = [o.id for o in active_orders(_snapshot())]
        assert ids == ["paid", "ready", "printing"]

    def test_delivered_is_not_active(self) -> None:
        assert "delivered" not in [o.id for o in active_orders(_snapshot())]

    def test_unknown_label_is_not_active(self) -> None:
        assert active_orders([make_paid(status="Archived")]) == []


class TestCompletedOrders:
    def test_includes_completed_and_delivered(self) -> None:
        ids = [o.id for o in completed_orders(_snapshot())]
        assert ids == ["completed", "delivered"]

    def test_today_counters_use_viewer_zone(self) -> None:
        # 2024-03-10 20:00 UTC is already 2024-03-11 in Kolkata
        late = datetime(2024, 3, 10, 20, 0, tzinfo=UTC)
        orders = [
            make_paid(id="c1", status=OrderStatus.COMPLETED, copies=3, created_at=late),
            make_paid(id="d1", status=OrderStatus.DELIVERED, copies=2, created_at=late),
            make_paid(id="d0", status=OrderStatus.DELIVERED, copies=9),
        ]

        summary = summarize_completed(orders, date(2024, 3, 11), IST)

        assert len(summary.orders) == 3
        assert summary.completed_today == 1
        assert summary.delivered_today == 1
        assert summary.copies_today == 5


class TestHistory:
    def test_all_excludes_unpaid(self) -> None:
        assert "pending" not in [o.id for o in history(_snapshot())]
        assert len(history(_snapshot(), HistoryTab.ALL)) == 5

    def test_tabs(self) -> None:
        assert [o.id for o in history(_snapshot(), HistoryTab.PROCESSING)] == ["paid", "printing"]
        assert [o.id for o in history(_snapshot(), HistoryTab.READY)] == ["ready"]
        assert [o.id for o in history(_snapshot(), HistoryTab.COMPLETED)] == ["completed"]
        assert [o.id for o in history(_snapshot(), HistoryTab.DELIVERED)] == ["delivered"]

    def test_search_matches_file_name_and_user(self) -> None:
        orders = [
            make_paid(id="o1", files=(OrderFile(name="Thesis-Final.pdf", url="u"),)),
            make_paid(id="o2", user_id=OTHER_STUDENT_ID),
        ]
        assert [o.id for o in history(orders, search="thesis")] == ["o1"]
        assert [o.id for o in history(orders, search=OTHER_STUDENT_ID[-4:])] == ["o2"]
