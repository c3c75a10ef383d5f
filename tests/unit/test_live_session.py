"""Unit tests for LiveOrderSession frames and feed/load ordering."""
from unittest.mock import AsyncMock, MagicMock
from zoneinfo import ZoneInfo

import pytest

from src.ps_common.enums import ChangeType, UserRole
from src.ps_common.errors import FetchError, SubscriptionError
from src.ps_gateway.auth.session import Session
from src.ps_order.application.live import LiveOrderSession
from src.ps_order.domain.events import ChangeEvent
from src.ps_order.domain.models import OrderScope
from src.ps_revenue.domain.aggregator import RevenuePolicy
from order_factories import FILE_URL, STUDENT_ID, XEROX_ID, make_paid, make_row

STUDENT = Session(user_id=STUDENT_ID, email="s@uni.edu", role=UserRole.STUDENT)
XEROX = Session(user_id=XEROX_ID, email="x@shop.in", role=UserRole.XEROX)


def _feed() -> MagicMock:
    feed = MagicMock()
    feed.subscribe = AsyncMock(side_effect=lambda table, *args: f"handle:{table}")
    feed.unsubscribe = AsyncMock()
    return feed


def _loader(orders=None) -> MagicMock:
    loader = MagicMock()
    loader.fetch_orders = AsyncMock(return_value=list(orders or []))
    return loader


def _live(session: Session, feed: MagicMock, loader: MagicMock) -> LiveOrderSession:
    return LiveOrderSession(session, feed, loader, ZoneInfo("UTC"), RevenuePolicy())


async def _frames(live: LiveOrderSession) -> list[dict]:
    frames = []
    while not live.frames.empty():
        frames.append(await live.next_frame())
    return frames


class TestStart:
    @pytest.mark.asyncio
    async def test_subscribes_before_loading(self) -> None:
        calls = []
        feed = _feed()
        feed.subscribe = AsyncMock(side_effect=lambda table, *args: calls.append(f"sub:{table}"))
        loader = MagicMock()
        loader.fetch_orders = AsyncMock(side_effect=lambda scope: calls.append("load") or [])

        await _live(STUDENT, feed, loader).start()

        assert calls == ["sub:orders", "sub:server_status", "load"]

    @pytest.mark.asyncio
    async def test_student_scope_and_no_revenue(self) -> None:
        feed = _feed()
        live = _live(STUDENT, feed, _loader([make_paid()]))

        assert await live.start() is True

        assert feed.subscribe.await_args_list[0].args[1] == OrderScope(user_id=STUDENT_ID)
        [frame] = await _frames(live)
        assert frame["type"] == "snapshot"
        assert len(frame["orders"]) == 1
        assert frame["revenue"] is None

    @pytest.mark.asyncio
    async def test_staff_snapshot_carries_revenue(self) -> None:
        live = _live(XEROX, _feed(), _loader([make_paid(copies=3)]))

        await live.start()

        [frame] = await _frames(live)
        assert frame["revenue"]["totals"]["revenue"] == 600
        assert frame["revenue"]["timezone"] == "UTC"

    @pytest.mark.asyncio
    async def test_feed_down_still_loads_in_degraded_mode(self) -> None:
        feed = _feed()
        feed.subscribe = AsyncMock(side_effect=SubscriptionError("refused"))
        live = _live(XEROX, feed, _loader([make_paid()]))

        await live.start()

        warning, snapshot = await _frames(live)
        assert warning["type"] == "warning"
        assert warning["code"] == 6002
        assert snapshot["type"] == "snapshot"
        assert snapshot["degraded"] is True

    @pytest.mark.asyncio
    async def test_load_failure_queues_retryable_error(self) -> None:
        loader = MagicMock()
        loader.fetch_orders = AsyncMock(side_effect=FetchError("db down"))
        live = _live(XEROX, _feed(), loader)

        assert await live.start() is False

        error = (await _frames(live))[-1]
        assert error == {"type": "error", "code": 9001, "message": "db down", "retry": True}


class TestEvents:
    @pytest.mark.asyncio
    async def test_feed_event_pushes_new_snapshot(self) -> None:
        live = _live(XEROX, _feed(), _loader())
        await live.start()
        await _frames(live)

        live.store.apply_change(ChangeEvent(type=ChangeType.INSERT, table="orders", new=make_row()))

        [frame] = await _frames(live)
        assert frame["orders"][0]["status"] == "PENDING_PAYMENT"

    @pytest.mark.asyncio
    async def test_legacy_file_names_still_render(self) -> None:
        live = _live(XEROX, _feed(), _loader())
        await live.start()
        await _frames(live)
        files = [{"name": "", "url": FILE_URL}, {"name": "x" * 300, "url": FILE_URL}]

        live.store.apply_change(ChangeEvent(type=ChangeType.INSERT, table="orders", new=make_row(files=files)))

        [frame] = await _frames(live)
        assert [f["name"] for f in frame["orders"][0]["files"]] == ["", "x" * 300]

    @pytest.mark.asyncio
    async def test_burst_of_changes_sends_one_latest_snapshot(self) -> None:
        live = _live(XEROX, _feed(), _loader())
        await live.start()
        await _frames(live)

        live.store.apply_change(ChangeEvent(type=ChangeType.INSERT, table="orders", new=make_row()))
        for copies in (2, 3, 4):
            live.store.apply_change(
                ChangeEvent(type=ChangeType.UPDATE, table="orders", new=make_row(copies=copies))
            )

        assert live.frames.qsize() == 1
        [frame] = await _frames(live)
        assert frame["orders"][0]["copies"] == 4

    @pytest.mark.asyncio
    async def test_send_error_is_not_retryable_by_default(self) -> None:
        live = _live(STUDENT, _feed(), _loader())
        await live.start()
        await _frames(live)

        live.send_error(422, "unknown action: dance")

        assert await _frames(live) == [
            {"type": "error", "code": 422, "message": "unknown action: dance", "retry": False}
        ]

    @pytest.mark.asyncio
    async def test_server_status_frame(self) -> None:
        feed = _feed()
        live = _live(STUDENT, feed, _loader())
        await live.start()
        await _frames(live)
        on_server_status = feed.subscribe.await_args_list[1].args[2]

        on_server_status(ChangeEvent(type=ChangeType.UPDATE, table="server_status", new={"id": 1, "is_active": False}))

        assert await _frames(live) == [{"type": "server_status", "is_active": False}]

    @pytest.mark.asyncio
    async def test_feed_error_marks_degraded(self) -> None:
        feed = _feed()
        live = _live(STUDENT, feed, _loader())
        await live.start()
        await _frames(live)
        on_error = feed.subscribe.await_args_list[0].args[3]

        on_error(SubscriptionError("reset"))

        assert live.degraded
        assert (await _frames(live))[0]["type"] == "warning"


class TestResubscribeAndClose:
    @pytest.mark.asyncio
    async def test_resubscribe_replaces_handles_and_reloads(self) -> None:
        feed = _feed()
        loader = _loader()
        live = _live(STUDENT, feed, loader)
        await live.start()
        live.degraded = True

        await live.resubscribe()

        assert [c.args[0] for c in feed.unsubscribe.await_args_list] == [
            "handle:orders",
            "handle:server_status",
        ]
        assert feed.subscribe.await_count == 4
        assert loader.fetch_orders.await_count == 2
        assert live.degraded is False

    @pytest.mark.asyncio
    async def test_close_unsubscribes_and_stops_frames(self) -> None:
        feed = _feed()
        live = _live(STUDENT, feed, _loader())
        await live.start()
        await _frames(live)

        await live.close()
        await live.close()
        live.store.apply_change(ChangeEvent(type=ChangeType.INSERT, table="orders", new=make_row()))

        assert feed.unsubscribe.await_count == 2
        assert live.store.closed
        assert await _frames(live) == []
