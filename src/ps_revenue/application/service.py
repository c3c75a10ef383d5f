"""RevenueService: loads every order and runs the aggregator over it."""
from collections.abc import Iterable
from datetime import date
from zoneinfo import ZoneInfo

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.ps_common.errors import ForbiddenError
from src.ps_gateway.auth.session import Session
from src.ps_order.domain.models import Order, OrderScope
from src.ps_order.domain.repository import OrderRepositoryProtocol
from src.ps_order.domain.store import OrderStore
from src.ps_order.infrastructure.loader import DbOrderLoader
from src.ps_order.infrastructure.persistence import OrderRepository
from src.ps_revenue.application.schemas import (
    RevenueBucketItem,
    RevenueResponse,
    RevenueTotalsItem,
)
from src.ps_revenue.domain.aggregator import (
    RevenuePolicy,
    aggregate_revenue,
    filter_buckets,
    summarize,
)


def policy_from_settings() -> RevenuePolicy:
    return RevenuePolicy(
        unit_rate_cents=settings.REVENUE_UNIT_RATE_CENTS,
        expense_ratio_bps=settings.REVENUE_EXPENSE_RATIO_BPS,
    )


def build_revenue_report(
    orders: Iterable[Order],
    policy: RevenuePolicy,
    tz: ZoneInfo,
    start: date | None = None,
    end: date | None = None,
) -> RevenueResponse:
    buckets = filter_buckets(aggregate_revenue(orders, policy, tz), start, end)
    return RevenueResponse(
        timezone=tz.key,
        start=start,
        end=end,
        buckets=[RevenueBucketItem.from_domain(b) for b in buckets],
        totals=RevenueTotalsItem.from_domain(summarize(buckets)),
    )


class RevenueService:
    def __init__(
        self,
        repo: OrderRepositoryProtocol | None = None,
        policy: RevenuePolicy | None = None,
    ) -> None:
        self._repo: OrderRepositoryProtocol = repo or OrderRepository()
        self._policy = policy or policy_from_settings()

    async def get_revenue(
        self,
        session: Session,
        db: AsyncSession,
        tz: ZoneInfo,
        start: date | None = None,
        end: date | None = None,
    ) -> RevenueResponse:
        if not session.is_staff:
            raise ForbiddenError("Revenue is visible to shop staff only")
        store = OrderStore(DbOrderLoader(self._repo, db), OrderScope())
        orders = await store.load()
        return build_revenue_report(orders, self._policy, tz, start, end)
