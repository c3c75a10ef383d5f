from datetime import date

from pydantic import BaseModel

from src.ps_common.money import cents_to_display
from src.ps_revenue.domain.aggregator import RevenueBucket, RevenueTotals


class RevenueBucketItem(BaseModel):
    date: str
    orders: int
    revenue: int
    expenses: int
    profit: int

    @classmethod
    def from_domain(cls, bucket: RevenueBucket) -> "RevenueBucketItem":
        return cls(
            date=bucket.date,
            orders=bucket.orders,
            revenue=bucket.revenue,
            expenses=bucket.expenses,
            profit=bucket.profit,
        )


class RevenueTotalsItem(BaseModel):
    orders: int
    revenue: int
    expenses: int
    profit: int
    revenue_display: str
    expenses_display: str
    profit_display: str

    @classmethod
    def from_domain(cls, totals: RevenueTotals) -> "RevenueTotalsItem":
        return cls(
            orders=totals.orders,
            revenue=totals.revenue,
            expenses=totals.expenses,
            profit=totals.profit,
            revenue_display=cents_to_display(totals.revenue),
            expenses_display=cents_to_display(totals.expenses),
            profit_display=cents_to_display(totals.profit),
        )


class RevenueResponse(BaseModel):
    """Amounts are int paise; *_display fields are formatted rupees."""

    timezone: str
    start: date | None = None
    end: date | None = None
    buckets: list[RevenueBucketItem]
    totals: RevenueTotalsItem
