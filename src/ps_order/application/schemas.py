# src/ps_order/application/schemas.py
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from src.ps_common.enums import OrderStatus, PaperSize
from src.ps_common.money import cents_to_display
from src.ps_order.domain.models import Order, OrderFile
from src.ps_order.domain.views import CompletedSummary


class OrderFileItem(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    url: str = Field(min_length=1)

    def to_domain(self) -> OrderFile:
        return OrderFile(name=self.name, url=self.url)


class OrderFileOut(BaseModel):
    """Stored file as sent to clients; legacy rows may hold any name."""

    name: str
    url: str


class SubmitOrderRequest(BaseModel):
    files: list[OrderFileItem] = Field(min_length=1)
    paper_size: PaperSize = PaperSize.NORMAL_XEROX
    copies: int = Field(1, ge=1, le=1000)
    is_color_print: bool = False
    is_double_sided: bool = False
    notes: str | None = Field(None, max_length=1000)

    @field_validator("notes")
    @classmethod
    def blank_notes_to_none(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v


class UpdateStatusRequest(BaseModel):
    status: OrderStatus


class OrderResponse(BaseModel):
    id: str
    user_id: str
    files: list[OrderFileOut]
    paper_size: str
    copies: int
    is_color_print: bool
    is_double_sided: bool
    notes: str | None = None
    status: str
    payment_status: str
    otp: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_domain(cls, order: Order) -> "OrderResponse":
        return cls(
            id=order.id,
            user_id=order.user_id,
            files=[OrderFileOut(name=f.name, url=f.url) for f in order.files],
            paper_size=order.paper_size,
            copies=order.copies,
            is_color_print=order.is_color_print,
            is_double_sided=order.is_double_sided,
            notes=order.notes,
            status=order.status_label,
            payment_status=order.payment_status.value,
            otp=order.otp,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )


class OrderListResponse(BaseModel):
    items: list[OrderResponse]
    total: int

    @classmethod
    def from_orders(cls, orders: list[Order]) -> "OrderListResponse":
        return cls(items=[OrderResponse.from_domain(o) for o in orders], total=len(orders))


class CompletedOrdersResponse(BaseModel):
    items: list[OrderResponse]
    completed_today: int
    delivered_today: int
    copies_today: int

    @classmethod
    def from_summary(cls, summary: CompletedSummary) -> "CompletedOrdersResponse":
        return cls(
            items=[OrderResponse.from_domain(o) for o in summary.orders],
            completed_today=summary.completed_today,
            delivered_today=summary.delivered_today,
            copies_today=summary.copies_today,
        )


class QuoteResponse(BaseModel):
    order_id: str
    copies: int
    unit_price_cents: int
    amount_cents: int
    amount_display: str

    @classmethod
    def from_cents(cls, order: Order, unit_cents: int, amount_cents: int) -> "QuoteResponse":
        return cls(
            order_id=order.id,
            copies=order.copies,
            unit_price_cents=unit_cents,
            amount_cents=amount_cents,
            amount_display=cents_to_display(amount_cents),
        )


class UploadResponse(BaseModel):
    name: str
    url: str


class SignedUrlResponse(BaseModel):
    name: str
    url: str
    expires_in: int
