"""Order domain model — frozen dataclasses, no SQLAlchemy dependency.

Rows arrive from two places, the bulk read and the change feed, both as
plain mappings keyed by column name. ``order_from_row`` is the single
ingest point; it applies the legacy status translation.
"""
import json
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any

from src.ps_common.datetime_utils import parse_timestamp
from src.ps_common.enums import OrderStatus, PaymentStatus, UserRole
from src.ps_order.domain.status import (
    is_terminal,
    normalize_payment_status,
    normalize_status,
)

ROW_FIELDS: tuple[str, ...] = (
    "id",
    "user_id",
    "files",
    "paper_size",
    "copies",
    "is_color_print",
    "is_double_sided",
    "notes",
    "status",
    "payment_status",
    "otp",
    "created_at",
    "updated_at",
)


@dataclass(frozen=True)
class OrderFile:
    name: str
    url: str


@dataclass(frozen=True)
class Order:
    id: str
    user_id: str
    files: tuple[OrderFile, ...]
    paper_size: str
    copies: int
    is_color_print: bool = False
    is_double_sided: bool = False
    notes: str | None = None
    status: OrderStatus | str = OrderStatus.PENDING_PAYMENT
    payment_status: PaymentStatus = PaymentStatus.PENDING
    otp: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    @property
    def is_terminal(self) -> bool:
        return is_terminal(self.status)

    @property
    def is_active(self) -> bool:
        """Paid and still in the shop's queue."""
        return self.is_paid and not self.is_terminal

    @property
    def status_label(self) -> str:
        return self.status.value if isinstance(self.status, OrderStatus) else self.status


@dataclass(frozen=True)
class OrderScope:
    """Which rows a viewer sees: all of them, or one owner's."""

    user_id: str | None = None

    @classmethod
    def for_viewer(cls, user_id: str, role: UserRole) -> "OrderScope":
        if role == UserRole.STUDENT:
            return cls(user_id=user_id)
        return cls()

    def matches(self, owner_id: str | None) -> bool:
        if self.user_id is None:
            return True
        return owner_id == self.user_id


def _parse_files(row: Mapping[str, Any]) -> tuple[OrderFile, ...]:
    raw = row.get("files")
    if isinstance(raw, str):
        raw = json.loads(raw) if raw else []
    files = tuple(OrderFile(name=f["name"], url=f["url"]) for f in raw or [])
    # Single-file rows predate the files column
    if not files and row.get("file_url"):
        url = row["file_url"]
        files = (OrderFile(name=row.get("file_name") or url.rsplit("/", 1)[-1], url=url),)
    return files


def _field_values(row: Mapping[str, Any]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    if "files" in row or "file_url" in row:
        values["files"] = _parse_files(row)
    for key in ("id", "user_id", "paper_size", "notes", "otp"):
        if key in row:
            values[key] = None if row[key] is None else str(row[key])
    if "copies" in row:
        values["copies"] = int(row["copies"] or 1)
    for key in ("is_color_print", "is_double_sided"):
        if key in row:
            values[key] = bool(row[key])
    if "status" in row:
        values["status"] = normalize_status(row["status"])
    if "payment_status" in row:
        values["payment_status"] = normalize_payment_status(row["payment_status"])
    for key in ("created_at", "updated_at"):
        if key in row:
            values[key] = parse_timestamp(row[key])
    return values


def order_from_row(row: Mapping[str, Any]) -> Order:
    """Build an Order from a full row mapping (DB result or feed payload)."""
    values = _field_values(row)
    if "id" not in values or "user_id" not in values:
        raise ValueError("order row needs id and user_id")
    values.setdefault("files", ())
    values.setdefault("paper_size", "")
    values.setdefault("copies", 1)
    return Order(**values)


def merge_row(order: Order, row: Mapping[str, Any]) -> Order:
    """Overwrite the fields present in row; fields it omits keep their values.

    A full-row payload names every column, so it replaces the order outright
    (a null ``otp`` in the payload clears the old one).
    """
    values = _field_values(row)
    values.pop("id", None)
    return replace(order, **values)


def order_to_row(order: Order) -> dict[str, Any]:
    """JSON-ready row mapping, the shape published on the change feed."""
    return {
        "id": order.id,
        "user_id": order.user_id,
        "files": [{"name": f.name, "url": f.url} for f in order.files],
        "paper_size": order.paper_size,
        "copies": order.copies,
        "is_color_print": order.is_color_print,
        "is_double_sided": order.is_double_sided,
        "notes": order.notes,
        "status": order.status_label,
        "payment_status": order.payment_status.value,
        "otp": order.otp,
        "created_at": order.created_at.isoformat() if order.created_at else None,
        "updated_at": order.updated_at.isoformat() if order.updated_at else None,
    }
