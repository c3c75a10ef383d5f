"""Canonical order status set and the translation table for legacy labels.

Rows written by older dashboards carry free-form labels ("Pending Payment",
"Paid - Waiting for Processing", "Processing 40%", ...). They are mapped
onto OrderStatus once, when a row is ingested. A label with no mapping is
kept verbatim for display and treated as terminal.
"""
import re

from src.ps_common.enums import OrderStatus, PaymentStatus

TERMINAL_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.COMPLETED, OrderStatus.DELIVERED}
)

# Statuses shop staff may set on a paid order
STAFF_TARGET_STATUSES: frozenset[OrderStatus] = frozenset(
    {
        OrderStatus.READY_TO_PRINT,
        OrderStatus.PRINTING,
        OrderStatus.COMPLETED,
        OrderStatus.DELIVERED,
    }
)

_LEGACY_STATUS_LABELS: dict[str, OrderStatus] = {
    "pending payment": OrderStatus.PENDING_PAYMENT,
    "pendingpayment": OrderStatus.PENDING_PAYMENT,
    "paid - waiting for processing": OrderStatus.PAID,
    "paid": OrderStatus.PAID,
    "pending": OrderStatus.PAID,
    "ready to print": OrderStatus.READY_TO_PRINT,
    "readytoprint": OrderStatus.READY_TO_PRINT,
    "printing": OrderStatus.PRINTING,
    "processing": OrderStatus.PRINTING,
    "ready for pickup": OrderStatus.COMPLETED,
    "completed": OrderStatus.COMPLETED,
    "delivered": OrderStatus.DELIVERED,
}

# "Processing 40%" style progress labels; the percentage is display-only
_PROCESSING_PROGRESS_RE = re.compile(r"^processing\s*\d{1,3}\s*%?$", re.IGNORECASE)

_LEGACY_PAID_LABELS = frozenset(
    {"paid", "paid - waiting for processing", "completed", "delivered"}
)


def normalize_status(raw: str | OrderStatus | None) -> OrderStatus | str:
    """Map a persisted status onto OrderStatus; unknown labels are returned as-is."""
    if raw is None:
        return OrderStatus.PENDING_PAYMENT
    if isinstance(raw, OrderStatus):
        return raw
    label = raw.strip()
    try:
        return OrderStatus(label)
    except ValueError:
        pass
    key = label.lower()
    if key in _LEGACY_STATUS_LABELS:
        return _LEGACY_STATUS_LABELS[key]
    if _PROCESSING_PROGRESS_RE.match(key):
        return OrderStatus.PRINTING
    return label


def normalize_payment_status(raw: str | PaymentStatus | None) -> PaymentStatus:
    if isinstance(raw, PaymentStatus):
        return raw
    if raw is not None and raw.strip().lower() in _LEGACY_PAID_LABELS:
        return PaymentStatus.PAID
    return PaymentStatus.PENDING


def is_recognized(status: OrderStatus | str) -> bool:
    return isinstance(status, OrderStatus)


def is_terminal(status: OrderStatus | str) -> bool:
    """Completed/Delivered, and any label outside the canonical set."""
    return not is_recognized(status) or status in TERMINAL_STATUSES
