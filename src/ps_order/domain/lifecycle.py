"""Order lifecycle rules.

    PENDING_PAYMENT --pay(owner)--> PAID --staff--> READY_TO_PRINT | PRINTING
                                                    | COMPLETED | DELIVERED

Staff may jump straight to any forward status. COMPLETED only moves on to
DELIVERED; DELIVERED and unrecognized labels accept nothing.

The checks here are pure: they never touch persistence and never mutate the
order. The application service writes the returned patch and the local
store only changes when the resulting feed event arrives.
"""
import re
import secrets
from datetime import datetime
from typing import Any

from src.ps_common.enums import OrderStatus, PaymentStatus, UserRole
from src.ps_common.errors import (
    ForbiddenError,
    InvalidOrderError,
    InvalidTransitionError,
    OrderNotFoundError,
)
from src.ps_order.domain.models import Order, OrderFile
from src.ps_order.domain.status import STAFF_TARGET_STATUSES, is_recognized

OTP_PATTERN = re.compile(r"^\d{6}$")

STAFF_ROLES: frozenset[UserRole] = frozenset({UserRole.XEROX, UserRole.ADMIN})


def generate_otp() -> str:
    """Uniform 6-digit pickup code in [100000, 999999].

    Not checked for collisions: a code only identifies one pickup hand-off.
    """
    return str(100000 + secrets.randbelow(900000))


def check_submission(files: list[OrderFile], copies: int) -> None:
    if not files:
        raise InvalidOrderError("at least one file is required")
    if copies < 1:
        raise InvalidOrderError("copies must be at least 1")


def new_order_row(
    user_id: str,
    files: list[OrderFile],
    paper_size: str,
    copies: int,
    is_color_print: bool,
    is_double_sided: bool,
    notes: str | None,
    now: datetime,
) -> dict[str, Any]:
    check_submission(files, copies)
    return {
        "user_id": user_id,
        "files": [{"name": f.name, "url": f.url} for f in files],
        "paper_size": paper_size,
        "copies": copies,
        "is_color_print": is_color_print,
        "is_double_sided": is_double_sided,
        "notes": notes or None,
        "status": OrderStatus.PENDING_PAYMENT.value,
        "payment_status": PaymentStatus.PENDING.value,
        "created_at": now,
        "updated_at": now,
    }


def check_payment(order: Order | None, order_id: str, actor_id: str) -> None:
    """Raise unless actor_id may pay order now."""
    if order is None:
        raise OrderNotFoundError(order_id)
    if order.user_id != actor_id:
        raise ForbiddenError("Only the student who placed the order can pay for it")
    if order.is_paid or order.status != OrderStatus.PENDING_PAYMENT:
        raise InvalidTransitionError(
            f"Order {order_id} is not awaiting payment (status={order.status_label})"
        )


def check_status_change(
    order: Order | None, order_id: str, role: UserRole, target: OrderStatus
) -> None:
    """Raise unless staff in role may move order to target."""
    if role not in STAFF_ROLES:
        raise ForbiddenError("Only shop staff can change order status")
    if order is None:
        raise OrderNotFoundError(order_id)
    if target not in STAFF_TARGET_STATUSES:
        raise InvalidTransitionError(f"Staff cannot set status {target.value}")

    current = order.status
    if not is_recognized(current):
        raise InvalidTransitionError(
            f"Order {order_id} has unrecognized status {order.status_label!r}"
        )
    if not order.is_paid or current == OrderStatus.PENDING_PAYMENT:
        raise InvalidTransitionError(f"Order {order_id} has not been paid")
    if current == OrderStatus.DELIVERED:
        raise InvalidTransitionError(f"Order {order_id} was already delivered")
    if current == OrderStatus.COMPLETED and target != OrderStatus.DELIVERED:
        raise InvalidTransitionError(
            f"Completed order {order_id} can only be marked delivered"
        )
    if current == target:
        raise InvalidTransitionError(f"Order {order_id} is already {target.value}")
