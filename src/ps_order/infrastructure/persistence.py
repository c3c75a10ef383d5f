# src/ps_order/infrastructure/persistence.py
"""OrderRepository — raw SQL persistence implementation.

Writes use RETURNING so the caller gets the stored row back and can
publish it on the change feed without a second read.
"""
import json
import logging
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.ps_common.enums import OrderStatus, PaymentStatus
from src.ps_order.domain.models import ROW_FIELDS, Order, OrderScope, order_from_row

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# SQL statements
# ---------------------------------------------------------------------------

_SELECT_COLUMNS = ", ".join(ROW_FIELDS)

_INSERT_ORDER_SQL = text(f"""
    INSERT INTO orders (user_id, files, paper_size, copies,
        is_color_print, is_double_sided, notes,
        status, payment_status, created_at, updated_at)
    VALUES (:user_id, CAST(:files AS JSONB), :paper_size, :copies,
        :is_color_print, :is_double_sided, :notes,
        :status, :payment_status, :created_at, :updated_at)
    RETURNING {_SELECT_COLUMNS}
""")

_GET_ORDER_BY_ID_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders WHERE id = CAST(:id AS UUID)
""")

_LIST_ORDERS_SQL = text(f"""
    SELECT {_SELECT_COLUMNS}
    FROM orders
    WHERE (CAST(:user_id AS TEXT) IS NULL OR user_id = :user_id)
    ORDER BY created_at DESC
""")

# Owner and pending checks repeated in SQL; last write wins otherwise
_MARK_PAID_SQL = text(f"""
    UPDATE orders
    SET status = :status, payment_status = :payment_status, otp = :otp,
        updated_at = NOW()
    WHERE id = CAST(:id AS UUID) AND user_id = :user_id
      AND payment_status = :pending
    RETURNING {_SELECT_COLUMNS}
""")

# Delivered orders are final; repeated in SQL for concurrent staff updates
_UPDATE_STATUS_SQL = text(f"""
    UPDATE orders
    SET status = :status, updated_at = NOW()
    WHERE id = CAST(:id AS UUID) AND status <> :delivered
    RETURNING {_SELECT_COLUMNS}
""")

_DELETE_ORDER_SQL = text(f"""
    DELETE FROM orders WHERE id = CAST(:id AS UUID)
    RETURNING {_SELECT_COLUMNS}
""")


# ---------------------------------------------------------------------------
# Row mapper
# ---------------------------------------------------------------------------


def _row_to_order(row: Any) -> Order:
    """Convert a DB result row to an Order domain object."""
    return order_from_row(dict(row._mapping))


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class OrderRepository:
    """Concrete implementation of OrderRepositoryProtocol using raw SQL."""

    async def insert(self, row: dict[str, Any], db: AsyncSession) -> Order:
        params = dict(row)
        params["files"] = json.dumps(row["files"])
        result = await db.execute(_INSERT_ORDER_SQL, params)
        return _row_to_order(result.fetchone())

    async def get_by_id(self, order_id: str, db: AsyncSession) -> Order | None:
        result = await db.execute(_GET_ORDER_BY_ID_SQL, {"id": order_id})
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def list_orders(self, scope: OrderScope, db: AsyncSession) -> list[Order]:
        result = await db.execute(_LIST_ORDERS_SQL, {"user_id": scope.user_id})
        orders = []
        for row in result.fetchall():
            try:
                orders.append(_row_to_order(row))
            except (KeyError, TypeError, ValueError) as e:
                # Old rows the app can no longer read; they stay out of every view
                logger.warning("Skipping unreadable order row %s: %s", row._mapping.get("id"), e)
        return orders

    async def mark_paid(
        self, order_id: str, user_id: str, otp: str, db: AsyncSession
    ) -> Order | None:
        result = await db.execute(
            _MARK_PAID_SQL,
            {
                "id": order_id,
                "user_id": user_id,
                "otp": otp,
                "status": OrderStatus.PAID.value,
                "payment_status": PaymentStatus.PAID.value,
                "pending": PaymentStatus.PENDING.value,
            },
        )
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def update_status(
        self, order_id: str, status: str, db: AsyncSession
    ) -> Order | None:
        result = await db.execute(
            _UPDATE_STATUS_SQL,
            {"id": order_id, "status": status, "delivered": OrderStatus.DELIVERED.value},
        )
        row = result.fetchone()
        return _row_to_order(row) if row else None

    async def delete(self, order_id: str, db: AsyncSession) -> Order | None:
        result = await db.execute(_DELETE_ORDER_SQL, {"id": order_id})
        row = result.fetchone()
        return _row_to_order(row) if row else None
