# src/ps_order/infrastructure/db_models.py
"""SQLAlchemy ORM model for the orders table (DDL reference only; queries use raw SQL).

The table itself is owned by the hosting platform; this mirrors its columns.
"""
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from src.ps_common.database import Base


class OrderORM(Base):
    __tablename__ = "orders"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, server_default=func.gen_random_uuid()
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    files: Mapped[list[dict[str, Any]]] = mapped_column(JSONB, nullable=False)
    paper_size: Mapped[str] = mapped_column(String(32), nullable=False)
    copies: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_color_print: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_double_sided: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(64), nullable=False, default="PENDING_PAYMENT"
    )
    payment_status: Mapped[str] = mapped_column(String(16), nullable=False, default="pending")
    otp: Mapped[str | None] = mapped_column(String(6), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
