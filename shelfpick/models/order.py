# shelfpick/models/order.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shelfpick.db.base import Base
from shelfpick.models.enums import FulfillmentStatus, OrderStatus

if TYPE_CHECKING:
    from .order_item import OrderItem

UTC = timezone.utc


def _now() -> datetime:
    return datetime.now(UTC)


class Order(Base):
    """
    Sales order header: the unit of fulfillment truth.

    - status / fulfillment_status are written by the completion detector and
      the compensation engine only
    - erp_* / ecommerce_sync_* record the outcome of the last external sync;
      a failed sync never rolls the local state back
    """

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_number: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)

    customer_code: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    customer_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=OrderStatus.OPEN.value,
        server_default=text("'open'"),
    )
    fulfillment_status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default=FulfillmentStatus.NOT_FULFILLED.value,
        server_default=text("'NOT_FULFILLED'"),
    )

    # e-commerce platform
    ecommerce_order_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    ecommerce_sync_status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    ecommerce_sync_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ERP delivery note
    erp_delivery_note_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    erp_delivery_status: Mapped[str] = mapped_column(
        String(32),
        nullable=False,
        default="pending",
        server_default=text("'pending'"),
    )
    erp_delivery_method: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    erp_delivery_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_now,
        onupdate=_now,
    )

    items: Mapped[List["OrderItem"]] = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="OrderItem.id",
    )

    __table_args__ = (Index("ix_orders_status_fulfillment", "status", "fulfillment_status"),)

    def __repr__(self) -> str:
        return (
            f"<Order id={self.id} no={self.order_number!r} status={self.status} "
            f"fulfillment={self.fulfillment_status}>"
        )
