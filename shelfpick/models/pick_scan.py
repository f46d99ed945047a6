# shelfpick/models/pick_scan.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from shelfpick.db.base import Base

UTC = timezone.utc


class PickScan(Base):
    """
    Append-only scan record.

    The count of rows per (order, order item, barcode) over every pick of the
    order is the authoritative "already scanned" counter. Rows are removed only
    by a pick reset.
    """

    __tablename__ = "pick_scans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    pick_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("picks.id", ondelete="CASCADE"),
        nullable=False,
    )
    order_item_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("order_items.id", ondelete="CASCADE"),
        nullable=False,
    )
    product_id: Mapped[int] = mapped_column(Integer, ForeignKey("products.id"), nullable=False)
    package_id: Mapped[int] = mapped_column(Integer, ForeignKey("product_packages.id"), nullable=False)

    # assignment depleted by this scan; NULL when the shelves were empty or
    # the row was removed afterwards
    shelf_assignment_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("shelf_assignments.id", ondelete="SET NULL"),
        nullable=True,
    )
    # false when the scan was accepted with empty shelves: nothing to give back on reset
    stock_depleted: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=text("false"),
    )
    barcode: Mapped[str] = mapped_column(String(128), nullable=False)
    scanned_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        Index("ix_pick_scans_pick_id", "pick_id"),
        Index("ix_pick_scans_item_barcode", "order_item_id", "barcode"),
    )

    def __repr__(self) -> str:
        return (
            f"<PickScan id={self.id} pick={self.pick_id} item={self.order_item_id} "
            f"barcode={self.barcode!r} assignment={self.shelf_assignment_id}>"
        )
