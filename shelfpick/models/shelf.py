# shelfpick/models/shelf.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from shelfpick.db.base import Base

if TYPE_CHECKING:
    from .product import ProductPackage

UTC = timezone.utc


class Shelf(Base):
    __tablename__ = "shelves"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shelf_code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    shelf_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    zone: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    aisle: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    level: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)

    def __repr__(self) -> str:
        return f"<Shelf id={self.id} code={self.shelf_code!r}>"


class ShelfAssignment(Base):
    """
    FIFO supply ledger row: `quantity` packages of one kind placed on a shelf at
    `assigned_date`. Oldest row with quantity > 0 is consumed first.

    Owned by the shelving workflow; during picking only the allocator and the
    reset compensation touch `quantity`.
    """

    __tablename__ = "shelf_assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    shelf_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("shelves.id", ondelete="CASCADE"),
        nullable=False,
    )
    package_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("product_packages.id", ondelete="CASCADE"),
        nullable=False,
    )
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    assigned_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    shelf: Mapped["Shelf"] = relationship("Shelf", lazy="selectin")
    package: Mapped["ProductPackage"] = relationship("ProductPackage", lazy="selectin")

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_shelf_assignments_qty_nonneg"),
        Index("ix_shelf_assignments_fifo", "package_id", "assigned_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<ShelfAssignment id={self.id} shelf={self.shelf_id} "
            f"package={self.package_id} qty={self.quantity}>"
        )
