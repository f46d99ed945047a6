# shelfpick/models/pick.py
from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from shelfpick.db.base import Base
from shelfpick.models.enums import PickStatus

UTC = timezone.utc


def _now() -> datetime:
    return datetime.now(UTC)


class Pick(Base):
    """One attempt to physically gather every package of an order."""

    __tablename__ = "picks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=PickStatus.PENDING.value,
        server_default=text("'pending'"),
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_now,
        onupdate=_now,
    )

    __table_args__ = (Index("ix_picks_order_id", "order_id"),)

    def __repr__(self) -> str:
        return f"<Pick id={self.id} order={self.order_id} status={self.status}>"
