# shelfpick/models/sync_job.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from shelfpick.db.base import Base
from shelfpick.models.enums import SyncJobStatus

UTC = timezone.utc


def _now() -> datetime:
    return datetime.now(UTC)


class SyncJob(Base):
    """
    Outbox row for the external sync (ERP + e-commerce).

    Written in the same transaction as the local state change, executed after
    commit (inline or by the worker), re-driven by the sync runner while
    status != DONE and attempts < SYNC_MAX_ATTEMPTS.
    """

    __tablename__ = "sync_jobs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    order_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("orders.id", ondelete="CASCADE"),
        nullable=False,
    )
    pick_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("picks.id", ondelete="SET NULL"),
        nullable=True,
    )
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    target_status: Mapped[str] = mapped_column(String(32), nullable=False)
    status: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        default=SyncJobStatus.PENDING.value,
        server_default=text("'PENDING'"),
    )
    attempts: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    last_error: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    result: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_now,
        onupdate=_now,
    )

    __table_args__ = (
        Index("ix_sync_jobs_status", "status"),
        Index("ix_sync_jobs_order_id", "order_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<SyncJob id={self.id} order={self.order_id} kind={self.kind} "
            f"target={self.target_status} status={self.status} attempts={self.attempts}>"
        )
