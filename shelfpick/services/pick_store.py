# shelfpick/services/pick_store.py
from __future__ import annotations

from typing import List, Optional, Sequence

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from shelfpick.models.enums import SyncJobStatus
from shelfpick.models.order import Order
from shelfpick.models.order_item import OrderItem
from shelfpick.models.pick import Pick
from shelfpick.models.pick_scan import PickScan
from shelfpick.models.product import ProductPackage
from shelfpick.models.shelf import Shelf, ShelfAssignment
from shelfpick.models.sync_job import SyncJob
from shelfpick.services.pick_errors import OrderNotFound, PickNotFound


class PickStore:
    """
    Store boundary of the picking engine.

    Wraps the request's AsyncSession; every component gets one of these
    instead of reaching for a session on its own. Transaction control
    (commit / rollback) stays with the caller.
    """

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    # ------------------------------------------------------------------
    # picks / orders
    # ------------------------------------------------------------------
    async def get_pick(self, pick_id: int, *, for_update: bool = False) -> Pick:
        stmt = select(Pick).where(Pick.id == pick_id)
        if for_update:
            stmt = stmt.with_for_update()
        pick = (await self.session.execute(stmt)).scalars().first()
        if pick is None:
            raise PickNotFound(pick_id)
        return pick

    async def get_order(self, order_id: int, *, for_update: bool = False) -> Order:
        stmt = select(Order).where(Order.id == order_id)
        if for_update:
            stmt = stmt.with_for_update()
        order = (await self.session.execute(stmt)).scalars().first()
        if order is None:
            raise OrderNotFound(order_id)
        return order

    async def create_pick(self, *, order_id: int, status: str) -> Pick:
        pick = Pick(order_id=order_id, status=status)
        self.session.add(pick)
        await self.session.flush()
        return pick

    # ------------------------------------------------------------------
    # catalog (read-only)
    # ------------------------------------------------------------------
    async def find_package_by_barcode(self, barcode: str) -> Optional[ProductPackage]:
        stmt = select(ProductPackage).where(ProductPackage.barcode == barcode)
        return (await self.session.execute(stmt)).scalars().first()

    async def list_product_packages(self, product_id: int) -> List[ProductPackage]:
        stmt = (
            select(ProductPackage)
            .where(ProductPackage.product_id == product_id)
            .order_by(ProductPackage.id.asc())
        )
        return list((await self.session.execute(stmt)).scalars().all())

    # ------------------------------------------------------------------
    # order items
    # ------------------------------------------------------------------
    async def find_order_item(
        self,
        *,
        order_id: int,
        product_id: int,
        for_update: bool = False,
    ) -> Optional[OrderItem]:
        stmt = (
            select(OrderItem)
            .where(OrderItem.order_id == order_id, OrderItem.product_id == product_id)
            .order_by(OrderItem.id.asc())
            .limit(1)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return (await self.session.execute(stmt)).scalars().first()

    async def list_order_items(self, order_id: int, *, for_update: bool = False) -> List[OrderItem]:
        stmt = select(OrderItem).where(OrderItem.order_id == order_id).order_by(OrderItem.id.asc())
        if for_update:
            stmt = stmt.with_for_update()
        return list((await self.session.execute(stmt)).scalars().all())

    async def count_unpicked_items(self, order_id: int) -> int:
        stmt = (
            select(func.count())
            .select_from(OrderItem)
            .where(OrderItem.order_id == order_id, OrderItem.picked_qty < OrderItem.quantity)
        )
        return int((await self.session.execute(stmt)).scalar_one())

    # ------------------------------------------------------------------
    # scan log
    # ------------------------------------------------------------------
    async def count_scans(
        self,
        *,
        order_id: int,
        order_item_id: int,
        barcode: Optional[str] = None,
    ) -> int:
        """Scans over every pick of the order (not only the current pick)."""
        stmt = (
            select(func.count())
            .select_from(PickScan)
            .join(Pick, Pick.id == PickScan.pick_id)
            .where(Pick.order_id == order_id, PickScan.order_item_id == order_item_id)
        )
        if barcode is not None:
            stmt = stmt.where(PickScan.barcode == barcode)
        return int((await self.session.execute(stmt)).scalar_one())

    async def add_scan(
        self,
        *,
        pick_id: int,
        order_item_id: int,
        product_id: int,
        package_id: int,
        barcode: str,
        shelf_assignment_id: Optional[int],
        stock_depleted: bool,
    ) -> PickScan:
        scan = PickScan(
            pick_id=pick_id,
            order_item_id=order_item_id,
            product_id=product_id,
            package_id=package_id,
            barcode=barcode,
            shelf_assignment_id=shelf_assignment_id,
            stock_depleted=stock_depleted,
        )
        self.session.add(scan)
        await self.session.flush()
        return scan

    async def list_pick_scans(self, pick_id: int) -> List[PickScan]:
        stmt = select(PickScan).where(PickScan.pick_id == pick_id).order_by(PickScan.id.asc())
        return list((await self.session.execute(stmt)).scalars().all())

    async def delete_pick_scans(self, pick_id: int) -> int:
        res = await self.session.execute(delete(PickScan).where(PickScan.pick_id == pick_id))
        return int(res.rowcount or 0)

    # ------------------------------------------------------------------
    # shelf assignments (FIFO supply ledger)
    # ------------------------------------------------------------------
    async def fifo_queue(self, package_id: int) -> List[ShelfAssignment]:
        """Assignments with stock, oldest first (assigned_date, then id)."""
        stmt = (
            select(ShelfAssignment)
            .where(ShelfAssignment.package_id == package_id, ShelfAssignment.quantity > 0)
            .order_by(ShelfAssignment.assigned_date.asc(), ShelfAssignment.id.asc())
        )
        return list((await self.session.execute(stmt)).scalars().all())

    async def oldest_available_assignment(
        self,
        package_id: int,
        *,
        for_update: bool = True,
    ) -> Optional[ShelfAssignment]:
        stmt = (
            select(ShelfAssignment)
            .where(ShelfAssignment.package_id == package_id, ShelfAssignment.quantity > 0)
            .order_by(ShelfAssignment.assigned_date.asc(), ShelfAssignment.id.asc())
            .limit(1)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return (await self.session.execute(stmt)).scalars().first()

    async def get_assignment(self, assignment_id: int, *, for_update: bool = True) -> Optional[ShelfAssignment]:
        stmt = select(ShelfAssignment).where(ShelfAssignment.id == assignment_id)
        if for_update:
            stmt = stmt.with_for_update()
        return (await self.session.execute(stmt)).scalars().first()

    async def oldest_assignment_any(self, package_id: int, *, for_update: bool = True) -> Optional[ShelfAssignment]:
        """Oldest assignment of the package regardless of remaining quantity."""
        stmt = (
            select(ShelfAssignment)
            .where(ShelfAssignment.package_id == package_id)
            .order_by(ShelfAssignment.assigned_date.asc(), ShelfAssignment.id.asc())
            .limit(1)
        )
        if for_update:
            stmt = stmt.with_for_update()
        return (await self.session.execute(stmt)).scalars().first()

    async def get_shelf(self, shelf_id: int) -> Optional[Shelf]:
        return await self.session.get(Shelf, shelf_id)

    # ------------------------------------------------------------------
    # sync outbox
    # ------------------------------------------------------------------
    async def add_sync_job(
        self,
        *,
        order_id: int,
        pick_id: Optional[int],
        kind: str,
        target_status: str,
    ) -> SyncJob:
        job = SyncJob(
            order_id=order_id,
            pick_id=pick_id,
            kind=kind,
            target_status=target_status,
            status=SyncJobStatus.PENDING.value,
        )
        self.session.add(job)
        await self.session.flush()
        return job

    async def get_sync_job(self, job_id: int, *, for_update: bool = False) -> Optional[SyncJob]:
        stmt = select(SyncJob).where(SyncJob.id == job_id)
        if for_update:
            stmt = stmt.with_for_update()
        return (await self.session.execute(stmt)).scalars().first()

    async def list_sync_jobs(self, order_id: int) -> List[SyncJob]:
        stmt = select(SyncJob).where(SyncJob.order_id == order_id).order_by(SyncJob.id.asc())
        return list((await self.session.execute(stmt)).scalars().all())

    async def list_retryable_jobs(
        self,
        *,
        max_attempts: int,
        statuses: Sequence[str] = (SyncJobStatus.PENDING.value, SyncJobStatus.FAILED.value),
        limit: int = 200,
    ) -> List[SyncJob]:
        stmt = (
            select(SyncJob)
            .where(SyncJob.status.in_(list(statuses)), SyncJob.attempts < max_attempts)
            .order_by(SyncJob.created_at.asc(), SyncJob.id.asc())
            .limit(limit)
        )
        return list((await self.session.execute(stmt)).scalars().all())
