# shelfpick/services/pick_scan.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from shelfpick.metrics import PICK_SCANS
from shelfpick.models.enums import PickStatus
from shelfpick.services.fifo_allocator import FifoAllocator
from shelfpick.services.pick_completion import CompletionDetector
from shelfpick.services.pick_errors import OverScan, UnexpectedItem, UnknownBarcode
from shelfpick.services.pick_progress import expected_scans, picked_sets, scans_per_set
from shelfpick.services.pick_store import PickStore

log = logging.getLogger("shelfpick.pick.scan")

# a successful scan (re)activates the pick from these states
_ACTIVATING = (PickStatus.PENDING.value, PickStatus.PARTIAL.value)


@dataclass(frozen=True)
class ScanOutcome:
    pick_id: int
    order_id: int
    order_item_id: int
    picked_qty: int
    quantity: int
    order_completed: bool
    scan_id: int
    shelf_assignment_id: Optional[int]
    sync_job_id: Optional[int] = None


class ScanProcessor:
    """
    One barcode scan = one unit of work:

      1) barcode -> package (UNKNOWN_BARCODE)
      2) package.product -> order item of the pick's order, locked (UNEXPECTED_ITEM)
      3) scans of (order, item, barcode) over all picks vs package.quantity * item.quantity (OVER_SCAN)
      4) FIFO decrement of the oldest shelf assignment (may find none)
      5) append the scan row
      6) picked_qty = min(quantity, total_scans // scans_per_set)
      7) completion check

    Rejections raise before anything is written. Commit / rollback is the
    caller's business.
    """

    def __init__(
        self,
        *,
        allocator: Optional[FifoAllocator] = None,
        detector: Optional[CompletionDetector] = None,
    ) -> None:
        self.allocator = allocator or FifoAllocator()
        self.detector = detector or CompletionDetector()

    async def process(self, store: PickStore, *, pick_id: int, barcode: str) -> ScanOutcome:
        pick = await store.get_pick(pick_id, for_update=True)

        code = (barcode or "").strip()
        package = await store.find_package_by_barcode(code) if code else None
        if package is None:
            raise UnknownBarcode(code)

        item = await store.find_order_item(
            order_id=pick.order_id,
            product_id=package.product_id,
            for_update=True,
        )
        if item is None:
            raise UnexpectedItem(code, order_id=pick.order_id, product_id=package.product_id)

        scanned = await store.count_scans(order_id=pick.order_id, order_item_id=item.id, barcode=code)
        expected = expected_scans(package.quantity, item.quantity)
        if scanned >= expected:
            raise OverScan(code, order_item_id=item.id, scanned=scanned, expected=expected)

        assignment = await self.allocator.take_one(store, package_id=package.id)

        scan = await store.add_scan(
            pick_id=pick.id,
            order_item_id=item.id,
            product_id=item.product_id,
            package_id=package.id,
            barcode=code,
            shelf_assignment_id=assignment.id if assignment is not None else None,
            stock_depleted=assignment is not None,
        )

        total = await store.count_scans(order_id=pick.order_id, order_item_id=item.id)
        packages = await store.list_product_packages(item.product_id)
        per_set = scans_per_set(p.quantity for p in packages)
        item.picked_qty = picked_sets(total, per_set, item.quantity)

        if pick.status in _ACTIVATING:
            pick.status = PickStatus.ACTIVE.value
        await store.session.flush()

        job = await self.detector.check(store, pick=pick)
        completed = job is not None

        PICK_SCANS.labels("true" if completed else "false").inc()
        log.info(
            "scan ok: pick=%s item=%s barcode=%s picked=%s/%s assignment=%s completed=%s",
            pick.id,
            item.id,
            code,
            item.picked_qty,
            item.quantity,
            scan.shelf_assignment_id,
            completed,
        )

        return ScanOutcome(
            pick_id=pick.id,
            order_id=pick.order_id,
            order_item_id=item.id,
            picked_qty=int(item.picked_qty),
            quantity=int(item.quantity),
            order_completed=completed,
            scan_id=scan.id,
            shelf_assignment_id=scan.shelf_assignment_id,
            sync_job_id=job.id if job is not None else None,
        )
