# shelfpick/services/pick_compensation.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from shelfpick.metrics import PICK_COMPENSATIONS
from shelfpick.models.enums import FulfillmentStatus, OrderStatus, PickStatus, SyncKind
from shelfpick.models.pick import Pick
from shelfpick.services.fifo_allocator import FifoAllocator
from shelfpick.services.pick_errors import PickStateConflict
from shelfpick.services.pick_store import PickStore

log = logging.getLogger("shelfpick.pick.compensation")


@dataclass(frozen=True)
class PartialResult:
    pick: Pick
    order_id: int
    fulfillment_status: str
    sync_job_id: int


@dataclass(frozen=True)
class ResetResult:
    pick: Pick
    order_id: int
    scans_deleted: int
    units_replenished: int
    sync_job_id: int


class CompensationEngine:
    """
    Undo paths of a pick.

    partial : pick -> partial, order -> PARTIALLY_FULFILLED; shelves and scans untouched
    reset   : every depleting scan of the pick gives its unit back, the pick's
              scans are removed, the order's items go back to picked_qty=0,
              pick -> pending, order -> NOT_FULFILLED (and open again if it was
              fulfilled)

    Both write exactly one sync job; the caller commits and dispatches it.
    """

    def __init__(self, *, allocator: Optional[FifoAllocator] = None) -> None:
        self.allocator = allocator or FifoAllocator()

    async def partial(self, store: PickStore, *, pick_id: int) -> PartialResult:
        pick = await store.get_pick(pick_id, for_update=True)
        if pick.status == PickStatus.COMPLETED.value:
            raise PickStateConflict(
                f"Pick {pick.id} is completed; reset it before marking it partial",
                context={"pick_id": pick.id, "status": pick.status},
            )

        order = await store.get_order(pick.order_id, for_update=True)
        pick.status = PickStatus.PARTIAL.value
        order.fulfillment_status = FulfillmentStatus.PARTIALLY_FULFILLED.value

        job = await store.add_sync_job(
            order_id=order.id,
            pick_id=pick.id,
            kind=SyncKind.PARTIAL.value,
            target_status=FulfillmentStatus.PARTIALLY_FULFILLED.value,
        )
        PICK_COMPENSATIONS.labels(SyncKind.PARTIAL.value).inc()
        log.info("pick %s set to partial, order %s -> PARTIALLY_FULFILLED", pick.id, order.id)

        return PartialResult(
            pick=pick,
            order_id=order.id,
            fulfillment_status=order.fulfillment_status,
            sync_job_id=job.id,
        )

    async def reset(self, store: PickStore, *, pick_id: int) -> ResetResult:
        pick = await store.get_pick(pick_id, for_update=True)
        # lock order: pick, order items, shelf assignments, order (same as a scan)
        items = await store.list_order_items(pick.order_id, for_update=True)

        replenished = 0
        for scan in await store.list_pick_scans(pick.id):
            # scans accepted on empty shelves took nothing
            if not scan.stock_depleted:
                continue
            target = await self.allocator.replenish(
                store,
                package_id=scan.package_id,
                assignment_id=scan.shelf_assignment_id,
            )
            if target is not None:
                replenished += 1

        deleted = await store.delete_pick_scans(pick.id)

        for item in items:
            item.picked_qty = 0

        order = await store.get_order(pick.order_id, for_update=True)

        pick.status = PickStatus.PENDING.value
        order.fulfillment_status = FulfillmentStatus.NOT_FULFILLED.value
        if order.status == OrderStatus.FULFILLED.value:
            order.status = OrderStatus.OPEN.value

        job = await store.add_sync_job(
            order_id=order.id,
            pick_id=pick.id,
            kind=SyncKind.RESET.value,
            target_status=FulfillmentStatus.NOT_FULFILLED.value,
        )
        PICK_COMPENSATIONS.labels(SyncKind.RESET.value).inc()
        log.info(
            "pick %s reset: scans_deleted=%s units_replenished=%s, order %s -> NOT_FULFILLED",
            pick.id,
            deleted,
            replenished,
            order.id,
        )

        return ResetResult(
            pick=pick,
            order_id=order.id,
            scans_deleted=deleted,
            units_replenished=replenished,
            sync_job_id=job.id,
        )
