# shelfpick/services/pick_session_service.py
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from shelfpick.metrics import PICK_SCAN_REJECTS
from shelfpick.models.enums import PickStatus
from shelfpick.models.pick import Pick
from shelfpick.services.fifo_allocator import FifoAllocator
from shelfpick.services.location_verify import LocationVerdict, verify_location as _verify_location
from shelfpick.services.pick_compensation import CompensationEngine, PartialResult, ResetResult
from shelfpick.services.pick_errors import PickValidationError
from shelfpick.services.pick_scan import ScanOutcome, ScanProcessor
from shelfpick.services.pick_store import PickStore
from shelfpick.services.pick_views import PickDetail, load_pick_detail

log = logging.getLogger("shelfpick.pick")


class PickSessionService:
    """
    Facade the picks router talks to. Every method works inside the caller's
    transaction; the router commits on success and rolls back on any error.
    """

    def __init__(self, session: AsyncSession, *, allocator: Optional[FifoAllocator] = None) -> None:
        self.session = session
        self.store = PickStore(session)
        allocator = allocator or FifoAllocator()
        self.scanner = ScanProcessor(allocator=allocator)
        self.compensation = CompensationEngine(allocator=allocator)

    async def create(self, *, order_id: int) -> Pick:
        order = await self.store.get_order(order_id)
        pick = await self.store.create_pick(order_id=order.id, status=PickStatus.ACTIVE.value)
        log.info("pick %s created for order %s (%s)", pick.id, order.id, order.order_number)
        return pick

    async def get_detail(self, *, pick_id: int) -> PickDetail:
        return await load_pick_detail(self.store, pick_id)

    async def scan(self, *, pick_id: int, barcode: str) -> ScanOutcome:
        try:
            return await self.scanner.process(self.store, pick_id=pick_id, barcode=barcode)
        except PickValidationError as e:
            PICK_SCAN_REJECTS.labels(e.code).inc()
            log.info("scan rejected: pick=%s barcode=%s code=%s", pick_id, barcode, e.code)
            raise

    async def partial(self, *, pick_id: int) -> PartialResult:
        return await self.compensation.partial(self.store, pick_id=pick_id)

    async def reset(self, *, pick_id: int) -> ResetResult:
        return await self.compensation.reset(self.store, pick_id=pick_id)

    async def verify_location(self, *, pick_id: int, package_barcode: str, shelf_code: str) -> LocationVerdict:
        return await _verify_location(
            self.store,
            pick_id=pick_id,
            package_barcode=package_barcode,
            shelf_code=shelf_code,
        )


__all__ = [
    "LocationVerdict",
    "PartialResult",
    "PickDetail",
    "PickSessionService",
    "ResetResult",
    "ScanOutcome",
]
