# shelfpick/services/fifo_allocator.py
from __future__ import annotations

import logging
from typing import Optional

from shelfpick.metrics import FIFO_EMPTY_SHELF
from shelfpick.models.shelf import ShelfAssignment
from shelfpick.services.pick_store import PickStore

log = logging.getLogger("shelfpick.fifo")


class FifoAllocator:
    """
    FIFO allocator over shelf assignments.

    Ordering: assigned_date ASC, id ASC; only rows with quantity > 0 qualify.
    The chosen row is locked FOR UPDATE, so two scans of the same package
    serialize on it instead of both reading a stale quantity.

    Must run inside the caller's transaction:

        async with session.begin():
            assignment = await fifo.take_one(store, package_id=...)
    """

    async def take_one(self, store: PickStore, *, package_id: int) -> Optional[ShelfAssignment]:
        """
        Decrement the oldest non-empty assignment by one and return it.

        Returns None when no shelf holds the package; scanning is not blocked
        by empty shelves, the miss is only logged and counted.
        """
        assignment = await store.oldest_available_assignment(package_id, for_update=True)
        if assignment is None:
            FIFO_EMPTY_SHELF.inc()
            log.warning("fifo: no shelf stock for package_id=%s, scan accepted without depletion", package_id)
            return None

        assignment.quantity = int(assignment.quantity) - 1
        await store.session.flush()
        log.debug(
            "fifo: took 1 from assignment=%s shelf=%s package=%s (left=%s)",
            assignment.id,
            assignment.shelf_id,
            package_id,
            assignment.quantity,
        )
        return assignment

    async def replenish(
        self,
        store: PickStore,
        *,
        package_id: int,
        assignment_id: Optional[int],
    ) -> Optional[ShelfAssignment]:
        """
        Put one unit back.

        Prefers the assignment the scan depleted; when that row is gone, the
        package's oldest assignment receives the unit (best effort, the unit
        may land on a different row than it came from). Returns None when the
        package has no assignment at all.
        """
        target: Optional[ShelfAssignment] = None
        if assignment_id is not None:
            target = await store.get_assignment(assignment_id, for_update=True)
        if target is None:
            target = await store.oldest_assignment_any(package_id, for_update=True)
        if target is None:
            log.warning(
                "fifo: nothing to replenish for package_id=%s (assignment_id=%s)",
                package_id,
                assignment_id,
            )
            return None

        target.quantity = int(target.quantity) + 1
        await store.session.flush()
        return target
