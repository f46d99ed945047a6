# shelfpick/services/pick_completion.py
from __future__ import annotations

import logging
from typing import Optional

from shelfpick.models.enums import FulfillmentStatus, OrderStatus, PickStatus, SyncKind
from shelfpick.models.pick import Pick
from shelfpick.models.sync_job import SyncJob
from shelfpick.services.pick_store import PickStore

log = logging.getLogger("shelfpick.pick.completion")


class CompletionDetector:
    """
    Runs after every accepted scan, inside the scan transaction.

    Stateless: the only input is the number of order items still short
    (picked_qty < quantity). When that reaches zero the order, the pick and
    the sync outbox are written together.
    """

    async def check(self, store: PickStore, *, pick: Pick) -> Optional[SyncJob]:
        remaining = await store.count_unpicked_items(pick.order_id)
        if remaining > 0:
            return None

        order = await store.get_order(pick.order_id, for_update=True)
        order.status = OrderStatus.FULFILLED.value
        order.fulfillment_status = FulfillmentStatus.FULFILLED.value
        pick.status = PickStatus.COMPLETED.value

        job = await store.add_sync_job(
            order_id=order.id,
            pick_id=pick.id,
            kind=SyncKind.COMPLETED.value,
            target_status=FulfillmentStatus.FULFILLED.value,
        )
        log.info(
            "pick completed: pick=%s order=%s (%s), sync job=%s queued",
            pick.id,
            order.id,
            order.order_number,
            job.id,
        )
        return job
