# shelfpick/jobs/ecommerce_status_push.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple

from shelfpick.integrations.ecommerce_client import EcommerceClient
from shelfpick.integrations.types import PlatformLineItem, PlatformOrder
from shelfpick.metrics import EXTERNAL_SYNC
from shelfpick.models.enums import EcommerceSyncStatus, FulfillmentStatus
from shelfpick.models.order import Order
from shelfpick.models.order_item import OrderItem

log = logging.getLogger("shelfpick.sync.ecommerce")

Sleep = Callable[[float], Awaitable[None]]


@dataclass
class PushOutcome:
    status: str
    target_status: str
    attempts: List[str] = field(default_factory=list)
    synced_via: Optional[str] = None
    error: Optional[str] = None


def local_line_items(items: Sequence[OrderItem]) -> List[PlatformLineItem]:
    out: List[PlatformLineItem] = []
    for it in items:
        product = it.product
        ref = (product.ecommerce_product_id if product is not None else None) or it.sku
        if ref:
            out.append(PlatformLineItem(id=str(ref), quantity=int(it.quantity)))
    return out


async def push_fulfillment_status(
    order: Order,
    items: Sequence[OrderItem],
    *,
    target_status: str,
    client: EcommerceClient,
    retry_delay: float = 0.0,
    sleep: Sleep = asyncio.sleep,
) -> PushOutcome:
    """
    Idempotent push of one fulfillment status to the platform.

    - no external id      -> no_external_id, no calls
    - platform already at -> skipped, no write
    - otherwise the first applicable attempt that succeeds wins:
        create_fulfillment (FULFILLED only)
        cancel_fulfillment (NOT_FULFILLED only)
        legacy_patch_status
      all failing -> failed; local state is left alone

    The outcome is written onto the order; the caller commits.
    """
    external_id = order.ecommerce_order_id
    if not external_id:
        log.info("ecommerce: order %s has no external id, push skipped", order.order_number)
        return _record(order, PushOutcome(status=EcommerceSyncStatus.NO_EXTERNAL_ID.value, target_status=target_status))

    platform: Optional[PlatformOrder] = None
    try:
        platform = await client.get_order(external_id)
    except Exception as exc:
        log.warning("ecommerce: reading order %s failed, pushing blind: %s", external_id, exc)

    if platform is not None and platform.fulfillment_status == target_status:
        log.info("ecommerce: order %s already %s", external_id, target_status)
        return _record(order, PushOutcome(status=EcommerceSyncStatus.SKIPPED.value, target_status=target_status))

    line_items = list(platform.line_items) if platform is not None and platform.line_items else local_line_items(items)

    attempts: List[Tuple[str, Callable[[], Awaitable[None]]]] = []
    if target_status == FulfillmentStatus.FULFILLED.value:
        attempts.append(("create_fulfillment", lambda: client.create_fulfillment(external_id, line_items)))
    if target_status == FulfillmentStatus.NOT_FULFILLED.value:
        attempts.append(("cancel_fulfillment", lambda: client.cancel_fulfillment(external_id)))
    attempts.append(("legacy_patch_status", lambda: client.legacy_patch_status(external_id, target_status)))

    outcome = PushOutcome(status=EcommerceSyncStatus.FAILED.value, target_status=target_status)
    errors: List[str] = []
    for n, (name, call) in enumerate(attempts):
        if n > 0 and retry_delay > 0:
            await sleep(retry_delay)
        outcome.attempts.append(name)
        try:
            await call()
        except Exception as exc:
            log.warning("ecommerce: %s for order %s failed: %s", name, external_id, exc)
            errors.append(f"{name}: {exc}")
            continue
        outcome.status = EcommerceSyncStatus.SYNCED.value
        outcome.synced_via = name
        break

    if outcome.status == EcommerceSyncStatus.FAILED.value:
        outcome.error = "; ".join(errors)
        log.error("ecommerce: order %s could not be set to %s", external_id, target_status)
    else:
        log.info("ecommerce: order %s set to %s via %s", external_id, target_status, outcome.synced_via)
    return _record(order, outcome)


def _record(order: Order, outcome: PushOutcome) -> PushOutcome:
    order.ecommerce_sync_status = outcome.status
    order.ecommerce_sync_error = outcome.error
    EXTERNAL_SYNC.labels("ecommerce", outcome.status).inc()
    return outcome
