# shelfpick/jobs/erp_delivery_sync.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Dict, List, Optional, Sequence

from shelfpick.integrations.erp_client import ErpClient
from shelfpick.integrations.types import DeliveryDocument, DeliveryLine, DeliveryResult, OrderLine
from shelfpick.metrics import EXTERNAL_SYNC
from shelfpick.models.enums import DeliveryMethod, DeliveryStatus
from shelfpick.models.order import Order
from shelfpick.models.order_item import OrderItem

log = logging.getLogger("shelfpick.sync.erp")


@dataclass
class ErpSyncOutcome:
    reconciled: Optional[bool]  # True: ERP lines updated, False: already equal, None: not done
    delivery_status: str
    delivery_method: Optional[str] = None
    delivery_note_id: Optional[str] = None
    error: Optional[str] = None
    skipped: bool = False


def line_sku(item: OrderItem) -> str:
    product = item.product
    return str(item.sku or (product.sku if product is not None else "") or "")


def stock_code(item: OrderItem) -> str:
    product = item.product
    if product is not None and product.erp_stock_code:
        return str(product.erp_stock_code)
    return line_sku(item)


def local_line_quantities(items: Sequence[OrderItem]) -> Dict[str, int]:
    out: Dict[str, int] = {}
    for it in items:
        sku = line_sku(it)
        if sku:
            out[sku] = out.get(sku, 0) + int(it.quantity)
    return out


def batch_date_range(order: Order, *, lookback_days: int, today: date) -> tuple[date, date]:
    created = order.created_at.date() if order.created_at is not None else today
    return created - timedelta(days=int(lookback_days)), today


async def reconcile_order_lines(client: ErpClient, order: Order, items: Sequence[OrderItem]) -> Optional[bool]:
    """
    Bring the ERP order's line quantities in line with ours.
    Failures are logged and swallowed; the delivery document still gets a try.
    """
    local = local_line_quantities(items)
    try:
        remote = await client.query_order_line_quantities(order.order_number)
        if not remote:
            log.info("erp: order %s has no lines on the ERP side, reconcile skipped", order.order_number)
            return None
        if all(remote.get(sku) == qty for sku, qty in local.items()):
            return False
        lines = [OrderLine(sku=sku, quantity=qty) for sku, qty in local.items()]
        await client.update_order_line_quantities(order.order_number, lines)
        log.info("erp: order %s line quantities updated (%s lines)", order.order_number, len(lines))
        return True
    except Exception as exc:
        log.warning("erp: reconcile of order %s failed: %s", order.order_number, exc)
        return None


async def _manual_delivery(client: ErpClient, order: Order, items: Sequence[OrderItem]) -> DeliveryResult:
    if not order.customer_code:
        return DeliveryResult(success=False, error="order has no customer code")

    customer_ref = await client.lookup_customer(order.customer_code)
    if not customer_ref:
        return DeliveryResult(success=False, error=f"customer {order.customer_code} not found in ERP")

    lines: List[DeliveryLine] = []
    for it in items:
        if int(it.picked_qty) <= 0:
            continue
        code = stock_code(it)
        ref = await client.lookup_stock_code(code)
        if not ref:
            return DeliveryResult(success=False, error=f"stock card {code} not found in ERP")
        lines.append(
            DeliveryLine(
                stock_ref=ref,
                sku=line_sku(it),
                quantity=int(it.picked_qty),
                unit_price=float(it.unit_price or 0),
            )
        )
    if not lines:
        return DeliveryResult(success=False, error="nothing picked")

    doc = DeliveryDocument(
        order_number=order.order_number,
        customer_ref=customer_ref,
        lines=lines,
        description=f"WMS pick of order {order.order_number}",
    )
    return await client.create_delivery_document(doc)


async def sync_erp_delivery(
    order: Order,
    items: Sequence[OrderItem],
    *,
    client: ErpClient,
    lookback_days: int,
    today: Optional[date] = None,
) -> ErpSyncOutcome:
    """
    ERP side of an order completion:

      1) reconcile line quantities (best effort)
      2) delivery document, unless the order already has one:
         manual (picked quantities) first, open-order conversion as fallback

    The outcome is written onto the order; the caller commits. Local
    fulfillment state is never touched here.
    """
    reconciled = await reconcile_order_lines(client, order, items)

    if order.erp_delivery_note_id:
        log.info("erp: order %s already has delivery note %s", order.order_number, order.erp_delivery_note_id)
        EXTERNAL_SYNC.labels("erp", "skipped").inc()
        return ErpSyncOutcome(
            reconciled=reconciled,
            delivery_status=order.erp_delivery_status,
            delivery_method=order.erp_delivery_method,
            delivery_note_id=order.erp_delivery_note_id,
            skipped=True,
        )

    try:
        manual = await _manual_delivery(client, order, items)
    except Exception as exc:
        manual = DeliveryResult(success=False, error=str(exc))

    if manual.success:
        outcome = ErpSyncOutcome(
            reconciled=reconciled,
            delivery_status=DeliveryStatus.CREATED.value,
            delivery_method=DeliveryMethod.MANUAL.value,
            delivery_note_id=manual.document_id,
        )
    else:
        log.warning("erp: manual delivery note for %s failed (%s), trying batch", order.order_number, manual.error)
        date_range = batch_date_range(order, lookback_days=lookback_days, today=today or date.today())
        try:
            batch = await client.convert_open_order_to_delivery_document(order.order_number, date_range)
        except Exception as exc:
            log.error("erp: batch delivery note for %s raised: %s", order.order_number, exc)
            outcome = ErpSyncOutcome(
                reconciled=reconciled,
                delivery_status=DeliveryStatus.ERROR.value,
                error=f"manual: {manual.error}; batch: {exc}",
            )
        else:
            if batch.success:
                outcome = ErpSyncOutcome(
                    reconciled=reconciled,
                    delivery_status=DeliveryStatus.CREATED.value,
                    delivery_method=DeliveryMethod.BATCH.value,
                    delivery_note_id=batch.document_id,
                )
            else:
                outcome = ErpSyncOutcome(
                    reconciled=reconciled,
                    delivery_status=DeliveryStatus.PENDING_MANUAL.value,
                    error=f"manual: {manual.error}; batch: {batch.error}",
                )

    order.erp_delivery_status = outcome.delivery_status
    order.erp_delivery_method = outcome.delivery_method
    order.erp_delivery_note_id = outcome.delivery_note_id
    order.erp_delivery_error = outcome.error

    EXTERNAL_SYNC.labels("erp", outcome.delivery_status).inc()
    log.info(
        "erp: order %s delivery status=%s method=%s note=%s",
        order.order_number,
        outcome.delivery_status,
        outcome.delivery_method,
        outcome.delivery_note_id,
    )
    return outcome
