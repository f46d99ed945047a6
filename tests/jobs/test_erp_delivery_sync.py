# tests/jobs/test_erp_delivery_sync.py
from __future__ import annotations

from datetime import date, datetime, timezone

import pytest

from shelfpick.integrations.types import DeliveryResult
from shelfpick.jobs.erp_delivery_sync import batch_date_range, reconcile_order_lines, sync_erp_delivery
from tests.helpers.seed import seed_order, seed_product

pytestmark = [pytest.mark.asyncio, pytest.mark.grp_sync]

TODAY = date(2026, 3, 10)


async def _picked_order(session, *, customer_code="C-001", picked=True, erp_stock_code="ERP-SOFA"):
    sofa, _ = await seed_product(session, sku="SOFA-1", packages=[("PKG-A", 1)], erp_stock_code=erp_stock_code)
    table, _ = await seed_product(session, sku="TABLE-1", packages=[("TBL-1", 1)])
    order, items = await seed_order(
        session,
        order_number="ORD-9",
        lines=[(sofa, 2), (table, 1)],
        customer_code=customer_code,
        created_at=datetime(2026, 3, 1, 9, 30, tzinfo=timezone.utc),
    )
    if picked:
        for it in items:
            it.picked_qty = it.quantity
    await session.flush()
    return order, items


async def test_reconcile_updates_remote_lines_that_differ(session, erp):
    order, items = await _picked_order(session)
    erp.remote_lines["ORD-9"] = {"SOFA-1": 3, "TABLE-1": 1}

    assert await reconcile_order_lines(erp, order, items) is True
    (number, lines), = erp.called("update_order_line_quantities")
    assert number == "ORD-9"
    assert {ln.sku: ln.quantity for ln in lines} == {"SOFA-1": 2, "TABLE-1": 1}


async def test_reconcile_leaves_equal_lines_alone(session, erp):
    order, items = await _picked_order(session)
    erp.remote_lines["ORD-9"] = {"SOFA-1": 2, "TABLE-1": 1}

    assert await reconcile_order_lines(erp, order, items) is False
    assert erp.called("update_order_line_quantities") == []


async def test_reconcile_failure_is_swallowed(session, erp):
    order, items = await _picked_order(session)
    erp.fail.add("query_order_line_quantities")

    assert await reconcile_order_lines(erp, order, items) is None


async def test_manual_delivery_uses_picked_quantities(session, erp):
    order, items = await _picked_order(session)

    out = await sync_erp_delivery(order, items, client=erp, lookback_days=7, today=TODAY)

    assert out.delivery_status == "created"
    assert out.delivery_method == "manual"
    assert out.delivery_note_id == "IRS-0001"
    assert order.erp_delivery_note_id == "IRS-0001"
    assert order.erp_delivery_status == "created"

    (doc,) = erp.documents
    assert doc.customer_ref == "CUST-REF-001"
    assert [(ln.stock_ref, ln.quantity) for ln in doc.lines] == [("STK-ERP-SOFA", 2), ("STK-TABLE-1", 1)]
    assert erp.called("convert_open_order_to_delivery_document") == []


async def test_batch_fallback_when_customer_is_unknown(session, erp):
    order, items = await _picked_order(session, customer_code="C-404")

    out = await sync_erp_delivery(order, items, client=erp, lookback_days=7, today=TODAY)

    assert out.delivery_method == "batch"
    assert out.delivery_note_id == "IRS-B-0001"
    (number, date_range), = erp.called("convert_open_order_to_delivery_document")
    assert number == "ORD-9"
    assert date_range == (date(2026, 2, 22), TODAY)


async def test_batch_fallback_when_nothing_was_picked(session, erp):
    order, items = await _picked_order(session, picked=False)

    out = await sync_erp_delivery(order, items, client=erp, lookback_days=7, today=TODAY)

    assert out.delivery_method == "batch"
    assert erp.documents == []


async def test_both_strategies_failing_softly_is_pending_manual(session, erp):
    order, items = await _picked_order(session, customer_code=None)
    erp.convert_result = DeliveryResult(success=False, error="no open order")

    out = await sync_erp_delivery(order, items, client=erp, lookback_days=7, today=TODAY)

    assert out.delivery_status == "pending_manual"
    assert out.delivery_note_id is None
    assert "no customer code" in out.error
    assert "no open order" in out.error
    assert order.erp_delivery_status == "pending_manual"


async def test_batch_raising_is_an_error(session, erp):
    order, items = await _picked_order(session)
    erp.fail.update({"create_delivery_document", "convert_open_order_to_delivery_document"})

    out = await sync_erp_delivery(order, items, client=erp, lookback_days=7, today=TODAY)

    assert out.delivery_status == "error"
    assert order.erp_delivery_status == "error"
    assert order.erp_delivery_error == out.error
    # local fulfillment state is not ERP's business
    assert order.fulfillment_status == "NOT_FULFILLED"


async def test_existing_delivery_note_is_not_duplicated(session, erp):
    order, items = await _picked_order(session)
    order.erp_delivery_note_id = "IRS-OLD"
    order.erp_delivery_status = "created"
    order.erp_delivery_method = "manual"

    out = await sync_erp_delivery(order, items, client=erp, lookback_days=7, today=TODAY)

    assert out.skipped is True
    assert out.delivery_note_id == "IRS-OLD"
    assert erp.documents == []
    assert erp.called("convert_open_order_to_delivery_document") == []


async def test_batch_date_range_falls_back_to_today(session):
    order, _ = await _picked_order(session)
    order.created_at = None
    assert batch_date_range(order, lookback_days=3, today=TODAY) == (date(2026, 3, 7), TODAY)
