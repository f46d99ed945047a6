# tests/jobs/test_ecommerce_status_push.py
from __future__ import annotations

import pytest

from shelfpick.integrations.types import PlatformLineItem
from shelfpick.jobs.ecommerce_status_push import push_fulfillment_status
from tests.helpers.seed import seed_order, seed_product

pytestmark = [pytest.mark.asyncio, pytest.mark.grp_sync]


async def _order(session, *, ecommerce_order_id="WIX-77"):
    sofa, _ = await seed_product(session, sku="SOFA-1", packages=[("PKG-A", 1)], ecommerce_product_id="wix-prod-sofa")
    lamp, _ = await seed_product(session, sku="LAMP-1", packages=[("LMP-1", 1)])
    order, items = await seed_order(
        session,
        order_number="ORD-E",
        lines=[(sofa, 2), (lamp, 1)],
        ecommerce_order_id=ecommerce_order_id,
    )
    return order, items


async def test_no_external_id_makes_no_calls(session, ecom):
    order, items = await _order(session, ecommerce_order_id=None)

    out = await push_fulfillment_status(order, items, target_status="FULFILLED", client=ecom)

    assert out.status == "no_external_id"
    assert ecom.calls == []
    assert order.ecommerce_sync_status == "no_external_id"


async def test_platform_already_at_target_is_skipped(session, ecom):
    order, items = await _order(session)
    ecom.add_order("WIX-77", status="FULFILLED")

    out = await push_fulfillment_status(order, items, target_status="FULFILLED", client=ecom)

    assert out.status == "skipped"
    assert ecom.writes == []


async def test_pushing_twice_writes_once(session, ecom):
    order, items = await _order(session)
    ecom.add_order("WIX-77", status="NOT_FULFILLED")

    first = await push_fulfillment_status(order, items, target_status="PARTIALLY_FULFILLED", client=ecom)
    second = await push_fulfillment_status(order, items, target_status="PARTIALLY_FULFILLED", client=ecom)

    assert (first.status, second.status) == ("synced", "skipped")
    assert ecom.writes == [("legacy_patch_status", ("WIX-77", "PARTIALLY_FULFILLED"))]


async def test_fulfilled_uses_platform_line_items(session, ecom):
    order, items = await _order(session)
    platform_items = [PlatformLineItem(id="li-1", quantity=2)]
    ecom.add_order("WIX-77", line_items=platform_items)

    out = await push_fulfillment_status(order, items, target_status="FULFILLED", client=ecom)

    assert out.status == "synced"
    assert out.synced_via == "create_fulfillment"
    assert ecom.writes == [("create_fulfillment", ("WIX-77", platform_items))]
    assert ecom.status_of("WIX-77") == "FULFILLED"
    assert order.ecommerce_sync_status == "synced"
    assert order.ecommerce_sync_error is None


async def test_fulfilled_falls_back_to_local_lines_when_read_fails(session, ecom):
    order, items = await _order(session)
    # not registered on the fake: get_order raises

    out = await push_fulfillment_status(order, items, target_status="FULFILLED", client=ecom)

    assert out.status == "synced"
    (name, (external_id, line_items)), = ecom.writes
    assert name == "create_fulfillment"
    assert line_items == [PlatformLineItem(id="wix-prod-sofa", quantity=2), PlatformLineItem(id="LAMP-1", quantity=1)]


async def test_create_failure_falls_through_to_legacy_patch(session, ecom):
    order, items = await _order(session)
    ecom.add_order("WIX-77")
    ecom.fail.add("create_fulfillment")
    slept = []

    async def fake_sleep(s):
        slept.append(s)

    out = await push_fulfillment_status(
        order,
        items,
        target_status="FULFILLED",
        client=ecom,
        retry_delay=1.5,
        sleep=fake_sleep,
    )

    assert out.status == "synced"
    assert out.attempts == ["create_fulfillment", "legacy_patch_status"]
    assert out.synced_via == "legacy_patch_status"
    assert slept == [1.5]


async def test_not_fulfilled_cancels_fulfillments_first(session, ecom):
    order, items = await _order(session)
    ecom.add_order("WIX-77", status="FULFILLED")

    out = await push_fulfillment_status(order, items, target_status="NOT_FULFILLED", client=ecom)

    assert out.synced_via == "cancel_fulfillment"
    assert [n for n, _ in ecom.writes] == ["cancel_fulfillment"]


async def test_all_attempts_failing_is_recorded_on_the_order(session, ecom):
    order, items = await _order(session)
    ecom.add_order("WIX-77", status="FULFILLED")
    ecom.fail.update({"cancel_fulfillment", "legacy_patch_status"})
    order.fulfillment_status = "NOT_FULFILLED"

    out = await push_fulfillment_status(order, items, target_status="NOT_FULFILLED", client=ecom)

    assert out.status == "failed"
    assert out.attempts == ["cancel_fulfillment", "legacy_patch_status"]
    assert "cancel_fulfillment" in out.error and "legacy_patch_status" in out.error
    assert order.ecommerce_sync_status == "failed"
    assert order.ecommerce_sync_error == out.error
    # local state is never rolled back by a failed push
    assert order.fulfillment_status == "NOT_FULFILLED"
