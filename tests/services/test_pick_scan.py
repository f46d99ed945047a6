# tests/services/test_pick_scan.py
from __future__ import annotations

import pytest
from sqlalchemy import select

from shelfpick.models import OrderItem, PickScan, SyncJob
from shelfpick.services.pick_errors import OverScan, PickNotFound, UnexpectedItem, UnknownBarcode
from shelfpick.services.pick_session_service import PickSessionService
from tests.helpers.seed import (
    T0,
    assignment_qty,
    scan_count,
    seed_assignment,
    seed_order,
    seed_pick,
    seed_product,
    seed_shelf,
    seed_sofa_scenario,
)

pytestmark = [pytest.mark.asyncio, pytest.mark.grp_scan]


async def test_two_sets_of_single_package_product(session):
    """2 sets, one package per set: each scan completes one set, the 2nd completes the order."""
    product, (pkg,) = await seed_product(session, sku="STOOL-1", packages=[("STL-1", 1)])
    shelf = await seed_shelf(session, "S-01")
    await seed_assignment(session, shelf=shelf, package=pkg, quantity=10, assigned_date=T0)
    order, _ = await seed_order(session, order_number="ORD-A", lines=[(product, 2)])
    pick = await seed_pick(session, order)
    await session.commit()

    svc = PickSessionService(session)

    first = await svc.scan(pick_id=pick.id, barcode="STL-1")
    assert first.picked_qty == 1
    assert first.quantity == 2
    assert first.order_completed is False
    assert first.sync_job_id is None

    second = await svc.scan(pick_id=pick.id, barcode="STL-1")
    await session.commit()
    assert second.picked_qty == 2
    assert second.order_completed is True
    assert second.sync_job_id is not None

    assert order.status == "fulfilled"
    assert order.fulfillment_status == "FULFILLED"
    assert pick.status == "completed"

    job = (await session.execute(select(SyncJob).where(SyncJob.id == second.sync_job_id))).scalar_one()
    assert (job.kind, job.target_status, job.status) == ("COMPLETED", "FULFILLED", "PENDING")


async def test_set_needs_every_package(session):
    cat = await seed_sofa_scenario(session, sets=1)
    svc = PickSessionService(session)

    r1 = await svc.scan(pick_id=cat.pick.id, barcode="PKG-A")
    assert (r1.picked_qty, r1.order_completed) == (0, False)

    r2 = await svc.scan(pick_id=cat.pick.id, barcode="PKG-B")
    assert (r2.picked_qty, r2.order_completed) == (1, True)


async def test_unknown_barcode_changes_nothing(session):
    cat = await seed_sofa_scenario(session)
    pick_id, item_id = cat.pick.id, cat.items[0].id
    a1_id = cat.assignments["A-01-01"].id
    svc = PickSessionService(session)

    with pytest.raises(UnknownBarcode) as ei:
        await svc.scan(pick_id=pick_id, barcode="NOPE-404")
    await session.rollback()

    assert ei.value.code == "UNKNOWN_BARCODE"
    assert ei.value.http_status == 400
    assert await scan_count(session, pick_id) == 0
    assert await assignment_qty(session, a1_id) == 10
    picked = await session.execute(select(OrderItem.picked_qty).where(OrderItem.id == item_id))
    assert picked.scalar_one() == 0


async def test_barcode_of_another_product_is_unexpected(session):
    cat = await seed_sofa_scenario(session)
    await seed_product(session, sku="BED-1", packages=[("BED-PKG-1", 1)])
    await session.commit()
    pick_id = cat.pick.id

    with pytest.raises(UnexpectedItem) as ei:
        await PickSessionService(session).scan(pick_id=pick_id, barcode="BED-PKG-1")
    await session.rollback()

    assert ei.value.code == "UNEXPECTED_ITEM"
    assert await scan_count(session, pick_id) == 0


async def test_over_scan_rejected_after_expected_count(session):
    cat = await seed_sofa_scenario(session, sets=2)
    pick_id, a1_id = cat.pick.id, cat.assignments["A-01-01"].id
    svc = PickSessionService(session)

    await svc.scan(pick_id=pick_id, barcode="PKG-A")
    await svc.scan(pick_id=pick_id, barcode="PKG-A")
    await session.commit()

    with pytest.raises(OverScan) as ei:
        await svc.scan(pick_id=pick_id, barcode="PKG-A")
    await session.rollback()

    assert ei.value.code == "OVER_SCAN"
    assert ei.value.details[0]["scanned_qty"] == 2
    assert ei.value.details[0]["expected_qty"] == 2
    assert await scan_count(session, pick_id) == 2
    assert await assignment_qty(session, a1_id) == 8


async def test_over_scan_counts_scans_of_every_pick_of_the_order(session):
    cat = await seed_sofa_scenario(session, sets=1)
    svc = PickSessionService(session)
    await svc.scan(pick_id=cat.pick.id, barcode="PKG-A")
    await svc.partial(pick_id=cat.pick.id)
    second_pick = await svc.create(order_id=cat.order.id)
    second_id = second_pick.id
    await session.commit()

    with pytest.raises(OverScan):
        await svc.scan(pick_id=second_id, barcode="PKG-A")
    await session.rollback()

    done = await svc.scan(pick_id=second_id, barcode="PKG-B")
    assert done.order_completed is True
    assert done.picked_qty == 1


async def test_scan_depletes_fifo_shelf_and_records_it(session):
    cat = await seed_sofa_scenario(session, sets=2)
    svc = PickSessionService(session)

    out = await svc.scan(pick_id=cat.pick.id, barcode="PKG-A")
    await session.commit()

    a1, a2 = cat.assignments["A-01-01"], cat.assignments["A-01-02"]
    assert out.shelf_assignment_id == a1.id
    assert await assignment_qty(session, a1.id) == 9
    assert await assignment_qty(session, a2.id) == 10

    scan = (await session.execute(select(PickScan).where(PickScan.id == out.scan_id))).scalar_one()
    assert scan.stock_depleted is True
    assert scan.barcode == "PKG-A"


async def test_scan_with_empty_shelves_is_accepted_without_depletion(session):
    product, (pkg,) = await seed_product(session, sku="MIRROR-1", packages=[("MIR-1", 1)])
    order, _ = await seed_order(session, order_number="ORD-EMPTY", lines=[(product, 1)])
    pick = await seed_pick(session, order)
    await session.commit()

    out = await PickSessionService(session).scan(pick_id=pick.id, barcode="MIR-1")
    await session.commit()

    assert out.order_completed is True
    assert out.shelf_assignment_id is None
    scan = (await session.execute(select(PickScan).where(PickScan.id == out.scan_id))).scalar_one()
    assert scan.stock_depleted is False


async def test_scan_reactivates_pending_and_partial_picks(session):
    cat = await seed_sofa_scenario(session, sets=2)
    svc = PickSessionService(session)

    await svc.partial(pick_id=cat.pick.id)
    assert cat.pick.status == "partial"
    await svc.scan(pick_id=cat.pick.id, barcode="PKG-A")
    assert cat.pick.status == "active"

    await svc.reset(pick_id=cat.pick.id)
    assert cat.pick.status == "pending"
    await svc.scan(pick_id=cat.pick.id, barcode="PKG-B")
    assert cat.pick.status == "active"


async def test_picked_qty_stays_in_range_over_a_full_sequence(session):
    product, pkgs = await seed_product(
        session,
        sku="WARDROBE-1",
        packages=[("WRD-1", 2), ("WRD-2", 1)],
    )
    shelf = await seed_shelf(session, "W-01")
    for p in pkgs:
        await seed_assignment(session, shelf=shelf, package=p, quantity=20, assigned_date=T0)
    order, _ = await seed_order(session, order_number="ORD-W", lines=[(product, 2)])
    pick = await seed_pick(session, order)
    await session.commit()

    svc = PickSessionService(session)
    sequence = ["WRD-1", "WRD-2", "WRD-1", "WRD-1", "WRD-2", "WRD-1"]
    seen = []
    for code in sequence:
        out = await svc.scan(pick_id=pick.id, barcode=code)
        assert 0 <= out.picked_qty <= out.quantity
        seen.append(out.picked_qty)

    # 3 scans per set
    assert seen == [0, 0, 1, 1, 1, 2]
    assert out.order_completed is True


async def test_scan_on_missing_pick_is_not_found(session):
    with pytest.raises(PickNotFound) as ei:
        await PickSessionService(session).scan(pick_id=424242, barcode="X")
    assert ei.value.http_status == 404
