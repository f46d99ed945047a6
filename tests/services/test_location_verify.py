# tests/services/test_location_verify.py
from __future__ import annotations

import pytest

from shelfpick.services.pick_errors import LocationNotFound, PickNotFound, UnknownBarcode
from shelfpick.services.pick_session_service import PickSessionService
from tests.helpers.seed import assignment_qty, scan_count, seed_order, seed_pick, seed_product, seed_sofa_scenario

pytestmark = pytest.mark.asyncio


async def test_oldest_shelf_is_the_correct_location(session):
    cat = await seed_sofa_scenario(session)

    verdict = await PickSessionService(session).verify_location(
        pick_id=cat.pick.id,
        package_barcode="PKG-A",
        shelf_code="A-01-01",
    )

    assert verdict.is_correct_location is True
    assert verdict.expected_location.shelf_code == "A-01-01"
    assert [loc.shelf_code for loc in verdict.all_locations] == ["A-01-01", "A-01-02"]
    assert verdict.message == "Correct location: A-01-01"


async def test_newer_shelf_is_wrong_and_nothing_changes(session):
    cat = await seed_sofa_scenario(session)

    verdict = await PickSessionService(session).verify_location(
        pick_id=cat.pick.id,
        package_barcode=" PKG-A ",
        shelf_code="A-01-02",
    )

    assert verdict.is_correct_location is False
    assert verdict.package_barcode == "PKG-A"
    assert verdict.message == "Wrong location, expected A-01-01"
    assert await scan_count(session, cat.pick.id) == 0
    assert await assignment_qty(session, cat.assignments["A-01-01"].id) == 10


async def test_expected_location_follows_depletion(session):
    cat = await seed_sofa_scenario(session, sets=2, stock=1)
    svc = PickSessionService(session)
    await svc.scan(pick_id=cat.pick.id, barcode="PKG-A")

    verdict = await svc.verify_location(pick_id=cat.pick.id, package_barcode="PKG-A", shelf_code="A-01-02")

    assert verdict.is_correct_location is True
    assert [loc.shelf_code for loc in verdict.all_locations] == ["A-01-02"]


async def test_unknown_barcode(session):
    cat = await seed_sofa_scenario(session)
    with pytest.raises(UnknownBarcode):
        await PickSessionService(session).verify_location(
            pick_id=cat.pick.id,
            package_barcode="NOPE",
            shelf_code="A-01-01",
        )


async def test_package_without_stock_has_no_location(session):
    product, _ = await seed_product(session, sku="DESK-1", packages=[("DSK-1", 1)])
    order, _ = await seed_order(session, order_number="ORD-L", lines=[(product, 1)])
    pick = await seed_pick(session, order)
    await session.commit()

    with pytest.raises(LocationNotFound) as ei:
        await PickSessionService(session).verify_location(pick_id=pick.id, package_barcode="DSK-1", shelf_code="X")
    assert ei.value.code == "LOCATION_NOT_FOUND"


async def test_missing_pick(session):
    with pytest.raises(PickNotFound):
        await PickSessionService(session).verify_location(pick_id=99, package_barcode="PKG-A", shelf_code="A")
