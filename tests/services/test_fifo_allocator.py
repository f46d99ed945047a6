# tests/services/test_fifo_allocator.py
from __future__ import annotations

from datetime import timedelta

import pytest
from prometheus_client import REGISTRY

from shelfpick.services.fifo_allocator import FifoAllocator
from shelfpick.services.pick_store import PickStore
from tests.helpers.seed import T0, assignment_qty, seed_assignment, seed_product, seed_shelf

pytestmark = pytest.mark.asyncio


async def test_take_one_consumes_oldest_assignment_first(session):
    _, (pkg,) = await seed_product(session, sku="TABLE-1", packages=[("TBL-1", 1)])
    s_new = await seed_shelf(session, "N-01")
    s_old = await seed_shelf(session, "O-01")
    # newer row gets the smaller id on purpose: ordering is by date, not id
    newer = await seed_assignment(session, shelf=s_new, package=pkg, quantity=5, assigned_date=T0 + timedelta(days=2))
    older = await seed_assignment(session, shelf=s_old, package=pkg, quantity=5, assigned_date=T0)
    await session.commit()

    store = PickStore(session)
    taken = await FifoAllocator().take_one(store, package_id=pkg.id)

    assert taken is not None and taken.id == older.id
    assert await assignment_qty(session, older.id) == 4
    assert await assignment_qty(session, newer.id) == 5


async def test_take_one_skips_empty_rows_and_breaks_ties_by_id(session):
    _, (pkg,) = await seed_product(session, sku="TABLE-2", packages=[("TBL-2", 1)])
    shelf = await seed_shelf(session, "T-01")
    empty = await seed_assignment(session, shelf=shelf, package=pkg, quantity=0, assigned_date=T0 - timedelta(days=5))
    first = await seed_assignment(session, shelf=shelf, package=pkg, quantity=1, assigned_date=T0)
    second = await seed_assignment(session, shelf=shelf, package=pkg, quantity=1, assigned_date=T0)
    await session.commit()

    store = PickStore(session)
    alloc = FifoAllocator()

    assert (await alloc.take_one(store, package_id=pkg.id)).id == first.id
    assert (await alloc.take_one(store, package_id=pkg.id)).id == second.id
    assert await assignment_qty(session, empty.id) == 0


async def test_take_one_on_empty_shelves_returns_none_and_counts(session):
    _, (pkg,) = await seed_product(session, sku="LAMP-1", packages=[("LMP-1", 1)])
    await session.commit()

    before = REGISTRY.get_sample_value("fifo_empty_shelf_total") or 0.0
    taken = await FifoAllocator().take_one(PickStore(session), package_id=pkg.id)

    assert taken is None
    assert REGISTRY.get_sample_value("fifo_empty_shelf_total") == before + 1


async def test_replenish_prefers_recorded_assignment_then_oldest(session):
    _, (pkg,) = await seed_product(session, sku="CHAIR-1", packages=[("CHR-1", 1)])
    shelf = await seed_shelf(session, "C-01")
    old = await seed_assignment(session, shelf=shelf, package=pkg, quantity=0, assigned_date=T0)
    new = await seed_assignment(session, shelf=shelf, package=pkg, quantity=2, assigned_date=T0 + timedelta(days=1))
    await session.commit()

    store = PickStore(session)
    alloc = FifoAllocator()

    back = await alloc.replenish(store, package_id=pkg.id, assignment_id=new.id)
    assert back.id == new.id
    assert await assignment_qty(session, new.id) == 3

    # recorded row gone -> oldest row of the package, even when it is empty
    back = await alloc.replenish(store, package_id=pkg.id, assignment_id=999999)
    assert back.id == old.id
    assert await assignment_qty(session, old.id) == 1


async def test_replenish_without_any_assignment_is_a_noop(session):
    _, (pkg,) = await seed_product(session, sku="RUG-1", packages=[("RUG-1", 1)])
    await session.commit()

    assert await FifoAllocator().replenish(PickStore(session), package_id=pkg.id, assignment_id=None) is None
