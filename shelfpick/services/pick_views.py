# shelfpick/services/pick_views.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from shelfpick.models.order import Order
from shelfpick.models.pick import Pick
from shelfpick.models.pick_scan import PickScan
from shelfpick.services.location_verify import ShelfLocation, fifo_locations
from shelfpick.services.pick_store import PickStore


@dataclass
class PackageView:
    id: int
    barcode: str
    name: Optional[str]
    quantity: int
    locations: List[ShelfLocation] = field(default_factory=list)


@dataclass
class ItemView:
    id: int
    product_id: int
    sku: Optional[str]
    product_name: Optional[str]
    quantity: int
    picked_qty: int
    packages: List[PackageView] = field(default_factory=list)


@dataclass
class PickDetail:
    pick: Pick
    order: Order
    items: List[ItemView]
    scans: List[PickScan]


async def load_pick_detail(store: PickStore, pick_id: int) -> PickDetail:
    """Pick + order + items (with packages and their FIFO locations) + this pick's scans."""
    pick = await store.get_pick(pick_id)
    order = await store.get_order(pick.order_id)

    items: List[ItemView] = []
    for it in await store.list_order_items(order.id):
        packages = []
        for pkg in await store.list_product_packages(it.product_id):
            packages.append(
                PackageView(
                    id=pkg.id,
                    barcode=pkg.barcode,
                    name=pkg.name,
                    quantity=int(pkg.quantity),
                    locations=await fifo_locations(store, pkg.id),
                )
            )
        product = it.product
        items.append(
            ItemView(
                id=it.id,
                product_id=it.product_id,
                sku=it.sku or (product.sku if product is not None else None),
                product_name=product.name if product is not None else None,
                quantity=int(it.quantity),
                picked_qty=int(it.picked_qty),
                packages=packages,
            )
        )

    scans = await store.list_pick_scans(pick.id)
    return PickDetail(pick=pick, order=order, items=items, scans=scans)
