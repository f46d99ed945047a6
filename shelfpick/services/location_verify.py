# shelfpick/services/location_verify.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from shelfpick.models.shelf import ShelfAssignment
from shelfpick.services.pick_errors import LocationNotFound, UnknownBarcode
from shelfpick.services.pick_store import PickStore


@dataclass(frozen=True)
class ShelfLocation:
    assignment_id: int
    shelf_id: int
    shelf_code: str
    shelf_name: Optional[str]
    zone: Optional[str]
    aisle: Optional[str]
    level: Optional[str]
    quantity: int
    assigned_date: datetime


@dataclass(frozen=True)
class LocationVerdict:
    package_barcode: str
    shelf_code: str
    is_correct_location: bool
    expected_location: ShelfLocation
    all_locations: List[ShelfLocation]
    message: str


def to_location(a: ShelfAssignment) -> ShelfLocation:
    shelf = a.shelf
    return ShelfLocation(
        assignment_id=a.id,
        shelf_id=a.shelf_id,
        shelf_code=shelf.shelf_code,
        shelf_name=shelf.shelf_name,
        zone=shelf.zone,
        aisle=shelf.aisle,
        level=shelf.level,
        quantity=int(a.quantity),
        assigned_date=a.assigned_date,
    )


async def fifo_locations(store: PickStore, package_id: int) -> List[ShelfLocation]:
    return [to_location(a) for a in await store.fifo_queue(package_id)]


async def verify_location(
    store: PickStore,
    *,
    pick_id: int,
    package_barcode: str,
    shelf_code: str,
) -> LocationVerdict:
    """
    Read-only check that the picker stands at the FIFO-first shelf of a package.
    Nothing is written; the scan itself is a separate call.
    """
    await store.get_pick(pick_id)

    code = (package_barcode or "").strip()
    package = await store.find_package_by_barcode(code) if code else None
    if package is None:
        raise UnknownBarcode(code)

    locations = await fifo_locations(store, package.id)
    if not locations:
        raise LocationNotFound(
            f"No shelf stock for package {code}",
            context={"barcode": code, "package_id": package.id},
        )

    expected = locations[0]
    wanted = (shelf_code or "").strip()
    ok = expected.shelf_code == wanted
    if ok:
        message = f"Correct location: {expected.shelf_code}"
    else:
        message = f"Wrong location, expected {expected.shelf_code}"

    return LocationVerdict(
        package_barcode=code,
        shelf_code=wanted,
        is_correct_location=ok,
        expected_location=expected,
        all_locations=locations,
        message=message,
    )
