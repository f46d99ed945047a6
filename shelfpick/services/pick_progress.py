# shelfpick/services/pick_progress.py
"""
Pure progress arithmetic over the scan log.

OrderItem.picked_qty is a cache of `picked_sets(...)` evaluated over the
PickScan rows of the order; these helpers never touch storage so the
invariant can be checked in isolation.
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence, Tuple


@dataclass(frozen=True)
class ItemDemand:
    order_item_id: int
    quantity: int  # demanded sets
    picked_qty: int = 0


def expected_scans(per_set_qty: int, demanded_sets: int) -> int:
    """Physical units of one package needed to satisfy every set of a line."""
    return max(int(per_set_qty or 1), 1) * max(int(demanded_sets), 0)


def scans_per_set(package_quantities: Iterable[int]) -> int:
    """Scans that make up one set: sum of per-set quantities over all packages."""
    total = sum(max(int(q or 1), 1) for q in package_quantities)
    return total or 1


def picked_sets(total_scans: int, per_set: int, demanded_sets: int) -> int:
    """min(demanded, floor(total_scans / per_set)), clamped at 0."""
    if per_set <= 0:
        per_set = 1
    return max(0, min(int(demanded_sets), int(total_scans) // int(per_set)))


def remaining_items(items: Sequence[ItemDemand]) -> int:
    return sum(1 for it in items if it.picked_qty < it.quantity)


def is_order_complete(items: Sequence[ItemDemand]) -> bool:
    return remaining_items(items) == 0


def replay_picked_sets(
    scan_item_ids: Iterable[int],
    demands: Mapping[int, Tuple[int, int]],
) -> dict[int, int]:
    """
    Rebuild picked_qty for every order item from a flat scan log.

    scan_item_ids : order_item_id of each scan (any order)
    demands       : order_item_id -> (demanded_sets, scans_per_set)
    """
    counts = Counter(scan_item_ids)
    return {
        item_id: picked_sets(counts.get(item_id, 0), per_set, demanded)
        for item_id, (demanded, per_set) in demands.items()
    }
