# shelfpick/services/pick_errors.py
from __future__ import annotations

from typing import Any, Dict, List, Optional


class PickError(Exception):
    """
    Base for picking-engine errors. Carries what the router needs to build a
    Problem response; raising one never leaves a partial state change behind
    (the router rolls the unit of work back).
    """

    code = "PICK_ERROR"
    http_status = 400

    def __init__(
        self,
        message: str,
        *,
        code: Optional[str] = None,
        http_status: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
        details: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        super().__init__(message)
        if code:
            self.code = code
        if http_status:
            self.http_status = http_status
        self.message = message
        self.context = context or {}
        self.details = details or []


# ---- 404 ----


class PickNotFound(PickError):
    code = "PICK_NOT_FOUND"
    http_status = 404

    def __init__(self, pick_id: int) -> None:
        super().__init__(f"Pick not found: id={pick_id}", context={"pick_id": pick_id})


class OrderNotFound(PickError):
    code = "ORDER_NOT_FOUND"
    http_status = 404

    def __init__(self, order_id: int) -> None:
        super().__init__(f"Order not found: id={order_id}", context={"order_id": order_id})


# ---- 400 ----


class PickValidationError(PickError):
    http_status = 400


class UnknownBarcode(PickValidationError):
    code = "UNKNOWN_BARCODE"

    def __init__(self, barcode: str) -> None:
        super().__init__(f"Barcode is not defined: {barcode}", context={"barcode": barcode})


class UnexpectedItem(PickValidationError):
    code = "UNEXPECTED_ITEM"

    def __init__(self, barcode: str, *, order_id: int, product_id: int) -> None:
        super().__init__(
            f"Barcode {barcode} is not expected in order {order_id}",
            context={"barcode": barcode, "order_id": order_id, "product_id": product_id},
        )


class OverScan(PickValidationError):
    code = "OVER_SCAN"

    def __init__(self, barcode: str, *, order_item_id: int, scanned: int, expected: int) -> None:
        super().__init__(
            f"Barcode {barcode} already scanned enough times for this order ({scanned}/{expected})",
            context={"barcode": barcode, "order_item_id": order_item_id},
            details=[
                {
                    "type": "scan",
                    "reason": "over_scan",
                    "barcode": barcode,
                    "order_item_id": order_item_id,
                    "scanned_qty": scanned,
                    "expected_qty": expected,
                }
            ],
        )


class LocationNotFound(PickValidationError):
    code = "LOCATION_NOT_FOUND"


# ---- 409 ----


class PickStateConflict(PickError):
    code = "PICK_STATE_CONFLICT"
    http_status = 409
