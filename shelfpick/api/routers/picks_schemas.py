# shelfpick/api/routers/picks_schemas.py
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class PickCreateIn(BaseModel):
    order_id: int = Field(..., description="Order to pick")


class PickScanIn(BaseModel):
    barcode: str = Field(..., min_length=1, description="Scanned package barcode")


class VerifyLocationIn(BaseModel):
    # camelCase on the wire, as the handheld client sends it
    model_config = ConfigDict(populate_by_name=True)

    package_barcode: str = Field(..., alias="packageBarcode", min_length=1)
    shelf_code: str = Field(..., alias="shelfCode", min_length=1)


class PickOut(BaseModel):
    id: int
    order_id: int
    status: str
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderOut(BaseModel):
    id: int
    order_number: str
    customer_code: Optional[str]
    customer_name: Optional[str]
    status: str
    fulfillment_status: str
    ecommerce_order_id: Optional[str]
    ecommerce_sync_status: Optional[str]
    erp_delivery_note_id: Optional[str]
    erp_delivery_status: str
    erp_delivery_method: Optional[str]

    model_config = ConfigDict(from_attributes=True)


class ShelfLocationOut(BaseModel):
    assignment_id: int
    shelf_id: int
    shelf_code: str
    shelf_name: Optional[str]
    zone: Optional[str]
    aisle: Optional[str]
    level: Optional[str]
    quantity: int
    assigned_date: datetime

    model_config = ConfigDict(from_attributes=True)


class PackageOut(BaseModel):
    id: int
    barcode: str
    name: Optional[str]
    quantity: int
    locations: List[ShelfLocationOut] = []

    model_config = ConfigDict(from_attributes=True)


class PickItemOut(BaseModel):
    id: int
    product_id: int
    sku: Optional[str]
    product_name: Optional[str]
    quantity: int
    picked_qty: int
    packages: List[PackageOut] = []

    model_config = ConfigDict(from_attributes=True)


class PickScanOut(BaseModel):
    id: int
    pick_id: int
    order_item_id: int
    product_id: int
    package_id: int
    shelf_assignment_id: Optional[int]
    barcode: str
    scanned_at: datetime

    model_config = ConfigDict(from_attributes=True)


class PickDetailOut(BaseModel):
    pick: PickOut
    order: OrderOut
    items: List[PickItemOut]
    scans: List[PickScanOut]

    model_config = ConfigDict(from_attributes=True)


class ScanItemOut(BaseModel):
    id: int
    picked_qty: int
    quantity: int


class PickScanResult(BaseModel):
    success: bool = True
    item: ScanItemOut
    order_completed: bool


class LocationVerdictOut(BaseModel):
    success: bool = True
    package_barcode: str = Field(..., serialization_alias="packageBarcode")
    shelf_code: str = Field(..., serialization_alias="shelfCode")
    is_correct_location: bool = Field(..., serialization_alias="isCorrectLocation")
    expected_location: ShelfLocationOut = Field(..., serialization_alias="expectedLocation")
    all_locations: List[ShelfLocationOut] = Field(..., serialization_alias="allLocations")
    message: str

    model_config = ConfigDict(from_attributes=True)


class PickPartialOut(BaseModel):
    success: bool = True
    pick: PickOut
    fulfillment_status: str
    message: str


class PickResetOut(BaseModel):
    success: bool = True
    pick: PickOut
    scans_deleted: int
    units_replenished: int
    message: str
