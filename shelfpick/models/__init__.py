# shelfpick/models/__init__.py
from shelfpick.models.enums import (
    DeliveryMethod,
    DeliveryStatus,
    EcommerceSyncStatus,
    FulfillmentStatus,
    OrderStatus,
    PickStatus,
    SyncJobStatus,
    SyncKind,
)
from shelfpick.models.order import Order
from shelfpick.models.order_item import OrderItem
from shelfpick.models.pick import Pick
from shelfpick.models.pick_scan import PickScan
from shelfpick.models.product import Product, ProductPackage
from shelfpick.models.shelf import Shelf, ShelfAssignment
from shelfpick.models.sync_job import SyncJob

__all__ = [
    "DeliveryMethod",
    "DeliveryStatus",
    "EcommerceSyncStatus",
    "FulfillmentStatus",
    "Order",
    "OrderItem",
    "OrderStatus",
    "Pick",
    "PickScan",
    "PickStatus",
    "Product",
    "ProductPackage",
    "Shelf",
    "ShelfAssignment",
    "SyncJob",
    "SyncJobStatus",
    "SyncKind",
]
