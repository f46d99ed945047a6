# shelfpick/models/enums.py
from __future__ import annotations

from enum import StrEnum


class OrderStatus(StrEnum):
    OPEN = "open"
    FULFILLED = "fulfilled"
    CANCELLED = "cancelled"


class FulfillmentStatus(StrEnum):
    """
    Fulfillment status shared with the e-commerce platform.
    Values are the platform's own codes.
    """

    NOT_FULFILLED = "NOT_FULFILLED"
    PARTIALLY_FULFILLED = "PARTIALLY_FULFILLED"
    FULFILLED = "FULFILLED"
    CANCELLED = "CANCELLED"


class PickStatus(StrEnum):
    """
    pending -> active (create) -> completed | partial
    completed | partial | pending -> pending (reset)
    pending | partial -> active (successful scan)
    """

    PENDING = "pending"
    ACTIVE = "active"
    PARTIAL = "partial"
    COMPLETED = "completed"


class DeliveryStatus(StrEnum):
    PENDING = "pending"
    CREATED = "created"
    PENDING_MANUAL = "pending_manual"
    ERROR = "error"


class DeliveryMethod(StrEnum):
    MANUAL = "manual"
    BATCH = "batch"


class EcommerceSyncStatus(StrEnum):
    SYNCED = "synced"
    SKIPPED = "skipped"
    FAILED = "failed"
    NO_EXTERNAL_ID = "no_external_id"


class SyncKind(StrEnum):
    COMPLETED = "COMPLETED"
    PARTIAL = "PARTIAL"
    RESET = "RESET"


class SyncJobStatus(StrEnum):
    PENDING = "PENDING"
    DONE = "DONE"
    FAILED = "FAILED"
