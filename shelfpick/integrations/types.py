# shelfpick/integrations/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


class ExternalSyncError(Exception):
    """
    Transport / HTTP failure of an external system call.

    Raised by the clients, caught by the sync jobs; never reaches a router.
    """

    def __init__(self, system: str, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(f"[{system}] {message}")
        self.system = system
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True)
class DeliveryResult:
    """Outcome of one ERP delivery-document strategy."""

    success: bool
    document_id: Optional[str] = None
    error: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class OrderLine:
    sku: str
    quantity: int


@dataclass(frozen=True)
class DeliveryLine:
    stock_ref: str
    sku: str
    quantity: int
    unit_price: float = 0.0


@dataclass(frozen=True)
class DeliveryDocument:
    """Payload of a manual ERP delivery document (picked quantities)."""

    order_number: str
    customer_ref: str
    lines: List[DeliveryLine]
    description: Optional[str] = None


@dataclass(frozen=True)
class PlatformLineItem:
    id: str
    quantity: int


@dataclass(frozen=True)
class PlatformOrder:
    id: str
    fulfillment_status: Optional[str]
    line_items: List[PlatformLineItem] = field(default_factory=list)
