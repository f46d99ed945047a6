# shelfpick/integrations/ecommerce_client.py
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Protocol, Sequence

import httpx

from shelfpick.core.config import AppSettings, get_settings
from shelfpick.integrations.types import ExternalSyncError, PlatformLineItem, PlatformOrder

log = logging.getLogger("shelfpick.integrations.ecommerce")

SYSTEM = "ecommerce"


class EcommerceClient(Protocol):
    """Fulfillment-status capability of the e-commerce platform."""

    async def get_order(self, external_id: str) -> PlatformOrder: ...

    async def create_fulfillment(self, external_id: str, line_items: Sequence[PlatformLineItem]) -> None: ...

    async def cancel_fulfillment(self, external_id: str) -> None: ...

    async def legacy_patch_status(self, external_id: str, status: str) -> None: ...


class HttpEcommerceClient:
    """Site-level API key client (raw key in Authorization, site id header)."""

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.base_url = self.settings.ECOM_BASE_URL.rstrip("/")
        self.timeout = float(self.settings.ECOM_TIMEOUT_SECONDS)
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        if not (self.settings.ECOM_API_KEY and self.settings.ECOM_SITE_ID):
            raise ExternalSyncError(SYSTEM, "ECOM_API_KEY / ECOM_SITE_ID missing")
        return {
            "Authorization": self.settings.ECOM_API_KEY,
            "wix-site-id": self.settings.ECOM_SITE_ID,
            "Content-Type": "application/json",
        }

    async def _request(self, method: str, path: str, *, json: Any = None) -> Any:
        headers = self._headers()
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                resp = await client.request(method, f"{self.base_url}{path}", json=json, headers=headers)
        except httpx.HTTPError as exc:
            raise ExternalSyncError(SYSTEM, f"{method} {path} failed: {exc}") from exc

        if resp.status_code >= 400:
            raise ExternalSyncError(
                SYSTEM,
                f"{method} {path} -> HTTP {resp.status_code}: {resp.text[:300]}",
                status_code=resp.status_code,
            )
        if not resp.content:
            return {}
        return resp.json()

    async def get_order(self, external_id: str) -> PlatformOrder:
        data = await self._request("GET", f"/ecom/v1/orders/{external_id}")
        order = (data or {}).get("order") or {}
        items = [
            PlatformLineItem(id=str(li.get("id")), quantity=int(li.get("quantity") or 0))
            for li in order.get("lineItems") or []
            if li.get("id")
        ]
        return PlatformOrder(
            id=str(order.get("id") or external_id),
            fulfillment_status=order.get("fulfillmentStatus"),
            line_items=items,
        )

    async def create_fulfillment(self, external_id: str, line_items: Sequence[PlatformLineItem]) -> None:
        body = {
            "fulfillment": {
                "lineItems": [{"id": li.id, "quantity": int(li.quantity)} for li in line_items],
            }
        }
        await self._request("POST", f"/ecom/v1/fulfillments/orders/{external_id}/create-fulfillment", json=body)

    async def cancel_fulfillment(self, external_id: str) -> None:
        data = await self._request("GET", f"/ecom/v1/fulfillments/orders/{external_id}")
        fulfillments = ((data or {}).get("orderWithFulfillments") or {}).get("fulfillments") or []
        if not fulfillments:
            raise ExternalSyncError(SYSTEM, f"order {external_id} has no fulfillment to cancel")
        for f in fulfillments:
            await self._request("DELETE", f"/ecom/v1/fulfillments/{f.get('id')}/orders/{external_id}")

    async def legacy_patch_status(self, external_id: str, status: str) -> None:
        body = {"order": {"id": external_id, "fulfillmentStatus": status}}
        await self._request("PATCH", f"/ecom/v1/orders/{external_id}", json=body)
