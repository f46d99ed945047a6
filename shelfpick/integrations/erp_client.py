# shelfpick/integrations/erp_client.py
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

import httpx

from shelfpick.core.config import AppSettings, get_settings
from shelfpick.integrations.types import (
    DeliveryDocument,
    DeliveryResult,
    ExternalSyncError,
    OrderLine,
)

log = logging.getLogger("shelfpick.integrations.erp")

SYSTEM = "erp"


class ErpClient(Protocol):
    """ERP capability used by the delivery sync. Transport is opaque."""

    async def authenticate(self) -> None: ...

    async def query_order_line_quantities(self, order_number: str) -> Dict[str, int]: ...

    async def update_order_line_quantities(self, order_number: str, items: Sequence[OrderLine]) -> None: ...

    async def lookup_customer(self, customer_code: str) -> Optional[str]: ...

    async def lookup_stock_code(self, code: str) -> Optional[str]: ...

    async def create_delivery_document(self, order_data: DeliveryDocument) -> DeliveryResult: ...

    async def convert_open_order_to_delivery_document(
        self,
        order_number: str,
        date_range: Tuple[date, date],
    ) -> DeliveryResult: ...


class HttpErpClient:
    """
    REST client of the ERP (password-grant token, bearer on every call).

    A new httpx.AsyncClient per call keeps the instance safe to build per
    request or per worker task without lifecycle management.
    """

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.base_url = self.settings.ERP_BASE_URL.rstrip("/")
        self.timeout = float(self.settings.ERP_TIMEOUT_SECONDS)
        self.transport = transport
        self._token: Optional[str] = None

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport)

    # ---------- auth ----------

    async def authenticate(self) -> None:
        form = {
            "grant_type": "password",
            "username": self.settings.ERP_USERNAME,
            "password": self.settings.ERP_PASSWORD,
            "dbname": self.settings.ERP_DB_NAME,
            "branchcode": str(self.settings.ERP_BRANCH_CODE),
        }
        try:
            async with self._client() as client:
                resp = await client.post(f"{self.base_url}/token", data=form)
        except httpx.HTTPError as exc:
            raise ExternalSyncError(SYSTEM, f"token request failed: {exc}") from exc

        if resp.status_code >= 400:
            raise ExternalSyncError(SYSTEM, f"token rejected: HTTP {resp.status_code}", status_code=resp.status_code)

        token = (resp.json() or {}).get("access_token")
        if not token:
            raise ExternalSyncError(SYSTEM, "token response without access_token")
        self._token = str(token)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
        params: Optional[Mapping[str, Any]] = None,
        allow_404: bool = False,
    ) -> Any:
        if self._token is None:
            await self.authenticate()

        for attempt in (1, 2):
            try:
                async with self._client() as client:
                    resp = await client.request(
                        method,
                        f"{self.base_url}{path}",
                        json=json,
                        params=params,
                        headers={"Authorization": f"Bearer {self._token}"},
                    )
            except httpx.HTTPError as exc:
                raise ExternalSyncError(SYSTEM, f"{method} {path} failed: {exc}") from exc

            # expired token: authenticate once more and repeat
            if resp.status_code == 401 and attempt == 1:
                log.info("erp token rejected, re-authenticating")
                await self.authenticate()
                continue
            if resp.status_code == 404 and allow_404:
                return None
            if resp.status_code >= 400:
                raise ExternalSyncError(
                    SYSTEM,
                    f"{method} {path} -> HTTP {resp.status_code}: {resp.text[:300]}",
                    status_code=resp.status_code,
                )
            if not resp.content:
                return {}
            return resp.json()

        raise ExternalSyncError(SYSTEM, f"{method} {path}: unauthorized", status_code=401)

    # ---------- order lines ----------

    async def query_order_line_quantities(self, order_number: str) -> Dict[str, int]:
        data = await self._request("GET", f"/orders/{order_number}/lines", allow_404=True)
        if not data:
            return {}
        rows = data.get("lines", []) if isinstance(data, dict) else data
        out: Dict[str, int] = {}
        for row in rows:
            sku = str(row.get("sku") or row.get("stock_code") or "")
            if sku:
                out[sku] = out.get(sku, 0) + int(row.get("quantity") or 0)
        return out

    async def update_order_line_quantities(self, order_number: str, items: Sequence[OrderLine]) -> None:
        payload = {"lines": [{"sku": it.sku, "quantity": int(it.quantity)} for it in items]}
        await self._request("PUT", f"/orders/{order_number}/lines", json=payload)

    # ---------- lookups ----------

    async def lookup_customer(self, customer_code: str) -> Optional[str]:
        data = await self._request("GET", f"/customers/{customer_code}", allow_404=True)
        if not data:
            return None
        ref = data.get("id") or data.get("code")
        return str(ref) if ref else None

    async def lookup_stock_code(self, code: str) -> Optional[str]:
        data = await self._request("GET", f"/stockcards/{code}", allow_404=True)
        if not data:
            return None
        ref = data.get("id") or data.get("code")
        return str(ref) if ref else None

    # ---------- delivery documents ----------

    async def create_delivery_document(self, order_data: DeliveryDocument) -> DeliveryResult:
        payload: Dict[str, Any] = {
            "order_number": order_data.order_number,
            "customer_ref": order_data.customer_ref,
            "description": order_data.description,
            "lines": [
                {
                    "stock_ref": ln.stock_ref,
                    "sku": ln.sku,
                    "quantity": int(ln.quantity),
                    "unit_price": float(ln.unit_price),
                }
                for ln in order_data.lines
            ],
        }
        data = await self._request("POST", "/delivery-notes", json=payload)
        return _delivery_result(data)

    async def convert_open_order_to_delivery_document(
        self,
        order_number: str,
        date_range: Tuple[date, date],
    ) -> DeliveryResult:
        start, end = date_range
        payload = {"start_date": start.isoformat(), "end_date": end.isoformat()}
        data = await self._request("POST", f"/orders/{order_number}/convert-to-delivery-note", json=payload)
        return _delivery_result(data)


def _delivery_result(data: Any) -> DeliveryResult:
    data = data if isinstance(data, dict) else {}
    doc_id = data.get("document_id") or data.get("id")
    if doc_id:
        return DeliveryResult(success=True, document_id=str(doc_id), raw=data)
    errors: List[str] = [str(e) for e in (data.get("errors") or [])]
    return DeliveryResult(
        success=False,
        error="; ".join(errors) or str(data.get("error") or "no document id returned"),
        raw=data,
    )
