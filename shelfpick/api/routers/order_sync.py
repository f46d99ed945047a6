# shelfpick/api/routers/order_sync.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from sqlalchemy.ext.asyncio import AsyncSession

from shelfpick.api.deps import get_ecommerce_client, get_erp_client
from shelfpick.api.problem import raise_problem
from shelfpick.api.routers.picks_helpers import raise_pick_error
from shelfpick.db.session import get_session
from shelfpick.integrations.ecommerce_client import EcommerceClient
from shelfpick.integrations.erp_client import ErpClient
from shelfpick.jobs.order_sync_dispatch import dispatch_sync_job
from shelfpick.models.enums import SyncJobStatus
from shelfpick.services.pick_errors import PickError
from shelfpick.services.pick_store import PickStore

router = APIRouter(prefix="/orders", tags=["order-sync"])

_RETRYABLE = (SyncJobStatus.FAILED.value, SyncJobStatus.PENDING.value)


class SyncJobOut(BaseModel):
    id: int
    order_id: int
    pick_id: Optional[int]
    kind: str
    target_status: str
    status: str
    attempts: int
    last_error: Optional[str]
    result: Optional[Dict[str, Any]]
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderSyncOut(BaseModel):
    order_id: int
    order_number: str
    status: str
    fulfillment_status: str
    ecommerce_order_id: Optional[str]
    ecommerce_sync_status: Optional[str]
    ecommerce_sync_error: Optional[str]
    erp_delivery_note_id: Optional[str]
    erp_delivery_status: str
    erp_delivery_method: Optional[str]
    erp_delivery_error: Optional[str]
    jobs: List[SyncJobOut] = []


async def _sync_view(store: PickStore, order_id: int) -> OrderSyncOut:
    order = await store.get_order(order_id)
    jobs = await store.list_sync_jobs(order.id)
    return OrderSyncOut(
        order_id=order.id,
        order_number=order.order_number,
        status=order.status,
        fulfillment_status=order.fulfillment_status,
        ecommerce_order_id=order.ecommerce_order_id,
        ecommerce_sync_status=order.ecommerce_sync_status,
        ecommerce_sync_error=order.ecommerce_sync_error,
        erp_delivery_note_id=order.erp_delivery_note_id,
        erp_delivery_status=order.erp_delivery_status,
        erp_delivery_method=order.erp_delivery_method,
        erp_delivery_error=order.erp_delivery_error,
        jobs=[SyncJobOut.model_validate(j) for j in jobs],
    )


@router.get("/{order_id}/sync", response_model=OrderSyncOut)
async def get_order_sync(
    order_id: int,
    session: AsyncSession = Depends(get_session),
) -> OrderSyncOut:
    try:
        return await _sync_view(PickStore(session), order_id)
    except PickError as e:
        raise_pick_error(e)


@router.post("/{order_id}/sync/retry", response_model=SyncJobOut, status_code=202)
async def retry_order_sync(
    order_id: int,
    session: AsyncSession = Depends(get_session),
    erp_client: ErpClient = Depends(get_erp_client),
    ecommerce_client: EcommerceClient = Depends(get_ecommerce_client),
) -> SyncJobOut:
    """Re-dispatch the latest job of the order that is not DONE yet."""
    store = PickStore(session)
    try:
        order = await store.get_order(order_id)
    except PickError as e:
        raise_pick_error(e)

    jobs = [j for j in await store.list_sync_jobs(order.id) if j.status in _RETRYABLE]
    if not jobs:
        raise_problem(
            status_code=409,
            error_code="NOTHING_TO_RETRY",
            message=f"Order {order.order_number} has no pending or failed sync job",
            context={"order_id": order.id},
        )
    job_id = jobs[-1].id
    await session.commit()

    await dispatch_sync_job(
        session,
        job_id,
        erp_client=erp_client,
        ecommerce_client=ecommerce_client,
    )

    job = await store.get_sync_job(job_id)
    return SyncJobOut.model_validate(job)
