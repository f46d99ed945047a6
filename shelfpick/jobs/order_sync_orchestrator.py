# shelfpick/jobs/order_sync_orchestrator.py
from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import date
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from shelfpick.core.config import AppSettings, get_settings
from shelfpick.integrations.ecommerce_client import EcommerceClient
from shelfpick.integrations.erp_client import ErpClient
from shelfpick.jobs.ecommerce_status_push import Sleep, push_fulfillment_status
from shelfpick.jobs.erp_delivery_sync import sync_erp_delivery
from shelfpick.metrics import SYNC_JOB_LATENCY
from shelfpick.models.enums import DeliveryStatus, EcommerceSyncStatus, SyncJobStatus, SyncKind
from shelfpick.models.sync_job import SyncJob
from shelfpick.services.pick_store import PickStore

log = logging.getLogger("shelfpick.sync")


async def run_sync_job(
    session: AsyncSession,
    job_id: int,
    *,
    erp_client: ErpClient,
    ecommerce_client: EcommerceClient,
    settings: Optional[AppSettings] = None,
    today: Optional[date] = None,
    sleep: Optional[Sleep] = None,
) -> Optional[SyncJob]:
    """
    Execute one outbox job and commit its outcome.

      COMPLETED : ERP reconcile + delivery document, then e-commerce FULFILLED
      PARTIAL   : e-commerce PARTIALLY_FULFILLED
      RESET     : e-commerce NOT_FULFILLED

    A job whose target no longer matches the order (a later partial / reset
    overtook it) is closed without calling anybody. External failures end up
    on the order and on the job (FAILED + last_error), never as an exception.
    """
    settings = settings or get_settings()
    store = PickStore(session)

    job = await store.get_sync_job(job_id, for_update=True)
    if job is None:
        log.warning("sync job %s not found", job_id)
        return None
    if job.status == SyncJobStatus.DONE.value:
        return job

    kind = job.kind
    try:
        with SYNC_JOB_LATENCY.labels(kind).time():
            job.attempts = int(job.attempts or 0) + 1
            order = await store.get_order(job.order_id, for_update=True)

            if order.fulfillment_status != job.target_status:
                job.status = SyncJobStatus.DONE.value
                job.last_error = None
                job.result = {"superseded": True, "order_status": order.fulfillment_status}
                await session.commit()
                log.info("sync job %s superseded (order %s is %s)", job.id, order.id, order.fulfillment_status)
                return job

            items = await store.list_order_items(order.id)
            result: Dict[str, Any] = {}
            errors = []

            if kind == SyncKind.COMPLETED.value:
                erp = await sync_erp_delivery(
                    order,
                    items,
                    client=erp_client,
                    lookback_days=settings.ERP_BATCH_LOOKBACK_DAYS,
                    today=today,
                )
                result["erp"] = asdict(erp)
                if erp.delivery_status == DeliveryStatus.ERROR.value:
                    errors.append(f"erp: {erp.error}")

            kwargs: Dict[str, Any] = {"retry_delay": settings.ECOM_RETRY_DELAY_SECONDS}
            if sleep is not None:
                kwargs["sleep"] = sleep
            push = await push_fulfillment_status(
                order,
                items,
                target_status=job.target_status,
                client=ecommerce_client,
                **kwargs,
            )
            result["ecommerce"] = asdict(push)
            if push.status == EcommerceSyncStatus.FAILED.value:
                errors.append(f"ecommerce: {push.error}")

            job.result = result
            job.last_error = "; ".join(errors) or None
            job.status = SyncJobStatus.FAILED.value if errors else SyncJobStatus.DONE.value
            await session.commit()
    except Exception as exc:
        log.exception("sync job %s crashed", job_id)
        await session.rollback()
        job = await store.get_sync_job(job_id, for_update=True)
        if job is None:
            return None
        job.attempts = int(job.attempts or 0) + 1
        job.status = SyncJobStatus.FAILED.value
        job.last_error = f"{type(exc).__name__}: {exc}"
        await session.commit()
        return job

    log.info("sync job %s (%s, order %s) -> %s", job.id, kind, job.order_id, job.status)
    return job
