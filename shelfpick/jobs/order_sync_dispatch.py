# shelfpick/jobs/order_sync_dispatch.py
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from shelfpick.core.config import AppSettings, get_settings
from shelfpick.integrations.ecommerce_client import EcommerceClient
from shelfpick.integrations.erp_client import ErpClient
from shelfpick.jobs.order_sync_orchestrator import run_sync_job

log = logging.getLogger("shelfpick.sync.dispatch")

INLINE = "inline"
CELERY = "celery"


async def dispatch_sync_job(
    session: AsyncSession,
    job_id: Optional[int],
    *,
    erp_client: ErpClient,
    ecommerce_client: EcommerceClient,
    settings: Optional[AppSettings] = None,
) -> None:
    """
    Hand a committed outbox job to its executor.

    inline : run it now on the (already committed) request session
    celery : enqueue shelfpick.sync_order_job; a broker failure leaves the job
             PENDING for the sync runner
    """
    if job_id is None:
        return
    settings = settings or get_settings()
    mode = (settings.SYNC_DISPATCH or INLINE).strip().lower()

    if mode == CELERY:
        from shelfpick.tasks import sync_order_job

        try:
            sync_order_job.delay(int(job_id))
        except Exception:
            log.exception("enqueue of sync job %s failed, left for the runner", job_id)
        return

    await run_sync_job(
        session,
        int(job_id),
        erp_client=erp_client,
        ecommerce_client=ecommerce_client,
        settings=settings,
    )
