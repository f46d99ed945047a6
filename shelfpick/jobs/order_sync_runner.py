# shelfpick/jobs/order_sync_runner.py
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from shelfpick.core.config import AppSettings, get_settings
from shelfpick.core.logging import setup_logging
from shelfpick.db.session import AsyncSessionLocal
from shelfpick.integrations.ecommerce_client import EcommerceClient, HttpEcommerceClient
from shelfpick.integrations.erp_client import ErpClient, HttpErpClient
from shelfpick.jobs.order_sync_orchestrator import run_sync_job
from shelfpick.models.enums import SyncJobStatus
from shelfpick.services.pick_store import PickStore

log = logging.getLogger("shelfpick.sync.runner")


async def run_once(
    session: AsyncSession,
    *,
    erp_client: Optional[ErpClient] = None,
    ecommerce_client: Optional[EcommerceClient] = None,
    settings: Optional[AppSettings] = None,
    limit: int = 200,
) -> int:
    """
    Re-drive PENDING / FAILED sync jobs that still have attempts left.

    Returns the number of jobs that ended DONE in this pass.
    """
    settings = settings or get_settings()
    erp_client = erp_client or HttpErpClient(settings)
    ecommerce_client = ecommerce_client or HttpEcommerceClient(settings)

    store = PickStore(session)
    jobs = await store.list_retryable_jobs(max_attempts=settings.SYNC_MAX_ATTEMPTS, limit=limit)
    job_ids = [j.id for j in jobs]
    await session.commit()

    done = 0
    for job_id in job_ids:
        job = await run_sync_job(
            session,
            job_id,
            erp_client=erp_client,
            ecommerce_client=ecommerce_client,
            settings=settings,
        )
        if job is not None and job.status == SyncJobStatus.DONE.value:
            done += 1
    return done


async def main() -> None:
    settings = get_settings()
    setup_logging(settings.LOG_LEVEL, json=settings.JSON_LOG)
    async with AsyncSessionLocal() as session:
        done = await run_once(session, settings=settings)
        log.info("[order_sync_runner] jobs done: %s", done)


def run_cli() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run_cli()
