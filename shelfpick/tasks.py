# shelfpick/tasks.py
from __future__ import annotations

import asyncio
import logging
from typing import Optional

from shelfpick.core.config import get_settings
from shelfpick.db.session import AsyncSessionLocal, close_engines
from shelfpick.integrations.ecommerce_client import HttpEcommerceClient
from shelfpick.integrations.erp_client import HttpErpClient
from shelfpick.jobs.order_sync_orchestrator import run_sync_job
from shelfpick.jobs.order_sync_runner import run_once
from shelfpick.worker import celery

log = logging.getLogger("shelfpick.tasks")


@celery.task(name="shelfpick.sync_order_job")
def sync_order_job(job_id: int) -> Optional[str]:
    """Worker entry of one outbox job; returns the job's final status."""

    async def _runner() -> Optional[str]:
        settings = get_settings()
        try:
            async with AsyncSessionLocal() as session:
                job = await run_sync_job(
                    session,
                    int(job_id),
                    erp_client=HttpErpClient(settings),
                    ecommerce_client=HttpEcommerceClient(settings),
                    settings=settings,
                )
                return job.status if job is not None else None
        finally:
            # connections belong to this task's event loop
            await close_engines()

    return asyncio.run(_runner())


@celery.task(name="shelfpick.sync_runner_pass")
def sync_runner_pass() -> int:
    async def _runner() -> int:
        try:
            async with AsyncSessionLocal() as session:
                done = await run_once(session)
                log.info("sync runner pass: %s jobs done", done)
                return done
        finally:
            await close_engines()

    return asyncio.run(_runner())
