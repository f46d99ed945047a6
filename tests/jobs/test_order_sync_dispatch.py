# tests/jobs/test_order_sync_dispatch.py
from __future__ import annotations

from typing import List

import pytest
from sqlalchemy import select

from shelfpick.core.config import AppSettings
from shelfpick.jobs.order_sync_dispatch import dispatch_sync_job
from shelfpick.models import SyncJob
from shelfpick.services.pick_session_service import PickSessionService
from tests.helpers.seed import seed_sofa_scenario

pytestmark = [pytest.mark.asyncio, pytest.mark.grp_sync]


async def _partial_job(session) -> int:
    cat = await seed_sofa_scenario(session, sets=2)
    res = await PickSessionService(session).partial(pick_id=cat.pick.id)
    await session.commit()
    return res.sync_job_id


async def test_celery_mode_enqueues_instead_of_running(session, erp, ecom, monkeypatch):
    from shelfpick import tasks

    queued: List[int] = []
    monkeypatch.setattr(tasks.sync_order_job, "delay", lambda job_id: queued.append(job_id))
    job_id = await _partial_job(session)

    await dispatch_sync_job(
        session,
        job_id,
        erp_client=erp,
        ecommerce_client=ecom,
        settings=AppSettings(SYNC_DISPATCH="celery"),
    )

    assert queued == [job_id]
    assert ecom.calls == []


async def test_broker_failure_leaves_job_pending(session, erp, ecom, monkeypatch):
    from shelfpick import tasks

    def _boom(job_id):
        raise ConnectionError("broker down")

    monkeypatch.setattr(tasks.sync_order_job, "delay", _boom)
    job_id = await _partial_job(session)

    await dispatch_sync_job(
        session,
        job_id,
        erp_client=erp,
        ecommerce_client=ecom,
        settings=AppSettings(SYNC_DISPATCH="celery"),
    )

    job = (await session.execute(select(SyncJob).where(SyncJob.id == job_id))).scalar_one()
    assert job.status == "PENDING"
    assert job.attempts == 0


async def test_inline_mode_runs_the_job(session, erp, ecom):
    ecom.add_order("WIX-1001")
    job_id = await _partial_job(session)

    await dispatch_sync_job(
        session,
        job_id,
        erp_client=erp,
        ecommerce_client=ecom,
        settings=AppSettings(SYNC_DISPATCH="inline", ECOM_RETRY_DELAY_SECONDS=0),
    )

    job = (await session.execute(select(SyncJob).where(SyncJob.id == job_id))).scalar_one()
    assert job.status == "DONE"
    assert ecom.status_of("WIX-1001") == "PARTIALLY_FULFILLED"


async def test_no_job_is_a_no_op(session, erp, ecom):
    await dispatch_sync_job(session, None, erp_client=erp, ecommerce_client=ecom)
    assert ecom.calls == [] and erp.calls == []
