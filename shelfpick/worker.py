# shelfpick/worker.py
# Celery worker: Redis broker, beat schedule for the sync runner, eager mode under tests
from __future__ import annotations

import os

from celery import Celery
from celery.signals import task_postrun, task_prerun, worker_process_init

from shelfpick.core.config import get_settings
from shelfpick.core.logging import setup_logging
from shelfpick.metrics import CELERY_ACTIVE_TASKS
from shelfpick.obs.otel import setup_tracing

_settings = get_settings()

BROKER_URL = _settings.REDIS_URL
RESULT_URL = os.getenv("CELERY_RESULT_BACKEND", BROKER_URL)

celery = Celery("shelfpick", broker=BROKER_URL, backend=RESULT_URL, include=["shelfpick.tasks"])

celery.conf.task_acks_late = True
celery.conf.worker_prefetch_multiplier = 1
celery.conf.broker_transport_options = {"visibility_timeout": 3600}

# re-drive failed / stuck sync jobs every 5 minutes
celery.conf.beat_schedule = {
    "order-sync-runner-every-5m": {
        "task": "shelfpick.sync_runner_pass",
        "schedule": 300.0,
    },
}

_TESTING = bool(os.getenv("PYTEST_CURRENT_TEST")) or os.getenv("CELERY_ALWAYS_EAGER") == "1"
if _TESTING:
    celery.conf.task_always_eager = True
    celery.conf.task_eager_propagates = True
    celery.conf.task_store_eager_result = True


@worker_process_init.connect
def _on_worker_init(**_):
    setup_logging(_settings.LOG_LEVEL, json=_settings.JSON_LOG)
    if _settings.OTEL_ENABLED:
        setup_tracing(service_name="shelfpick-worker")


@task_prerun.connect
def _on_task_start(**_):
    CELERY_ACTIVE_TASKS.inc()


@task_postrun.connect
def _on_task_end(**_):
    CELERY_ACTIVE_TASKS.dec()
