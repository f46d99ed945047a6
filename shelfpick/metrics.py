# shelfpick/metrics.py
from __future__ import annotations

import os
import time

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, CollectorRegistry, Counter, Gauge, Histogram, generate_latest
from prometheus_client import multiprocess
from starlette.middleware.base import BaseHTTPMiddleware

# ---- picking ----
PICK_SCANS = Counter("pick_scans_total", "Accepted pick scans", ["order_completed"])
PICK_SCAN_REJECTS = Counter("pick_scan_rejects_total", "Rejected pick scans", ["code"])
FIFO_EMPTY_SHELF = Counter(
    "fifo_empty_shelf_total",
    "Scans accepted while no shelf assignment had stock for the package",
)
PICK_COMPENSATIONS = Counter("pick_compensations_total", "Partial / reset calls", ["kind"])

# ---- external sync ----
EXTERNAL_SYNC = Counter("external_sync_total", "External sync outcomes", ["system", "outcome"])
SYNC_JOB_LATENCY = Histogram("sync_job_seconds", "Sync job duration (seconds)", ["kind"])

# ---- celery ----
CELERY_ACTIVE_TASKS = Gauge("celery_active_tasks", "Celery tasks currently running", multiprocess_mode="livesum")

# ---- http ----
http_requests_total = Counter("http_requests_total", "HTTP requests", ["method", "path", "code"])
http_request_duration = Histogram(
    "http_request_duration_seconds", "HTTP request duration seconds", ["method", "path"]
)


class PrometheusMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start
        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path)
        http_requests_total.labels(request.method, path, str(response.status_code)).inc()
        http_request_duration.labels(request.method, path).observe(elapsed)
        return response


router = APIRouter()


@router.get("/metrics")
def metrics() -> Response:
    """
    Single process: default REGISTRY.
    Multi process (PROMETHEUS_MULTIPROC_DIR set): merge the shards first.
    """
    if os.environ.get("PROMETHEUS_MULTIPROC_DIR"):
        registry = CollectorRegistry()
        multiprocess.MultiProcessCollector(registry)
        payload = generate_latest(registry)
    else:
        payload = generate_latest(REGISTRY)
    return Response(content=payload, media_type=CONTENT_TYPE_LATEST)
