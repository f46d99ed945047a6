# shelfpick/main.py
from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shelfpick.api.routers.order_sync import router as order_sync_router
from shelfpick.api.routers.picks import router as picks_router
from shelfpick.core.config import get_settings
from shelfpick.core.logging import setup_logging
from shelfpick.db import init_models
from shelfpick.db.session import async_engine, close_engines
from shelfpick.http_problem_handlers import register_exception_handlers
from shelfpick.metrics import PrometheusMiddleware
from shelfpick.metrics import router as metrics_router
from shelfpick.obs.otel import setup_tracing

settings = get_settings()
setup_logging(settings.LOG_LEVEL, json=settings.JSON_LOG)
logger = logging.getLogger("shelfpick")

init_models()


@asynccontextmanager
async def lifespan(_app: FastAPI):
    logger.info("shelfpick starting (env=%s, sync dispatch=%s)", settings.ENV, settings.SYNC_DISPATCH)
    yield
    await close_engines()


app = FastAPI(
    title="shelfpick",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://127.0.0.1:5173",
        "http://localhost:5173",
        "http://127.0.0.1:8000",
        "http://localhost:8000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(PrometheusMiddleware)

register_exception_handlers(app)

app.include_router(picks_router)
app.include_router(order_sync_router)
app.include_router(metrics_router)

if settings.OTEL_ENABLED:
    setup_tracing(app, sqlalchemy_engine=async_engine.sync_engine)


@app.get("/")
async def root():
    return {"name": "shelfpick", "version": "1.0.0"}


@app.get("/health")
async def health():
    return {"status": "ok"}
