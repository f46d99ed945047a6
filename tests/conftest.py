# tests/conftest.py
from __future__ import annotations

import os
from typing import AsyncGenerator

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

# ============================================================
# settings are read at import time: pin them before importing shelfpick
# ============================================================
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["SYNC_DISPATCH"] = "inline"
os.environ["ECOM_RETRY_DELAY_SECONDS"] = "0"
os.environ["LOG_LEVEL"] = "WARNING"

from shelfpick.api.deps import get_ecommerce_client, get_erp_client  # noqa: E402
from shelfpick.db import Base, init_models  # noqa: E402
from shelfpick.db.session import build_engine, get_session  # noqa: E402
from shelfpick.main import app  # noqa: E402

from tests.fakes import FakeEcommerceClient, FakeErpClient  # noqa: E402

init_models()


# =========================================
# one in-memory database per test
# =========================================
@pytest_asyncio.fixture(scope="function")
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    engine = build_engine("sqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture(scope="function")
def async_session_maker(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(async_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def session(async_session_maker) -> AsyncGenerator[AsyncSession, None]:
    async with async_session_maker() as sess:
        try:
            yield sess
        finally:
            if sess.in_transaction():
                await sess.rollback()


# =========================================
# external systems
# =========================================
@pytest.fixture
def erp() -> FakeErpClient:
    return FakeErpClient()


@pytest.fixture
def ecom() -> FakeEcommerceClient:
    return FakeEcommerceClient()


# =========================================
# FastAPI / httpx AsyncClient
# =========================================
@pytest_asyncio.fixture(scope="function")
async def client(async_session_maker, erp, ecom) -> AsyncGenerator[httpx.AsyncClient, None]:
    async def _session() -> AsyncGenerator[AsyncSession, None]:
        async with async_session_maker() as sess:
            yield sess

    app.dependency_overrides[get_session] = _session
    app.dependency_overrides[get_erp_client] = lambda: erp
    app.dependency_overrides[get_ecommerce_client] = lambda: ecom

    transport = httpx.ASGITransport(app=app)
    try:
        async with httpx.AsyncClient(
            transport=transport,
            base_url="http://testserver",
            timeout=httpx.Timeout(10.0, connect=5.0, read=10.0, write=5.0, pool=5.0),
        ) as c:
            yield c
    finally:
        app.dependency_overrides.clear()
