"""Global test configuration and fixtures for the billing API."""

import os
import random
from collections.abc import AsyncGenerator
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from src.database.models import Base
from src.modules.billing.ledger import PaymentLedgerRepository
from src.modules.billing.portone import PortOneClient, get_portone_client
from src.modules.billing.use_cases import BillingEventHandler

from tests.factories import FIXED_NOW


TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:")


@pytest_asyncio.fixture
async def async_engine():
    """Fresh schema per test."""
    engine_kwargs: dict = {}
    if TEST_DATABASE_URL.startswith("sqlite"):
        # One shared connection keeps the in-memory database alive
        engine_kwargs = {
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }

    engine = create_async_engine(TEST_DATABASE_URL, echo=False, **engine_kwargs)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=async_engine, class_=AsyncSession, expire_on_commit=False
    )


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def ledger(db_session: AsyncSession) -> PaymentLedgerRepository:
    return PaymentLedgerRepository(db_session)


@pytest.fixture
def portone_client() -> AsyncMock:
    """PortOne client double; every API method is an AsyncMock."""
    return AsyncMock(spec=PortOneClient)


@pytest.fixture
def schedule_ids():
    """Deterministic schedule id source, also exposing what it handed out."""
    issued: list[str] = []

    def next_id() -> str:
        issued.append(f"schedule-{len(issued) + 1}")
        return issued[-1]

    next_id.issued = issued
    return next_id


@pytest.fixture
def billing_handler(ledger, portone_client, schedule_ids) -> BillingEventHandler:
    return BillingEventHandler(
        ledger,
        portone_client,
        clock=lambda: FIXED_NOW,
        rng=random.Random(42),
        schedule_id_factory=schedule_ids,
    )


@pytest_asyncio.fixture
async def app(session_factory, portone_client) -> AsyncGenerator[FastAPI, None]:
    """FastAPI application bound to the test database and PortOne double."""
    from src.main import app

    async with LifespanManager(app):
        app.state.session_factory = session_factory
        app.dependency_overrides[get_portone_client] = lambda: portone_client
        yield app
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def public_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client for the webhook and payment endpoints."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test-billing-api",
    ) as ac:
        yield ac
