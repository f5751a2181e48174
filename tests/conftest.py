"""Pytest configuration and fixtures."""

import os

# Set DEBUG=true for all tests BEFORE any inventory imports
# This must be done before inventory.core.config loads settings
os.environ["DEBUG"] = "true"
os.environ["OTEL_ENABLED"] = "false"
os.environ["OTEL_SDK_DISABLED"] = "true"
os.environ["SECRET_DATABASE_URL"] = "sqlite+aiosqlite://"

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from inventory.core.config import Settings, settings
from inventory.core.database import enable_sqlite_foreign_keys, get_db
from inventory.main import app
from inventory.models import Base, City, Route, Terminal
from tests.fixtures.otel import (  # noqa: F401
    in_memory_span_exporter,
    otel_enabled_provider,
    reset_tracer_provider,
    test_tracer_provider,
)
from tests.helpers.factories import RouteNetwork, build_route_network

TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """
    In-memory SQLite engine with the full schema, one per test.

    StaticPool keeps a single connection alive so every session sees the
    same in-memory database. Foreign keys are enforced as in PostgreSQL.

    Yields:
        AsyncEngine bound to a fresh database
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession]:
    """
    Session on the per-test database.

    Commits are real commits; isolation comes from the database being
    recreated for every test.

    Args:
        db_engine: Per-test engine

    Yields:
        Async SQLAlchemy session configured like the application's
    """
    session_factory = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
async def async_client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient]:
    """
    FastAPI asynchronous HTTP client sharing the test session.

    Args:
        db_session: Session the endpoints will use

    Yields:
        Async HTTP client with ASGI transport
    """

    async def override_get_db() -> AsyncGenerator[AsyncSession]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
            yield client
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def settings_fixture() -> Settings:
    """
    Provide settings instance for tests.

    Returns:
        Settings instance
    """
    return settings


# Route network fixtures


@pytest.fixture
async def route_network(db_session: AsyncSession) -> RouteNetwork:
    """
    Persisted state with four cities, one terminal per city and four simple routes.

        r1: City1 -> City2, 100 km, 120 min travel, 110 min base
        r2: City2 -> City3, 50 km, 60 min travel, 55 min base
        r3: City3 -> City1, 80 km, 90 min travel, 85 min base
        r4: City4 -> City2, 30 km, 40 min travel, 35 min base

    Args:
        db_session: Isolated database session for this test

    Returns:
        RouteNetwork with cities, terminals and routes by key
    """
    return await build_route_network(db_session)


@pytest.fixture
def r1(route_network: RouteNetwork) -> Route:
    return route_network.routes["r1"]


@pytest.fixture
def r2(route_network: RouteNetwork) -> Route:
    return route_network.routes["r2"]


@pytest.fixture
def r3(route_network: RouteNetwork) -> Route:
    return route_network.routes["r3"]


@pytest.fixture
def city1(route_network: RouteNetwork) -> City:
    return route_network.cities["city1"]


@pytest.fixture
def terminal1(route_network: RouteNetwork) -> Terminal:
    return route_network.terminals["city1"]


@pytest.fixture
def r4(route_network: RouteNetwork) -> Route:
    return route_network.routes["r4"]
