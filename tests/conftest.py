"""
Shared test configuration and fixtures.

Registry and handler tests run against an in-memory SQLite database through
aiosqlite. The schema is created from the SQLAlchemy models, and the single
connection is shared across sessions with a StaticPool so every session sees
the same data.
"""

from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio
from aiohttp import ClientSession
from aiohttp.test_utils import TestClient, TestServer
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from social.persona.vanity.app.config import (
    DatabaseSessionMakerAppKey,
    MetricsClientAppKey,
    SessionAppKey,
    Settings,
)
from social.persona.vanity.app.metrics import NoOpMetricsClient
from social.persona.vanity.app.server import create_app
from social.persona.vanity.atproto.profile import ExternalProfile
from social.persona.vanity.model.base import Base


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def engine():
    """Create async SQLAlchemy engine with the schema for each test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture(scope="function")
async def session(session_maker):
    """Create async database session for testing."""
    async with session_maker() as session:
        yield session


@pytest.fixture
def settings():
    return Settings(
        blocked_terms=["BlockedWord"],
        reserved_usernames=["admin"],
        error_webhook_url="https://hooks.example.com/webhook",
        support_contact="@owner.example.com",
    )


@pytest.fixture
def http_session():
    """HTTP session that must never be used directly; lookups are patched."""
    return AsyncMock(spec=ClientSession)


@pytest.fixture
def alice_profile():
    return ExternalProfile(
        did="did:plc:123",
        handle="alice.bsky.social",
        display_name="Alice",
        description="hello",
    )


@pytest.fixture
def metrics_client():
    client = NoOpMetricsClient()
    client.increment = Mock()
    client.timer = Mock()
    return client


@pytest.fixture
def app(settings, session_maker, http_session, metrics_client):
    """Application with test resources in place of the startup context."""
    app = create_app(settings)
    app[DatabaseSessionMakerAppKey] = session_maker
    app[SessionAppKey] = http_session
    app[MetricsClientAppKey] = metrics_client
    return app


@pytest_asyncio.fixture
async def client(app):
    async with TestClient(TestServer(app)) as client:
        yield client
