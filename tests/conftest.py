"""
Pytest fixtures for test database, services and HTTP client.

Each test gets a fresh in-memory SQLite database (single shared connection)
so tests are isolated and need no running PostgreSQL or Redis.
"""

import os

# Configure the app before it is imported
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["REDIS_ENABLED"] = "false"
os.environ["ENVIRONMENT"] = "test"

from datetime import timedelta
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
import redis.asyncio as redis

from marketing_api.core.config import AdmissionLimits
from marketing_api.db.base import Base, utc_now
from marketing_api.db.session import get_db
from marketing_api.main import app
from marketing_api.models.waitlist import WaitlistEntry
from marketing_api.repositories.gateway import PersistenceGateway

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_maker = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def gateway(db_session: AsyncSession) -> PersistenceGateway:
    return PersistenceGateway(db_session)


@pytest.fixture
def limits() -> AdmissionLimits:
    return AdmissionLimits()


@pytest_asyncio.fixture(scope="function")
async def client(test_engine) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client whose requests each get their own committed session."""
    session_maker = async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)

    async def override_get_db():
        async with session_maker() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def make_entry():
    """Build a WaitlistEntry row directly, bypassing admission."""
    counter = {"n": 0}

    def _make(ip_address="10.0.0.1", hours_ago=0, email=None, position=None,
              status="pending", source="website", device="desktop"):
        counter["n"] += 1
        n = counter["n"]
        return WaitlistEntry(
            name="Seed User",
            email=email or f"seed{n}@example.com",
            ip_address=ip_address,
            user_agent="pytest",
            position=position or n,
            status=status,
            source=source,
            device=device,
            joined_at=utc_now() - timedelta(hours=hours_ago),
        )

    return _make


class FakePipeline:
    def __init__(self, server):
        self.server = server
        self.commands = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    def incr(self, key):
        self.commands.append(("incr", key))
        return self

    def expire(self, key, seconds):
        self.commands.append(("expire", key, seconds))
        return self

    async def execute(self):
        if self.server.broken:
            raise redis.ConnectionError("connection refused")
        results = []
        for command in self.commands:
            if command[0] == "incr":
                self.server.values[command[1]] = self.server.values.get(command[1], 0) + 1
                results.append(self.server.values[command[1]])
            else:
                self.server.ttls[command[1]] = command[2]
                results.append(True)
        return results


class FakeRedis:
    def __init__(self, broken=False):
        self.values = {}
        self.ttls = {}
        self.broken = broken

    def pipeline(self, transaction=True):
        return FakePipeline(self)


@pytest.fixture
def fake_redis():
    """In-memory stand-in for the slice of redis.asyncio the throttle uses."""
    return FakeRedis
