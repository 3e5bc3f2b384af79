"""Shared fixtures: an in-memory database and remote store per test."""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import secretmirror.models  # noqa: F401  register tables
from secretmirror.adapters.memory import MemorySecretClient
from secretmirror.database import Base
from secretmirror.dependencies import get_bindings, get_remote_client, get_store
from secretmirror.main import app
from secretmirror.services.constant_resolver import BindingTable
from secretmirror.services.record_store import RecordStore


@pytest_asyncio.fixture
async def session_factory():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


@pytest_asyncio.fixture
async def store(session_factory) -> RecordStore:
    return RecordStore(session_factory)


@pytest.fixture()
def remote() -> MemorySecretClient:
    return MemorySecretClient()


@pytest.fixture()
def bindings() -> BindingTable:
    return BindingTable()


@pytest_asyncio.fixture
async def client(store, remote, bindings):
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_remote_client] = lambda: remote
    app.dependency_overrides[get_bindings] = lambda: bindings
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
