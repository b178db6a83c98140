"""Shared test fixtures."""

import os

# Settings are read at import time; point the module-level engine at an
# in-memory database before anything imports deptcms.
os.environ.setdefault("DB_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ALLOW_IDENTITY_QUERY", "true")

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

import deptcms.models  # noqa: F401
from deptcms.db.database import Base, get_db
from deptcms.services.media_storage import LocalMediaStorage, get_media_storage
from factories import make_user


@pytest_asyncio.fixture
async def engine(tmp_path):
    """Per-test SQLite database file."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'cms.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, expire_on_commit=False)


@pytest_asyncio.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def media_storage(tmp_path):
    return LocalMediaStorage(base_path=str(tmp_path / "uploads"), max_bytes=1024)


@pytest_asyncio.fixture
async def client(session_factory, media_storage):
    """HTTP client against the app, wired to the per-test database and upload dir."""
    from main import app

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_storage] = lambda: media_storage
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def admin(session):
    return await make_user(session, "A001", "admin@college.edu", role="admin", department="CSE")


@pytest_asyncio.fixture
async def cse_member(session):
    return await make_user(session, "U100", "cse@college.edu", department="CSE")


@pytest_asyncio.fixture
async def ece_member(session):
    return await make_user(session, "U200", "ece@college.edu", department="ECE")
