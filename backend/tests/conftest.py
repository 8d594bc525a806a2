"""
Shared pytest fixtures for the workload.

Uses an in-memory SQLite database (via aiosqlite) so tests run without a
live Postgres instance.

Environment overrides are applied before importing sample_api modules so that
Settings() picks them up.
"""
import os

# Set test environment BEFORE importing any sample_api module
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("POSTGRESQL_SERVER", "localhost")
os.environ.setdefault("POSTGRESQL_PASSWORD", "unused")

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
    )
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session


def _client_for(app, session: AsyncSession) -> AsyncClient:
    from sample_api.core.db import get_db

    async def _override_get_db():
        yield session

    app.dependency_overrides[get_db] = _override_get_db
    return AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=False),
        base_url="http://testserver",
    )


@pytest_asyncio.fixture
async def client(db_session: AsyncSession):
    """AsyncClient for the FastAPI app with the DB dependency on the test session."""
    from sample_api.main import app

    async with _client_for(app, db_session) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def unreachable_db_client(tmp_path):
    """AsyncClient whose database lives in a directory that does not exist."""
    from sample_api.main import app

    broken = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'db.sqlite'}")
    session_factory = async_sessionmaker(broken, expire_on_commit=False)
    async with session_factory() as session:
        async with _client_for(app, session) as ac:
            yield ac

    app.dependency_overrides.clear()
    await broken.dispose()
