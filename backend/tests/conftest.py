"""
Shared fixtures: in-memory database, settings and an HTTP client bound to
the FastAPI app.
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, Dict, Optional

import httpx
import pytest
import pytest_asyncio

from arbdash.core.settings import Settings
from arbdash.main import create_app
from arbdash.storage.database import DatabaseManager, get_db_session

MEMORY_URL = "sqlite+aiosqlite:///:memory:"


def make_settings(**overrides) -> Settings:
    values = {
        "environment": "test",
        "database_url": MEMORY_URL,
        "mock_seed": 1234,
        "api_base_url": "http://test/api",
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest_asyncio.fixture
async def db() -> AsyncIterator[DatabaseManager]:
    """Fresh in-memory database with all tables."""
    manager = DatabaseManager()
    await manager.initialize(MEMORY_URL, echo=False)
    await manager.create_tables()
    yield manager
    await manager.close()


@pytest_asyncio.fixture
async def session(db: DatabaseManager):
    async with db.get_session() as session:
        yield session


@asynccontextmanager
async def api_client(
    db: DatabaseManager,
    settings: Settings,
    overrides: Optional[Dict[Callable, Callable]] = None,
) -> AsyncIterator[httpx.AsyncClient]:
    """
    AsyncClient talking to a fresh app over ASGI.

    ``overrides`` maps dependency callables to replacements.
    """
    app = create_app(settings)

    async def override_session():
        async with db.get_session() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_session
    app.dependency_overrides.update(overrides or {})

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def client(db: DatabaseManager, settings: Settings) -> AsyncIterator[httpx.AsyncClient]:
    async with api_client(db, settings) as client:
        yield client
