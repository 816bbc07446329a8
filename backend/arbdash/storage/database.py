"""
Engine and session management for the record store.

SQLite (aiosqlite) is the default backend for development and tests;
PostgreSQL (asyncpg) is supported for deployment. Plain ``sqlite://`` and
``postgresql://`` URLs are upgraded to their async drivers.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator, Dict, Optional

from sqlalchemy import event, text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from ..core.settings import get_settings

logger = logging.getLogger(__name__)

ASYNC_DRIVERS = {
    "sqlite": "sqlite+aiosqlite",
    "postgresql": "postgresql+asyncpg",
}

SQLITE_PRAGMAS = (
    "PRAGMA journal_mode=WAL",
    "PRAGMA synchronous=NORMAL",
    "PRAGMA foreign_keys=ON",
    "PRAGMA busy_timeout=30000",
)


class Base(DeclarativeBase):
    """Declarative base for the dashboard tables."""


def normalize_database_url(database_url: str) -> URL:
    """
    Parse a database URL and switch it to the matching async driver.

    Args:
        database_url: SQLAlchemy URL, e.g. ``sqlite:///./data/dashboard.db``

    Returns:
        URL using aiosqlite or asyncpg

    Raises:
        ValueError: For backends other than SQLite and PostgreSQL
    """
    url = make_url(database_url)
    backend = url.get_backend_name()
    if backend not in ASYNC_DRIVERS:
        raise ValueError(f"Unsupported database backend: {backend}")
    return url.set(drivername=ASYNC_DRIVERS[backend])


def sqlite_file(url: URL) -> Optional[Path]:
    """Database file of a SQLite URL; None for in-memory databases."""
    if url.database in (None, "", ":memory:"):
        return None
    return Path(url.database)


class DatabaseManager:
    """
    Owns the async engine and the session factory.

    SQLite runs on a single shared connection in driver autocommit mode,
    which lets WAL journaling work and keeps in-memory databases alive for
    the lifetime of the engine.
    """

    def __init__(self) -> None:
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker[AsyncSession]] = None
        self.url: Optional[URL] = None
        self._is_initialized = False

    @property
    def is_initialized(self) -> bool:
        return self._is_initialized

    @property
    def backend(self) -> Optional[str]:
        return self.url.get_backend_name() if self.url is not None else None

    def _engine_options(self, url: URL, echo: bool) -> Dict[str, Any]:
        if url.get_backend_name() == "postgresql":
            return {
                "echo": echo,
                "pool_size": 5,
                "max_overflow": 10,
                "pool_recycle": 3600,
                "pool_pre_ping": True,
                "connect_args": {
                    "command_timeout": 60,
                    "server_settings": {"application_name": "arbdash"},
                },
            }

        return {
            "echo": echo,
            "poolclass": StaticPool,
            "connect_args": {
                "check_same_thread": False,
                "timeout": 30,
                "isolation_level": None,
            },
        }

    @staticmethod
    def _install_sqlite_pragmas(engine: AsyncEngine) -> None:
        @event.listens_for(engine.sync_engine, "connect")
        def apply_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            for pragma in SQLITE_PRAGMAS:
                cursor.execute(pragma)
            cursor.close()

    async def initialize(self, database_url: Optional[str] = None, echo: Optional[bool] = None) -> None:
        """
        Create the engine and session factory, then verify connectivity.

        Args:
            database_url: Overrides ``settings.database_url``
            echo: Overrides ``settings.database_echo``
        """
        if self._is_initialized:
            logger.debug("Database manager already initialized, skipping")
            return

        settings = get_settings()
        echo = settings.database_echo if echo is None else echo

        try:
            self.url = normalize_database_url(database_url or settings.database_url)

            if self.backend == "sqlite":
                db_file = sqlite_file(self.url)
                if db_file is not None:
                    db_file.parent.mkdir(parents=True, exist_ok=True)

            self.engine = create_async_engine(self.url, **self._engine_options(self.url, echo))
            if self.backend == "sqlite":
                self._install_sqlite_pragmas(self.engine)

            self.session_factory = async_sessionmaker(self.engine, expire_on_commit=False)

            if not await self.ping():
                raise RuntimeError(f"Cannot reach {self.backend} database")

        except Exception as e:
            logger.error(f"Database setup failed: {e}")
            await self.close()
            raise

        self._is_initialized = True
        logger.info(
            f"Connected to {self.backend} database",
            extra={"extra_data": {"url": self.url.render_as_string(hide_password=True)}},
        )

    async def ping(self) -> bool:
        """True if ``SELECT 1`` succeeds on the engine."""
        if self.engine is None:
            return False
        try:
            async with self.engine.connect() as conn:
                return (await conn.scalar(text("SELECT 1"))) == 1
        except Exception as e:
            logger.error(f"Database ping failed: {e}")
            return False

    async def close(self) -> None:
        """Dispose of the engine and forget the session factory."""
        if self.engine is not None:
            await self.engine.dispose()
            logger.info(f"Closed {self.backend} database")

        self.engine = None
        self.session_factory = None
        self._is_initialized = False

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Session scope: commits on success, rolls back on error.

        Yields:
            AsyncSession bound to the manager's engine
        """
        if self.session_factory is None:
            raise RuntimeError("Database manager is not initialized")

        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_tables(self) -> None:
        """Create any missing tables."""
        if self.engine is None:
            raise RuntimeError("Database manager is not initialized")

        # Importing the models registers them on Base.metadata
        from . import models  # noqa: F401

        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info(f"Ensured tables: {', '.join(sorted(Base.metadata.tables))}")


# Process-wide manager used by the application and the CLI
db_manager = DatabaseManager()


async def init_database(database_url: Optional[str] = None) -> None:
    """Open the process-wide database and create its tables."""
    await db_manager.initialize(database_url)
    await db_manager.create_tables()


async def close_database() -> None:
    await db_manager.close()


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency yielding a session from the process-wide manager."""
    async with db_manager.get_session() as session:
        yield session


__all__ = [
    "Base",
    "DatabaseManager",
    "normalize_database_url",
    "db_manager",
    "init_database",
    "close_database",
    "get_db_session",
]
