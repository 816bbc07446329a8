"""
Application lifespan management.

Configures logging and opens the database on startup; closes both on
shutdown.
"""
from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI

from ..storage.database import close_database, init_database
from .logging import cleanup_logging, setup_logging
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager.

    Uses ``app.state.settings`` when ``create_app`` was given settings,
    otherwise the process-wide instance.
    """
    settings: Settings = getattr(app.state, "settings", None) or get_settings()
    startup_start = time.time()

    setup_logging(
        log_level=settings.log_level,
        debug=settings.debug,
        log_dir=settings.logs_dir,
        retention_days=settings.log_retention_days,
    )
    logger.info(
        f"Starting {settings.app_name} v{settings.version}",
        extra={"extra_data": {"environment": settings.environment}},
    )

    try:
        await init_database(settings.database_url)
    except Exception:
        logger.critical("Database initialization failed, aborting startup")
        cleanup_logging()
        raise

    app.state.started_at = startup_start
    logger.info(f"Startup completed in {time.time() - startup_start:.2f}s")

    try:
        yield
    finally:
        logger.info(f"Shutting down {settings.app_name}")
        await close_database()
        cleanup_logging()


__all__ = ["lifespan"]
