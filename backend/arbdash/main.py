"""
Arbitrage Bot Dashboard - FastAPI application.

``create_app`` builds the application; ``app`` is the instance served by
uvicorn (``arbdash.main:app``).
"""
from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import api_router
from .core.exception_handlers import register_exception_handlers
from .core.lifespan import lifespan
from .core.middleware import RequestTracingMiddleware
from .core.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create the FastAPI application.

    Args:
        settings: Settings to use instead of the process-wide instance;
            also installed as the ``get_settings`` dependency

    Returns:
        Configured FastAPI application
    """
    active = settings or get_settings()

    app = FastAPI(
        title=active.app_name,
        description="Monitoring and control API for a simulated arbitrage bot",
        version=active.version,
        debug=active.debug,
        lifespan=lifespan,
    )

    if settings is not None:
        app.state.settings = settings
        app.dependency_overrides[get_settings] = lambda: settings

    app.add_middleware(RequestTracingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=active.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Trace-ID", "X-Process-Time"],
    )

    register_exception_handlers(app)
    app.include_router(api_router, prefix=active.api_prefix)

    logger.debug(f"Application created with API prefix {active.api_prefix}")
    return app


app = create_app()

__all__ = ["create_app", "app"]
