"""
HTTP API routers.

All routers are mounted under ``settings.api_prefix`` by ``create_app``.
"""
from __future__ import annotations

from fastapi import APIRouter

from .bot import router as bot_router
from .health import router as health_router
from .transactions import router as transactions_router

api_router = APIRouter()
api_router.include_router(health_router)
api_router.include_router(bot_router)
api_router.include_router(transactions_router)

__all__ = ["api_router"]
