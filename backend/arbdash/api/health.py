"""
Health check endpoint.
"""
from __future__ import annotations

from fastapi import APIRouter

from .schemas import HealthResponse

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness probe. Always 200 while the process serves requests."""
    return HealthResponse(status="ok")
