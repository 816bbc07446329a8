"""
Bot status, configuration, diagnostics and balances endpoints.

Status and diagnostics fall back to static demo values when the store is
empty (see ``fallbacks``); configuration has no fallback.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from ..core.exceptions import NotFoundError, StoreError
from ..core.logging import get_logger
from ..core.settings import Settings, get_settings
from ..storage.models import to_naive_utc
from ..storage.repositories import (
    BotConfigRepository,
    BotStatusRepository,
    get_bot_config_repository,
    get_bot_status_repository,
)
from .fallbacks import build_chain, mock_bot_status, mock_diagnostics, static_balances
from .schemas import (
    BalancesResponse,
    BotConfigRead,
    BotConfigUpdate,
    BotStatusUpdate,
    BotStatusView,
    DiagnosticsResponse,
    ErrorResponse,
)

logger = get_logger(__name__)
router = APIRouter(prefix="/bot", tags=["bot"])

# Columns that cannot hold NULL; an explicit null in the body leaves them unchanged
_NON_NULLABLE_STATUS_FIELDS = {"is_frozen", "total_revenue", "total_loss", "last_profit"}


@router.get(
    "/status",
    response_model=BotStatusView,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_bot_status(
    repo: BotStatusRepository = Depends(get_bot_status_repository),
    settings: Settings = Depends(get_settings),
) -> BotStatusView:
    """Current bot status, or the demo status when none is stored."""

    async def from_store() -> Optional[BotStatusView]:
        record = await repo.get()
        return BotStatusView.from_record(record) if record is not None else None

    async def from_static() -> BotStatusView:
        return mock_bot_status()

    view = await build_chain("bot status", from_store, from_static, settings).resolve()
    if view is None:
        raise NotFoundError("Bot status not found")
    return view


@router.post(
    "/status",
    response_model=BotStatusView,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def update_bot_status(
    payload: BotStatusUpdate,
    repo: BotStatusRepository = Depends(get_bot_status_repository),
) -> BotStatusView:
    """Create or update the bot status row with the fields given."""
    values = payload.model_dump(exclude_unset=True)
    for field in _NON_NULLABLE_STATUS_FIELDS:
        if field in values and values[field] is None:
            del values[field]
    if values.get("last_trade_time") is not None:
        values["last_trade_time"] = to_naive_utc(values["last_trade_time"])

    record = await repo.upsert(values)
    logger.info(
        "Bot status updated",
        extra={"extra_data": {"status": record.status, "is_frozen": record.is_frozen}},
    )
    return BotStatusView.from_record(record)


@router.get(
    "/diagnostics",
    response_model=DiagnosticsResponse,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_diagnostics(
    status_repo: BotStatusRepository = Depends(get_bot_status_repository),
    config_repo: BotConfigRepository = Depends(get_bot_config_repository),
    settings: Settings = Depends(get_settings),
) -> DiagnosticsResponse:
    """Summary of status and configuration; demo values if either is missing."""

    async def from_store() -> Optional[DiagnosticsResponse]:
        try:
            status = await status_repo.get()
            config = await config_repo.get()
        except StoreError as e:
            raise StoreError("Failed to fetch diagnostics") from e

        if status is None or config is None:
            return None
        return DiagnosticsResponse(
            chain=settings.chain_name,
            profit=status.last_profit,
            slippage=str(config.slippage_tolerance),
            oracle=True,
            error="Frozen" if status.is_frozen else "OK",
        )

    async def from_static() -> DiagnosticsResponse:
        return mock_diagnostics(settings)

    diagnostics = await build_chain("diagnostics", from_store, from_static, settings).resolve()
    if diagnostics is None:
        raise NotFoundError("Diagnostics not available")
    return diagnostics


@router.get(
    "/config",
    response_model=BotConfigRead,
    responses={404: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def get_bot_config(
    repo: BotConfigRepository = Depends(get_bot_config_repository),
) -> BotConfigRead:
    """Stored bot configuration. 404 until one has been posted."""
    record = await repo.get()
    if record is None:
        raise NotFoundError("Bot configuration not found")
    return BotConfigRead.model_validate(record)


@router.post(
    "/config",
    response_model=BotConfigRead,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def update_bot_config(
    payload: BotConfigUpdate,
    repo: BotConfigRepository = Depends(get_bot_config_repository),
) -> BotConfigRead:
    """Create or update the bot configuration row."""
    values = payload.model_dump(exclude_unset=True, exclude_none=True)
    record = await repo.upsert(values)
    logger.info(
        "Bot configuration updated",
        extra={"extra_data": {
            "slippage_tolerance": record.slippage_tolerance,
            "cooldown_period": record.cooldown_period,
        }},
    )
    return BotConfigRead.model_validate(record)


@router.get("/balances", response_model=BalancesResponse)
async def get_balances(settings: Settings = Depends(get_settings)) -> BalancesResponse:
    """Token balances of the bot wallet (fixed demo values)."""
    return static_balances(settings)
