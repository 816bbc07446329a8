"""
Request and response models for the dashboard API.

JSON keys are camelCase on the wire; requests also accept the snake_case
field names. Token amounts travel as strings of integer smallest-unit
values, transaction amounts as decimal strings.
"""
from __future__ import annotations

import re
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..storage.models import BotStatusCode, TransactionStatus

_INTEGER_STRING = re.compile(r"^-?\d+$")


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes read from the store."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_unix_seconds(value: Optional[datetime]) -> Optional[int]:
    if value is None:
        return None
    return int(_as_utc(value).timestamp())


class CamelModel(BaseModel):
    """Base model serializing field names as camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class HealthResponse(CamelModel):
    """Liveness probe response."""

    status: str = "ok"


class BotStatusUpdate(CamelModel):
    """Body of POST /bot/status. Only ``status`` is required."""

    status: int = Field(..., ge=0, le=5, strict=True, description="Bot status code (0 Idle .. 5 Frozen)")
    is_frozen: Optional[bool] = None
    last_trade_time: Optional[datetime] = Field(
        default=None, description="Unix seconds or ISO-8601 timestamp"
    )
    total_revenue: Optional[str] = Field(default=None, description="Integer amount in smallest units")
    total_loss: Optional[str] = Field(default=None, description="Integer amount in smallest units")
    last_profit: Optional[str] = Field(default=None, description="Integer amount in smallest units")

    @field_validator("total_revenue", "total_loss", "last_profit", mode="before")
    @classmethod
    def validate_integer_string(cls, v: Any) -> Any:
        """Accept integers or strings of digits; keep them as strings."""
        if v is None:
            return v
        if isinstance(v, bool):
            raise ValueError("must be an integer or a string of digits")
        if isinstance(v, int):
            return str(v)
        if isinstance(v, str) and _INTEGER_STRING.match(v.strip()):
            return v.strip()
        raise ValueError("must be an integer or a string of digits")


class BotStatusView(CamelModel):
    """
    Bot status as returned by the API.

    ``id`` and ``updated_at`` are absent for the fallback payload.
    """

    id: Optional[int] = None
    status: int
    is_frozen: bool
    last_trade_time: Optional[int] = Field(default=None, description="Unix seconds")
    total_revenue: str
    total_loss: str
    last_profit: str
    updated_at: Optional[datetime] = None

    @property
    def status_name(self) -> str:
        return BotStatusCode(self.status).label

    @classmethod
    def from_record(cls, record: Any) -> "BotStatusView":
        """Build the view from a stored BotStatus row."""
        return cls(
            id=record.id,
            status=record.status,
            is_frozen=record.is_frozen,
            last_trade_time=_to_unix_seconds(record.last_trade_time),
            total_revenue=record.total_revenue,
            total_loss=record.total_loss,
            last_profit=record.last_profit,
            updated_at=_as_utc(record.updated_at),
        )


class BotConfigUpdate(CamelModel):
    """Body of POST /bot/config. The four addresses are required."""

    slippage_tolerance: Optional[int] = Field(
        default=None, ge=0, le=10_000, description="Slippage tolerance in basis points"
    )
    usdc_address: str = Field(..., min_length=1)
    weth_address: str = Field(..., min_length=1)
    contract_address: str = Field(..., min_length=1)
    vault_address: str = Field(..., min_length=1)
    cooldown_period: Optional[int] = Field(default=None, ge=0, description="Seconds between trades")


class BotConfigRead(CamelModel):
    """Stored bot configuration."""

    id: int
    slippage_tolerance: int
    usdc_address: str
    weth_address: str
    contract_address: str
    vault_address: str
    cooldown_period: int


class TransactionCreate(CamelModel):
    """Body of POST /transactions."""

    tx_hash: str = Field(..., min_length=1, max_length=100)
    date: Optional[datetime] = None
    type: str = Field(..., min_length=1, max_length=50)
    amount: str = Field(..., description="Decimal amount, may be negative")
    gas_used: int = Field(..., ge=0)
    status: TransactionStatus
    user_id: Optional[int] = None

    @field_validator("amount", mode="before")
    @classmethod
    def validate_amount(cls, v: Any) -> Any:
        """Accept numbers or decimal strings; keep them as strings."""
        if isinstance(v, bool):
            raise ValueError("must be a decimal number")
        if isinstance(v, (int, float)):
            v = str(v)
        if isinstance(v, str):
            try:
                parsed = Decimal(v.strip())
            except InvalidOperation:
                raise ValueError("must be a decimal number") from None
            if not parsed.is_finite():
                raise ValueError("must be a finite decimal number")
            return v.strip()
        raise ValueError("must be a decimal number")


class TransactionRead(CamelModel):
    """Stored or generated transaction."""

    id: int
    tx_hash: str
    date: datetime
    type: str
    amount: str
    gas_used: int
    status: str
    user_id: Optional[int] = None

    @field_validator("date")
    @classmethod
    def attach_utc(cls, v: datetime) -> datetime:
        return _as_utc(v)


class DiagnosticsResponse(CamelModel):
    """Read-only summary derived from bot status and configuration."""

    chain: str
    profit: str
    slippage: str
    oracle: bool
    error: str


class BalancesResponse(CamelModel):
    """Token balances; ``balances[i]`` belongs to ``tokens[i]``."""

    tokens: List[str]
    balances: List[str]


class ErrorResponse(BaseModel):
    """Error body returned by the exception handlers."""

    error: str
    details: Optional[List[dict]] = None


__all__ = [
    "CamelModel",
    "HealthResponse",
    "BotStatusUpdate",
    "BotStatusView",
    "BotConfigUpdate",
    "BotConfigRead",
    "TransactionCreate",
    "TransactionRead",
    "DiagnosticsResponse",
    "BalancesResponse",
    "ErrorResponse",
]
