"""
Async HTTP client for the dashboard API.

Accessors return typed snapshots with integer-string amounts widened to
``int``. They never raise: any transport, HTTP or decoding failure is
logged and reported as None.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional, TypeVar

import httpx

from ..core.logging import get_logger
from ..core.settings import Settings, get_settings
from ..storage.models import BotStatusCode
from .formatting import bot_status_name

logger = get_logger(__name__)

T = TypeVar("T")


def _parse_datetime(value: str) -> datetime:
    # fromisoformat only accepts a trailing "Z" from Python 3.11
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return datetime.fromisoformat(value)


@dataclass
class BotStatusSnapshot:
    """Bot status as seen by the client."""
    status: int
    is_frozen: bool
    last_trade_time: Optional[int]
    total_revenue: int
    total_loss: int
    last_profit: int
    updated_at: Optional[datetime] = None

    @property
    def status_name(self) -> str:
        return bot_status_name(self.status)

    @property
    def net_profit(self) -> int:
        return self.total_revenue - self.total_loss

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "BotStatusSnapshot":
        updated_at = data.get("updatedAt")
        last_trade_time = data.get("lastTradeTime")
        return cls(
            status=int(data["status"]),
            is_frozen=bool(data["isFrozen"]),
            last_trade_time=int(last_trade_time) if last_trade_time is not None else None,
            total_revenue=int(data["totalRevenue"]),
            total_loss=int(data["totalLoss"]),
            last_profit=int(data["lastProfit"]),
            updated_at=_parse_datetime(updated_at) if updated_at else None,
        )


@dataclass
class Balances:
    """Token balances in smallest units, aligned with ``tokens``."""
    tokens: List[str]
    balances: List[int]

    def balance_of(self, token: str) -> Optional[int]:
        for address, balance in zip(self.tokens, self.balances):
            if address.lower() == token.lower():
                return balance
        return None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Balances":
        tokens = [str(token) for token in data["tokens"]]
        balances = [int(balance) for balance in data["balances"]]
        if len(tokens) != len(balances):
            raise ValueError("tokens and balances differ in length")
        return cls(tokens=tokens, balances=balances)


@dataclass
class Diagnostics:
    """Diagnostics summary."""
    chain: str
    profit: int
    slippage: int  # basis points
    oracle: bool
    error: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Diagnostics":
        return cls(
            chain=str(data["chain"]),
            profit=int(data["profit"]),
            slippage=int(data["slippage"]),
            oracle=bool(data["oracle"]),
            error=str(data["error"]),
        )


@dataclass
class TransactionRecord:
    """One transaction from the history list."""
    id: int
    tx_hash: str
    date: datetime
    type: str
    amount: Decimal
    gas_used: int
    status: str
    user_id: Optional[int] = None

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "TransactionRecord":
        return cls(
            id=int(data["id"]),
            tx_hash=str(data["txHash"]),
            date=_parse_datetime(data["date"]),
            type=str(data["type"]),
            amount=Decimal(str(data["amount"])),
            gas_used=int(data["gasUsed"]),
            status=str(data["status"]),
            user_id=data.get("userId"),
        )


@dataclass
class BotConfigSnapshot:
    """Bot configuration."""
    slippage_tolerance: int
    usdc_address: str
    weth_address: str
    contract_address: str
    vault_address: str
    cooldown_period: int

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "BotConfigSnapshot":
        return cls(
            slippage_tolerance=int(data["slippageTolerance"]),
            usdc_address=data["usdcAddress"],
            weth_address=data["wethAddress"],
            contract_address=data["contractAddress"],
            vault_address=data["vaultAddress"],
            cooldown_period=int(data["cooldownPeriod"]),
        )


class DashboardClient:
    """
    Client for the dashboard API.

    One request per call, no retries. The timeout is unset unless given
    or configured through ``client_timeout_seconds``.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        settings = settings or get_settings()
        self.base_url = (base_url or settings.api_base_url).rstrip("/")
        timeout = timeout if timeout is not None else settings.client_timeout_seconds
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "DashboardClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Optional[Any]:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as e:
            logger.warning(
                f"{method} {path} returned {e.response.status_code}",
                extra={"extra_data": {"path": path, "status_code": e.response.status_code}},
            )
        except httpx.HTTPError as e:
            logger.warning(
                f"{method} {path} failed: {type(e).__name__}",
                extra={"extra_data": {"path": path, "error": str(e)}},
            )
        except ValueError as e:
            logger.warning(f"{method} {path} returned invalid JSON: {e}")
        return None

    async def _fetch(
        self,
        method: str,
        path: str,
        parse: Callable[[Any], T],
        **kwargs: Any,
    ) -> Optional[T]:
        payload = await self._request(method, path, **kwargs)
        if payload is None:
            return None
        try:
            return parse(payload)
        except (KeyError, TypeError, ValueError, ArithmeticError) as e:
            logger.warning(
                f"Unexpected response shape from {method} {path}: {e}",
                extra={"extra_data": {"path": path}},
            )
            return None

    async def get_bot_status(self) -> Optional[BotStatusSnapshot]:
        """Current bot status."""
        return await self._fetch("GET", "/bot/status", BotStatusSnapshot.from_json)

    async def get_balances(self) -> Optional[Balances]:
        """Bot wallet token balances."""
        return await self._fetch("GET", "/bot/balances", Balances.from_json)

    async def get_diagnostics(self) -> Optional[Diagnostics]:
        """Diagnostics summary."""
        return await self._fetch("GET", "/bot/diagnostics", Diagnostics.from_json)

    async def get_bot_config(self) -> Optional[BotConfigSnapshot]:
        """Bot configuration, or None if none is stored."""
        return await self._fetch("GET", "/bot/config", BotConfigSnapshot.from_json)

    async def get_transactions(self, limit: int = 10) -> Optional[List[TransactionRecord]]:
        """Most recent transactions, newest first."""
        return await self._fetch(
            "GET",
            "/transactions",
            lambda items: [TransactionRecord.from_json(item) for item in items],
            params={"limit": limit},
        )

    async def health(self) -> bool:
        payload = await self._request("GET", "/health")
        return isinstance(payload, dict) and payload.get("status") == "ok"

    async def set_bot_status(self, status: BotStatusCode, **fields: Any) -> Optional[BotStatusSnapshot]:
        """
        Post a new bot status.

        Args:
            status: Target status code
            **fields: Extra camelCase fields, e.g. ``isFrozen=True``

        Returns:
            The stored status, or None on failure
        """
        body = {"status": int(status), **fields}
        logger.info(f"Setting bot status to {status.label}")
        return await self._fetch("POST", "/bot/status", BotStatusSnapshot.from_json, json=body)

    async def start_bot(self) -> Optional[BotStatusSnapshot]:
        return await self.set_bot_status(BotStatusCode.RUNNING, isFrozen=False)

    async def pause_bot(self) -> Optional[BotStatusSnapshot]:
        return await self.set_bot_status(BotStatusCode.PAUSED)

    async def resume_bot(self) -> Optional[BotStatusSnapshot]:
        return await self.set_bot_status(BotStatusCode.RUNNING)

    async def freeze_bot(self) -> Optional[BotStatusSnapshot]:
        return await self.set_bot_status(BotStatusCode.FROZEN, isFrozen=True)


__all__ = [
    "BotStatusSnapshot",
    "Balances",
    "Diagnostics",
    "TransactionRecord",
    "BotConfigSnapshot",
    "DashboardClient",
]
