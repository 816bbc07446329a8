"""
Primary/fallback resolution for dashboard reads and the static payloads.

A read that may be served from demo data is expressed as a FallbackChain:
the store source runs first and the static source answers only if the
store had nothing. Store errors are not swallowed; they propagate to the
exception handlers.
"""
from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, List, Optional, Tuple

from ..core.settings import Settings
from ..storage.models import BotStatusCode, TransactionStatus
from .schemas import BalancesResponse, BotStatusView, DiagnosticsResponse, TransactionRead

logger = logging.getLogger(__name__)

Source = Callable[[], Awaitable[Any]]

FALLBACK_TOTAL_REVENUE = "5000000000"  # 5000 USDC, 6 decimals
FALLBACK_TOTAL_LOSS = "1200000000"
FALLBACK_LAST_PROFIT = "320000000"
FALLBACK_SLIPPAGE = "50"

STATIC_BALANCES = ["12500000000", "1500000000000000000"]  # 12500 USDC, 1.5 WETH

MOCK_TRANSACTION_COUNT = 10
MOCK_SUCCESS_RATE = 0.8


def is_empty(value: Any) -> bool:
    """None and empty collections count as "no data"."""
    if value is None:
        return True
    if isinstance(value, (list, tuple, dict)):
        return len(value) == 0
    return False


class FallbackChain:
    """
    Ordered list of named async sources.

    ``resolve()`` awaits each source in turn and returns the first result
    that is not empty, or None when every source came back empty.
    """

    def __init__(self, name: str, *sources: Tuple[str, Source]) -> None:
        self.name = name
        self.sources: List[Tuple[str, Source]] = list(sources)

    def add(self, label: str, source: Source) -> "FallbackChain":
        self.sources.append((label, source))
        return self

    async def resolve(self) -> Any:
        for label, source in self.sources:
            value = await source()
            if not is_empty(value):
                if label != self.sources[0][0]:
                    logger.info(
                        f"Serving {self.name} from {label}",
                        extra={"extra_data": {"chain": self.name, "source": label}},
                    )
                return value
        logger.debug(f"No source produced {self.name}")
        return None


def build_chain(name: str, primary: Source, static: Source, settings: Settings) -> FallbackChain:
    """Store source first; the static tier only when mock fallback is enabled."""
    chain = FallbackChain(name, ("store", primary))
    if settings.mock_fallback_enabled:
        chain.add("static default", static)
    return chain


def mock_bot_status(now: Optional[datetime] = None) -> BotStatusView:
    """Fallback bot status: idle, last trade an hour ago."""
    now = now or datetime.now(timezone.utc)
    return BotStatusView(
        status=int(BotStatusCode.IDLE),
        is_frozen=False,
        last_trade_time=int(now.timestamp()) - 3600,
        total_revenue=FALLBACK_TOTAL_REVENUE,
        total_loss=FALLBACK_TOTAL_LOSS,
        last_profit=FALLBACK_LAST_PROFIT,
    )


def mock_diagnostics(settings: Settings) -> DiagnosticsResponse:
    """Fallback diagnostics payload."""
    return DiagnosticsResponse(
        chain=settings.chain_name,
        profit=FALLBACK_LAST_PROFIT,
        slippage=FALLBACK_SLIPPAGE,
        oracle=True,
        error="OK",
    )


def static_balances(settings: Settings) -> BalancesResponse:
    """Fixed USDC/WETH balances."""
    return BalancesResponse(
        tokens=[settings.usdc_address, settings.weth_address],
        balances=list(STATIC_BALANCES),
    )


def _mock_hash(rng: random.Random) -> str:
    return "0x" + "".join(rng.choice("0123456789abcdef") for _ in range(16))


def generate_mock_transactions(
    rng: random.Random,
    count: int = MOCK_TRANSACTION_COUNT,
    now: Optional[datetime] = None,
) -> List[TransactionRead]:
    """
    Generate demo arbitrage transactions, newest first.

    Ids run 1..count and dates step back one hour each from ``now``.
    Successful trades have amounts in [100, 2100), failed ones in
    (-510, -10], both with two decimals.

    Args:
        rng: Random source; seed it for deterministic output
        count: Number of transactions
        now: Reference time, defaults to the current UTC time

    Returns:
        List of TransactionRead
    """
    now = now or datetime.now(timezone.utc)
    transactions = []

    for i in range(count):
        succeeded = rng.random() < MOCK_SUCCESS_RATE
        if succeeded:
            cents = rng.randrange(10_000, 210_000)
            status = TransactionStatus.SUCCESS
        else:
            cents = -rng.randrange(1_000, 51_000)
            status = TransactionStatus.FAILED

        transactions.append(TransactionRead(
            id=i + 1,
            tx_hash=_mock_hash(rng),
            date=now - timedelta(hours=i),
            type="Arbitrage",
            amount=f"{cents / 100:.2f}",
            gas_used=rng.randrange(200_000, 300_000),
            status=status.value,
        ))

    return transactions


__all__ = [
    "FALLBACK_TOTAL_REVENUE",
    "FALLBACK_TOTAL_LOSS",
    "FALLBACK_LAST_PROFIT",
    "STATIC_BALANCES",
    "is_empty",
    "FallbackChain",
    "build_chain",
    "mock_bot_status",
    "mock_diagnostics",
    "static_balances",
    "generate_mock_transactions",
]
