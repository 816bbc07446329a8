"""
Simulated profit history for the performance chart.

There is no stored history; each call generates a trending random walk
ending at ``now``, with one point per step of the selected range.
"""
from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

TIME_RANGES: Dict[str, str] = {
    "1D": "1 Day",
    "1W": "1 Week",
    "1M": "1 Month",
    "ALL": "All Time",
}

# range -> (points, step between points)
RANGE_STEPS: Dict[str, Tuple[int, timedelta]] = {
    "1D": (24, timedelta(hours=1)),
    "1W": (7, timedelta(days=1)),
    "1M": (30, timedelta(days=1)),
    "ALL": (12, timedelta(days=30)),
}

START_PROFIT_MIN = 10_000
START_PROFIT_SPREAD = 5_000
CHANGE_MIN = -0.05
CHANGE_SPREAD = 0.20  # per-step change in [-5%, +15%)

CENTS = Decimal("0.01")


@dataclass(frozen=True)
class PerformancePoint:
    label: str
    profit: Decimal
    timestamp: datetime


def _label(range_id: str, moment: datetime) -> str:
    if range_id == "1D":
        return moment.strftime("%H:%M")
    if range_id == "ALL":
        return moment.strftime("%b %y")
    return f"{moment:%b} {moment.day}"


def performance_series(
    range_id: str,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
) -> List[PerformancePoint]:
    """
    Profit series for a chart time range, oldest point first.

    Args:
        range_id: One of ``TIME_RANGES`` (1D, 1W, 1M, ALL)
        rng: Random source; seed it for deterministic output
        now: Time of the last point, defaults to the current UTC time

    Returns:
        Points with display labels and profits rounded to cents

    Raises:
        ValueError: For an unknown range
    """
    if range_id not in RANGE_STEPS:
        raise ValueError(f"Unknown time range: {range_id}")

    rng = rng or random.Random()
    now = now or datetime.now(timezone.utc)
    points, step = RANGE_STEPS[range_id]

    profit = START_PROFIT_MIN + rng.random() * START_PROFIT_SPREAD
    series = []
    for i in range(points - 1, -1, -1):
        moment = now - step * i
        profit *= 1 + CHANGE_MIN + rng.random() * CHANGE_SPREAD
        series.append(PerformancePoint(
            label=_label(range_id, moment),
            profit=Decimal(str(profit)).quantize(CENTS),
            timestamp=moment,
        ))
    return series


__all__ = ["TIME_RANGES", "PerformancePoint", "performance_series"]
