"""
Tests for the client display helpers and simulated network stats.
"""
from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from arbdash.client.formatting import (
    bot_status_name,
    format_token,
    format_units,
    shorten_address,
    time_ago,
)
from arbdash.client.network import (
    DEFAULT_GAS_ESTIMATE,
    GAS_TIERS,
    estimate_gas_cost,
    fetch_gas_price,
    gas_tier,
    simulated_gas_price,
)
from arbdash.client.performance import TIME_RANGES, performance_series

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class TestFormatting:

    def test_shorten_address(self):
        address = "0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238"

        assert shorten_address(address) == "0x1c7D...7238"
        assert shorten_address(address, chars=6) == "0x1c7D4B...9C7238"
        assert shorten_address(None) == ""
        assert shorten_address("") == ""

    def test_format_units(self):
        assert format_units(1500000000000000000) == "1.500000"
        assert format_units("12500000000", decimals=6, places=2) == "12500.00"
        assert format_units(0) == "0.000000"

    def test_format_token(self):
        assert format_token("12500000000", "USDC") == "12,500.00 USDC"

    @pytest.mark.parametrize("delta,expected", [
        (timedelta(seconds=0), "just now"),
        (timedelta(seconds=1), "1 second ago"),
        (timedelta(minutes=5), "5 minutes ago"),
        (timedelta(hours=1), "1 hour ago"),
        (timedelta(days=3), "3 days ago"),
        (timedelta(days=400), "1 year ago"),
    ])
    def test_time_ago(self, delta, expected):
        assert time_ago(NOW - delta, now=NOW) == expected

    def test_time_ago_unix_seconds(self):
        assert time_ago(int(NOW.timestamp()) - 7200, now=NOW) == "2 hours ago"

    def test_bot_status_name(self):
        names = [bot_status_name(code) for code in range(6)]

        assert names == ["Idle", "Running", "Paused", "Scanning", "Executing", "Frozen"]
        assert bot_status_name(42) == "Unknown"


class TestNetwork:

    def test_gas_price_band(self):
        rng = random.Random(5)
        prices = [simulated_gas_price(rng) for _ in range(200)]

        assert all(25 <= price < 35 for price in prices)

    @pytest.mark.asyncio
    async def test_fetch_gas_price(self):
        assert 25 <= await fetch_gas_price() < 35

    def test_gas_tier(self):
        assert gas_tier(15) == "LOW"
        assert gas_tier(GAS_TIERS["LOW"]) == "LOW"
        assert gas_tier(30) == "MEDIUM"
        assert gas_tier(60) == "HIGH"

    def test_estimate_gas_cost(self):
        assert DEFAULT_GAS_ESTIMATE == 250000
        assert estimate_gas_cost(20) == Decimal("0.005")


class TestPerformanceSeries:

    @pytest.mark.parametrize("range_id, points, step", [
        ("1D", 24, timedelta(hours=1)),
        ("1W", 7, timedelta(days=1)),
        ("1M", 30, timedelta(days=1)),
        ("ALL", 12, timedelta(days=30)),
    ])
    def test_points_and_spacing(self, range_id, points, step):
        series = performance_series(range_id, random.Random(7), now=NOW)

        assert len(series) == points
        assert series[-1].timestamp == NOW
        assert all(b.timestamp - a.timestamp == step for a, b in zip(series, series[1:]))

    def test_labels(self):
        assert performance_series("1D", random.Random(1), now=NOW)[-1].label == "12:00"
        assert performance_series("1W", random.Random(1), now=NOW)[-1].label == "Jun 1"
        assert performance_series("ALL", random.Random(1), now=NOW)[-1].label == "Jun 24"

    def test_profit_walk_bounds(self):
        series = performance_series("1M", random.Random(3), now=NOW)

        assert 10000 * Decimal("0.95") <= series[0].profit <= 15000 * Decimal("1.15")
        for previous, current in zip(series, series[1:]):
            ratio = current.profit / previous.profit
            assert Decimal("0.949") <= ratio <= Decimal("1.151")
        assert all(p.profit == p.profit.quantize(Decimal("0.01")) for p in series)

    def test_seeded_series_is_deterministic(self):
        first = performance_series("1W", random.Random(42), now=NOW)
        second = performance_series("1W", random.Random(42), now=NOW)
        assert first == second

    def test_unknown_range(self):
        assert set(TIME_RANGES) == {"1D", "1W", "1M", "ALL"}
        with pytest.raises(ValueError):
            performance_series("1Y")
