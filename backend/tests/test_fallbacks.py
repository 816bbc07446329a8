"""
Tests for the fallback chain and the static payload factories.
"""
from __future__ import annotations

import random
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from arbdash.api.fallbacks import (
    FallbackChain,
    build_chain,
    generate_mock_transactions,
    is_empty,
    mock_bot_status,
    mock_diagnostics,
    static_balances,
)
from arbdash.core.exceptions import StoreError

from conftest import make_settings


def _source(value, calls=None, name=None):
    async def source():
        if calls is not None:
            calls.append(name)
        return value
    return source


class TestFallbackChain:
    """Test suite for FallbackChain."""

    @pytest.mark.asyncio
    async def test_primary_wins(self):
        calls = []
        chain = FallbackChain("x", ("store", _source("stored", calls, "store")),
                              ("static", _source("static", calls, "static")))

        assert await chain.resolve() == "stored"
        assert calls == ["store"]

    @pytest.mark.asyncio
    async def test_empty_primary_falls_through(self):
        for empty in (None, [], {}):
            chain = FallbackChain("x", ("store", _source(empty)), ("static", _source("static")))
            assert await chain.resolve() == "static"

    @pytest.mark.asyncio
    async def test_all_empty(self):
        chain = FallbackChain("x", ("store", _source(None)), ("static", _source([])))
        assert await chain.resolve() is None

    @pytest.mark.asyncio
    async def test_primary_error_propagates(self):
        async def broken():
            raise StoreError("Failed to fetch bot status")

        chain = FallbackChain("x", ("store", broken), ("static", _source("static")))

        with pytest.raises(StoreError):
            await chain.resolve()

    @pytest.mark.asyncio
    async def test_build_chain_respects_setting(self):
        enabled = build_chain("x", _source(None), _source("static"), make_settings())
        disabled = build_chain("x", _source(None), _source("static"), make_settings(mock_fallback_enabled=False))

        assert await enabled.resolve() == "static"
        assert await disabled.resolve() is None
        assert [label for label, _ in disabled.sources] == ["store"]

    def test_is_empty(self):
        assert is_empty(None)
        assert is_empty([])
        assert not is_empty(0)
        assert not is_empty(False)
        assert not is_empty([1])


class TestStaticPayloads:
    """Test suite for the static payload factories."""

    def test_mock_bot_status(self):
        now = datetime(2024, 1, 1, tzinfo=timezone.utc)

        status = mock_bot_status(now)

        assert status.status == 0
        assert status.is_frozen is False
        assert status.last_trade_time == int(now.timestamp()) - 3600
        assert status.total_revenue == "5000000000"
        assert status.total_loss == "1200000000"
        assert status.last_profit == "320000000"
        assert status.status_name == "Idle"

    def test_mock_diagnostics(self):
        diagnostics = mock_diagnostics(make_settings(chain_name="Sepolia"))

        assert diagnostics.model_dump() == {
            "chain": "Sepolia",
            "profit": "320000000",
            "slippage": "50",
            "oracle": True,
            "error": "OK",
        }

    def test_static_balances(self):
        balances = static_balances(make_settings())

        assert len(balances.tokens) == len(balances.balances) == 2
        assert balances.balances == ["12500000000", "1500000000000000000"]


class TestMockTransactions:
    """Test suite for generated transactions."""

    def test_shape(self):
        now = datetime(2024, 6, 1, 12, tzinfo=timezone.utc)

        transactions = generate_mock_transactions(random.Random(7), now=now)

        assert len(transactions) == 10
        assert [tx.id for tx in transactions] == list(range(1, 11))
        assert transactions[0].date == now
        assert transactions[-1].date == now - timedelta(hours=9)
        assert len({tx.tx_hash for tx in transactions}) == 10

    def test_amount_ranges(self):
        transactions = generate_mock_transactions(random.Random(3), count=500)

        for tx in transactions:
            amount = Decimal(tx.amount)
            assert amount == amount.quantize(Decimal("0.01"))
            if tx.status == "Success":
                assert Decimal("100") <= amount < Decimal("2100")
            else:
                assert tx.status == "Failed"
                assert Decimal("-510") < amount <= Decimal("-10")
            assert 200000 <= tx.gas_used < 300000

        successes = sum(tx.status == "Success" for tx in transactions)
        assert 0.7 < successes / len(transactions) < 0.9

    def test_seeded_generation_is_deterministic(self):
        now = datetime(2024, 6, 1, tzinfo=timezone.utc)

        first = generate_mock_transactions(random.Random(99), now=now)
        second = generate_mock_transactions(random.Random(99), now=now)

        assert first == second
