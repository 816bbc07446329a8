"""
Tests for DashboardClient.

Most tests use httpx.MockTransport; the end-to-end class drives the real
app through ASGITransport.
"""
from __future__ import annotations

import json
from decimal import Decimal

import httpx
import pytest

from arbdash.client.api_client import DashboardClient
from arbdash.main import create_app
from arbdash.storage.database import get_db_session

from conftest import make_settings

STATUS_JSON = {
    "id": 1,
    "status": 1,
    "isFrozen": False,
    "lastTradeTime": 1700000000,
    "totalRevenue": "340282366920938463463374607431768211456",
    "totalLoss": "1200000000",
    "lastProfit": "320000000",
    "updatedAt": "2024-06-01T12:00:00Z",
}


def _client(handler) -> DashboardClient:
    return DashboardClient(
        base_url="http://test/api",
        transport=httpx.MockTransport(handler),
        settings=make_settings(),
    )


class TestAccessors:
    """Test suite for the typed accessors."""

    @pytest.mark.asyncio
    async def test_bot_status_widened(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request.url.path)
            return httpx.Response(200, json=STATUS_JSON)

        async with _client(handler) as client:
            status = await client.get_bot_status()

        assert seen == ["/api/bot/status"]
        assert status.status == 1
        assert status.status_name == "Running"
        assert status.total_revenue == 2 ** 128
        assert isinstance(status.total_loss, int)
        assert status.net_profit == 2 ** 128 - 1200000000
        assert status.updated_at.year == 2024

    @pytest.mark.asyncio
    async def test_balances_and_diagnostics(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/balances"):
                return httpx.Response(200, json={
                    "tokens": ["0xUSDC", "0xWETH"],
                    "balances": ["12500000000", "1500000000000000000"],
                })
            return httpx.Response(200, json={
                "chain": "Sepolia", "profit": "320000000", "slippage": "50", "oracle": True, "error": "OK",
            })

        async with _client(handler) as client:
            balances = await client.get_balances()
            diagnostics = await client.get_diagnostics()

        assert balances.balances == [12500000000, 1500000000000000000]
        assert balances.balance_of("0xweth") == 1500000000000000000
        assert balances.balance_of("0xother") is None
        assert diagnostics.profit == 320000000
        assert diagnostics.slippage == 50

    @pytest.mark.asyncio
    async def test_transactions_limit_param(self):
        def handler(request: httpx.Request) -> httpx.Response:
            assert request.url.params["limit"] == "3"
            return httpx.Response(200, json=[{
                "id": 1, "txHash": "0xabc", "date": "2024-06-01T12:00:00Z", "type": "Arbitrage",
                "amount": "-45.50", "gasUsed": 210000, "status": "Failed", "userId": None,
            }])

        async with _client(handler) as client:
            transactions = await client.get_transactions(limit=3)

        assert transactions[0].amount == Decimal("-45.50")
        assert transactions[0].gas_used == 210000

    @pytest.mark.asyncio
    async def test_http_error_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(500, json={"error": "Failed to fetch bot status"})

        async with _client(handler) as client:
            assert await client.get_bot_status() is None
            assert await client.get_bot_config() is None

    @pytest.mark.asyncio
    async def test_transport_error_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async with _client(handler) as client:
            assert await client.get_balances() is None
            assert await client.health() is False

    @pytest.mark.asyncio
    async def test_malformed_payload_returns_none(self):
        def handler(request: httpx.Request) -> httpx.Response:
            if request.url.path.endswith("/diagnostics"):
                return httpx.Response(200, content=b"not json")
            return httpx.Response(200, json={"status": 1, "totalRevenue": "12.5"})

        async with _client(handler) as client:
            assert await client.get_diagnostics() is None
            assert await client.get_bot_status() is None

    @pytest.mark.asyncio
    async def test_control_actions_post_status(self):
        bodies = []

        def handler(request: httpx.Request) -> httpx.Response:
            assert request.method == "POST"
            body = json.loads(request.content)
            bodies.append(body)
            return httpx.Response(200, json={**STATUS_JSON, "status": body["status"]})

        async with _client(handler) as client:
            started = await client.start_bot()
            await client.pause_bot()
            await client.resume_bot()
            frozen = await client.freeze_bot()

        assert [b["status"] for b in bodies] == [1, 2, 1, 5]
        assert bodies[0]["isFrozen"] is False
        assert bodies[3]["isFrozen"] is True
        assert started.status == 1
        assert frozen.status_name == "Frozen"


class TestAgainstApp:
    """Client talking to the real application."""

    @pytest.mark.asyncio
    async def test_round_trip(self, db):
        settings = make_settings()
        app = create_app(settings)

        async def override_session():
            async with db.get_session() as session:
                yield session

        app.dependency_overrides[get_db_session] = override_session

        client = DashboardClient(
            base_url="http://test/api",
            transport=httpx.ASGITransport(app=app),
            settings=settings,
        )
        async with client:
            assert await client.health() is True
            assert await client.get_bot_config() is None

            fallback = await client.get_bot_status()
            assert fallback.total_revenue == 5000000000

            frozen = await client.freeze_bot()
            assert frozen.is_frozen is True

            status = await client.get_bot_status()
            assert status.status == 5
            assert status.updated_at is not None

            transactions = await client.get_transactions()
            assert len(transactions) == 10
