"""
Simulated network statistics.

The dashboard does not talk to a chain; gas price is a random value in
the 25-35 gwei band.
"""
from __future__ import annotations

import random
from decimal import Decimal
from typing import Optional

GAS_TIERS = {
    "LOW": 20,     # gwei
    "MEDIUM": 35,
    "HIGH": 50,
}

DEFAULT_GAS_ESTIMATE = 250_000  # gas units for one arbitrage

GAS_PRICE_FLOOR_GWEI = 25
GAS_PRICE_SPREAD_GWEI = 10

GWEI_PER_ETH = Decimal(10) ** 9


def simulated_gas_price(rng: Optional[random.Random] = None) -> float:
    """Random gas price in gwei, in [25, 35)."""
    rng = rng or random
    return GAS_PRICE_FLOOR_GWEI + rng.random() * GAS_PRICE_SPREAD_GWEI


async def fetch_gas_price(rng: Optional[random.Random] = None) -> float:
    """Async form of ``simulated_gas_price`` for the polling scheduler."""
    return simulated_gas_price(rng)


def gas_tier(gas_price_gwei: float) -> str:
    """Tier label for a gas price: LOW up to 20 gwei, MEDIUM up to 35, else HIGH."""
    if gas_price_gwei <= GAS_TIERS["LOW"]:
        return "LOW"
    if gas_price_gwei <= GAS_TIERS["MEDIUM"]:
        return "MEDIUM"
    return "HIGH"


def estimate_gas_cost(gas_price_gwei: float, gas_units: int = DEFAULT_GAS_ESTIMATE) -> Decimal:
    """Cost in ETH of ``gas_units`` at ``gas_price_gwei``."""
    return Decimal(str(gas_price_gwei)) * gas_units / GWEI_PER_ETH


__all__ = [
    "GAS_TIERS",
    "DEFAULT_GAS_ESTIMATE",
    "simulated_gas_price",
    "fetch_gas_price",
    "gas_tier",
    "estimate_gas_cost",
]
