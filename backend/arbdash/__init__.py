"""Arbitrage Bot Dashboard backend and client data-fetch layer."""

__version__ = "1.0.0"
