"""
Dashboard configuration.

Values come from the environment (case-insensitive) or a ``.env`` file in
the working directory, e.g. ``DATABASE_URL=postgresql://...`` or
``MOCK_FALLBACK_ENABLED=false``.
"""
from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENVIRONMENTS = ("development", "staging", "production", "test")


class Settings(BaseSettings):
    """Settings for the API server, the record store and the client."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_assignment=True,
        str_strip_whitespace=True,
        extra="ignore",
    )

    app_name: str = "Arbitrage Bot Dashboard"
    version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False

    # HTTP server
    host: str = "127.0.0.1"
    port: int = 8000
    reload: bool = False
    api_prefix: str = "/api"
    cors_origins: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
        "http://127.0.0.1:5173",
    ]

    # Record store
    database_url: str = "sqlite+aiosqlite:///./data/dashboard.db"
    database_echo: bool = False

    log_level: str = "INFO"
    log_retention_days: int = 90
    logs_dir: Path = Field(default_factory=lambda: Path("data/logs"))

    # Demo data served when the store is empty
    chain_name: str = "Sepolia"
    mock_fallback_enabled: bool = True
    mock_seed: Optional[int] = None

    # Sepolia deployment
    contract_address: str = "0x6Ae43d3271ff6888e7Fc43Fd7321a503ff738951"
    usdc_address: str = "0x1c7D4B196Cb0C7B01d743Fbc6116a902379C7238"
    weth_address: str = "0xfFf9976782d46CC05630D1f6eBAb18b2324d6B14"
    vault_address: str = "0x6Ae43d3271ff6888e7Fc43Fd7321a503ff738951"
    default_slippage_bps: int = 50
    default_cooldown_seconds: int = 300

    # Dashboard client
    api_base_url: str = "http://127.0.0.1:8000/api"
    client_timeout_seconds: Optional[float] = None  # None disables the timeout
    status_poll_seconds: int = 60
    balances_poll_seconds: int = 60
    diagnostics_poll_seconds: int = 60
    gas_price_poll_seconds: int = 30
    header_status_poll_seconds: int = 30

    @field_validator("environment")
    @classmethod
    def check_environment(cls, v: str) -> str:
        if v not in ENVIRONMENTS:
            raise ValueError(f"environment must be one of: {', '.join(ENVIRONMENTS)}")
        return v

    @field_validator(
        "status_poll_seconds",
        "balances_poll_seconds",
        "diagnostics_poll_seconds",
        "gas_price_poll_seconds",
        "header_status_poll_seconds",
    )
    @classmethod
    def check_poll_interval(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("polling interval must be a positive number of seconds")
        return v


settings = Settings()


def get_settings() -> Settings:
    """
    Process-wide settings.

    Routes depend on this function, so tests and ``create_app`` can swap
    in other settings through ``dependency_overrides``.
    """
    return settings


def reload_settings() -> Settings:
    """Re-read the environment and replace the process-wide settings."""
    global settings
    settings = Settings()
    return settings


__all__ = ["Settings", "settings", "get_settings", "reload_settings"]
