"""
Database models for the dashboard record store.

Four tables: users, transactions, and the two singleton tables bot_status
and bot_config. Integer-denominated token amounts are stored as text so
values beyond 64-bit range survive the round trip.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum, IntEnum

from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey, Index, Integer, String, Text
)

from .database import Base

# Primary key of the single row in bot_status / bot_config
SINGLETON_ID = 1


def utcnow() -> datetime:
    """Current time as naive UTC, the storage convention for all timestamps."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC."""
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class BotStatusCode(IntEnum):
    """Bot status codes, matching the contract's enum."""
    IDLE = 0
    RUNNING = 1
    PAUSED = 2
    SCANNING = 3
    EXECUTING = 4
    FROZEN = 5

    @property
    def label(self) -> str:
        return self.name.capitalize()


class TransactionStatus(str, Enum):
    """Transaction outcome."""
    SUCCESS = "Success"
    FAILED = "Failed"
    PENDING = "Pending"


class User(Base):
    """Dashboard user. Defined for completeness; no route uses it."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(100), unique=True, nullable=False)
    password = Column(String(255), nullable=False)  # passlib hash
    is_admin = Column(Boolean, default=False, nullable=False)


class Transaction(Base):
    """Executed (or attempted) arbitrage transaction. Immutable once created."""
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tx_hash = Column(String(100), unique=True, nullable=False)
    date = Column(DateTime, default=utcnow, nullable=False)
    type = Column(String(50), nullable=False)
    amount = Column(Text, nullable=False)  # Decimal as text
    gas_used = Column(Integer, nullable=False)
    status = Column(String(20), nullable=False)  # TransactionStatus value
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)

    __table_args__ = (
        Index("ix_transactions_date", "date"),
    )


class BotStatus(Base):
    """
    Current bot state. Holds at most one row, keyed by SINGLETON_ID.
    """
    __tablename__ = "bot_status"

    id = Column(Integer, primary_key=True, default=SINGLETON_ID)
    status = Column(Integer, default=int(BotStatusCode.IDLE), nullable=False)
    is_frozen = Column(Boolean, default=False, nullable=False)
    last_trade_time = Column(DateTime, default=utcnow, nullable=True)
    total_revenue = Column(Text, default="0", nullable=False)
    total_loss = Column(Text, default="0", nullable=False)
    last_profit = Column(Text, default="0", nullable=False)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    __table_args__ = (
        CheckConstraint(f"id = {SINGLETON_ID}", name="check_bot_status_singleton"),
        CheckConstraint("status >= 0 AND status <= 5", name="check_bot_status_code"),
    )

    @property
    def status_enum(self) -> BotStatusCode:
        """Get status as enum."""
        return BotStatusCode(self.status)


class BotConfig(Base):
    """
    Bot configuration. Holds at most one row, keyed by SINGLETON_ID.
    """
    __tablename__ = "bot_config"

    id = Column(Integer, primary_key=True, default=SINGLETON_ID)
    slippage_tolerance = Column(Integer, default=50, nullable=False)  # basis points, 50 = 0.5%
    usdc_address = Column(String(42), nullable=False)
    weth_address = Column(String(42), nullable=False)
    contract_address = Column(String(42), nullable=False)
    vault_address = Column(String(42), nullable=False)
    cooldown_period = Column(Integer, default=300, nullable=False)  # seconds

    __table_args__ = (
        CheckConstraint(f"id = {SINGLETON_ID}", name="check_bot_config_singleton"),
    )


__all__ = [
    "SINGLETON_ID",
    "utcnow",
    "to_naive_utc",
    "BotStatusCode",
    "TransactionStatus",
    "User",
    "Transaction",
    "BotStatus",
    "BotConfig",
]
