"""
Demo data seeding.

Creates the tables and fills an empty store with a bot status row, a bot
configuration row, a demo user and a batch of generated transactions.
Each part is skipped when data of that kind already exists.
"""
from __future__ import annotations

import logging
import random
from datetime import timedelta
from typing import Dict, Optional

from sqlalchemy import func, select

from ..api.fallbacks import (
    FALLBACK_LAST_PROFIT,
    FALLBACK_TOTAL_LOSS,
    FALLBACK_TOTAL_REVENUE,
    generate_mock_transactions,
)
from ..core.settings import Settings, get_settings
from .database import DatabaseManager
from .models import Transaction, to_naive_utc, utcnow
from .repositories import (
    BotConfigRepository,
    BotStatusRepository,
    TransactionRepository,
    UserRepository,
)

logger = logging.getLogger(__name__)

DEMO_USERNAME = "demo"
DEMO_PASSWORD = "demo"


async def seed_demo_data(
    manager: DatabaseManager,
    settings: Optional[Settings] = None,
    transaction_count: int = 10,
) -> Dict[str, int]:
    """
    Seed the store with demo data.

    Args:
        manager: Initialized database manager
        settings: Settings for addresses and the mock seed
        transaction_count: Number of transactions to generate

    Returns:
        Number of rows created per table
    """
    settings = settings or get_settings()
    await manager.create_tables()

    created = {"users": 0, "transactions": 0, "bot_status": 0, "bot_config": 0}

    async with manager.get_session() as session:
        users = UserRepository(session)
        if await users.get_by_username(DEMO_USERNAME) is None:
            await users.create_user(DEMO_USERNAME, DEMO_PASSWORD, is_admin=True)
            created["users"] = 1

        status_repo = BotStatusRepository(session)
        if await status_repo.get() is None:
            await status_repo.upsert({
                "status": 0,
                "is_frozen": False,
                "last_trade_time": utcnow() - timedelta(hours=1),
                "total_revenue": FALLBACK_TOTAL_REVENUE,
                "total_loss": FALLBACK_TOTAL_LOSS,
                "last_profit": FALLBACK_LAST_PROFIT,
            })
            created["bot_status"] = 1

        config_repo = BotConfigRepository(session)
        if await config_repo.get() is None:
            await config_repo.upsert({
                "slippage_tolerance": settings.default_slippage_bps,
                "usdc_address": settings.usdc_address,
                "weth_address": settings.weth_address,
                "contract_address": settings.contract_address,
                "vault_address": settings.vault_address,
                "cooldown_period": settings.default_cooldown_seconds,
            })
            created["bot_config"] = 1

        existing = await session.scalar(select(func.count()).select_from(Transaction))
        if not existing:
            transactions = TransactionRepository(session)
            rng = random.Random(settings.mock_seed)
            for mock in generate_mock_transactions(rng, count=transaction_count):
                await transactions.create({
                    "tx_hash": mock.tx_hash,
                    "date": to_naive_utc(mock.date),
                    "type": mock.type,
                    "amount": mock.amount,
                    "gas_used": mock.gas_used,
                    "status": mock.status,
                })
            created["transactions"] = transaction_count
        else:
            logger.info(f"Found {existing} existing transactions, skipping")

    logger.info("Demo data seeded", extra={"extra_data": created})
    return created


__all__ = ["seed_demo_data", "DEMO_USERNAME"]
