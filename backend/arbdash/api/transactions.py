"""Transaction history endpoints."""
from __future__ import annotations

import random
from typing import List

from fastapi import APIRouter, Depends, Query, status

from ..core.logging import get_logger
from ..core.settings import Settings, get_settings
from ..storage.models import to_naive_utc
from ..storage.repositories import (
    DEFAULT_TRANSACTION_LIMIT,
    TransactionRepository,
    get_transaction_repository,
)
from .fallbacks import build_chain, generate_mock_transactions
from .schemas import ErrorResponse, TransactionCreate, TransactionRead

logger = get_logger(__name__)
router = APIRouter(prefix="/transactions", tags=["transactions"])


@router.get(
    "",
    response_model=List[TransactionRead],
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def list_transactions(
    limit: int = Query(DEFAULT_TRANSACTION_LIMIT, ge=1, le=1000, description="Maximum rows"),
    repo: TransactionRepository = Depends(get_transaction_repository),
    settings: Settings = Depends(get_settings),
) -> List[TransactionRead]:
    """
    Most recent transactions, newest first.

    An empty store yields generated demo transactions, which are not
    persisted.
    """

    async def from_store() -> List[TransactionRead]:
        return [TransactionRead.model_validate(tx) for tx in await repo.list(limit=limit)]

    async def from_static() -> List[TransactionRead]:
        return generate_mock_transactions(random.Random(settings.mock_seed))

    transactions = await build_chain("transactions", from_store, from_static, settings).resolve()
    return transactions or []


@router.post(
    "",
    response_model=TransactionRead,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_transaction(
    payload: TransactionCreate,
    repo: TransactionRepository = Depends(get_transaction_repository),
) -> TransactionRead:
    """Record a transaction. A duplicate ``txHash`` is rejected with 500."""
    values = payload.model_dump(exclude_none=True)
    values["status"] = payload.status.value
    if "date" in values:
        values["date"] = to_naive_utc(values["date"])

    transaction = await repo.create(values)
    return TransactionRead.model_validate(transaction)
