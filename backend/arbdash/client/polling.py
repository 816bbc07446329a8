"""
Polling scheduler for dashboard queries.

Each query key has a fetch coroutine, an APScheduler interval job and at
most one in-flight ``asyncio.Task``. The scheduler keeps the last good
snapshot per key; a failed fetch (an exception, or None from a client
accessor) leaves it untouched.
"""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from ..core.settings import Settings, get_settings
from .api_client import DashboardClient
from .network import fetch_gas_price

logger = logging.getLogger(__name__)

Fetch = Callable[[], Awaitable[Any]]

STATUS_KEY = "bot-status"
BALANCES_KEY = "balances"
DIAGNOSTICS_KEY = "diagnostics"
GAS_PRICE_KEY = "gas-price"
HEADER_STATUS_KEY = "header-status"

REFETCH_ALL_KEYS = (STATUS_KEY, BALANCES_KEY, DIAGNOSTICS_KEY)


@dataclass
class QueryState:
    """Cached result and bookkeeping for one query key."""
    key: str
    fetch: Fetch
    interval_seconds: float
    data: Any = None
    updated_at: Optional[datetime] = None
    error: Optional[BaseException] = None
    fetch_count: int = 0
    task: Optional[asyncio.Task] = field(default=None, repr=False)


class QueryScheduler:
    """
    Keeps dashboard queries fresh on fixed intervals.

    The scheduler owns the timers and the in-flight tasks; ``stop()``
    releases both. A stopped scheduler can be started again: ``stop()``
    swaps in a fresh APScheduler instance carrying the registered jobs.
    """

    def __init__(self, scheduler: Optional[AsyncIOScheduler] = None) -> None:
        self.scheduler = scheduler or self._new_scheduler()
        self._queries: Dict[str, QueryState] = {}
        self._running = False

    @staticmethod
    def _new_scheduler() -> AsyncIOScheduler:
        return AsyncIOScheduler(
            timezone="UTC",
            job_defaults={
                "coalesce": True,
                "max_instances": 1,
                "misfire_grace_time": 30,
            },
        )

    def _add_job(self, query: QueryState) -> None:
        self.scheduler.add_job(
            self._poll,
            "interval",
            seconds=query.interval_seconds,
            id=query.key,
            name=query.key,
            args=[query.key],
            replace_existing=True,
        )

    @property
    def running(self) -> bool:
        return self._running

    @property
    def keys(self) -> List[str]:
        return list(self._queries)

    def register(self, key: str, fetch: Fetch, interval_seconds: float) -> None:
        """
        Register a query and its polling interval.

        Args:
            key: Query identity
            fetch: Coroutine function producing the snapshot
            interval_seconds: Seconds between polls

        Raises:
            ValueError: If the key is taken or the interval is not positive
        """
        if key in self._queries:
            raise ValueError(f"Query already registered: {key}")
        if interval_seconds <= 0:
            raise ValueError("Polling interval must be positive")

        query = QueryState(key=key, fetch=fetch, interval_seconds=interval_seconds)
        self._queries[key] = query
        self._add_job(query)
        logger.debug(f"Registered query {key} every {interval_seconds}s")

    async def start(self, fetch_now: bool = True) -> None:
        """
        Start polling.

        Args:
            fetch_now: Fetch every query immediately instead of waiting
                for the first interval
        """
        if self._running:
            return
        self.scheduler.start()
        self._running = True
        logger.info(f"Query scheduler started with {len(self._queries)} queries")

        if fetch_now:
            for key in self._queries:
                self.invalidate(key)

    async def stop(self) -> None:
        """Shut down the timers and cancel every in-flight fetch."""
        if self._running:
            # AsyncIOScheduler finishes shutting down on a later loop
            # iteration, so restarting needs a new instance.
            self.scheduler.shutdown(wait=False)
            self.scheduler = self._new_scheduler()
            for query in self._queries.values():
                self._add_job(query)
            self._running = False

        tasks = [q.task for q in self._queries.values() if q.task is not None and not q.task.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Query scheduler stopped")

    def invalidate(self, key: str) -> asyncio.Task:
        """
        Refetch ``key`` now, cancelling a fetch already in flight.

        Returns:
            The task running the new fetch
        """
        query = self._query(key)
        if query.task is not None and not query.task.done():
            query.task.cancel()
            logger.debug(f"Cancelled in-flight fetch for {key}")

        query.task = asyncio.get_running_loop().create_task(self._run(query), name=f"query:{key}")
        return query.task

    def refetch_all(self, keys: Iterable[str] = REFETCH_ALL_KEYS) -> List[asyncio.Task]:
        """Invalidate several keys at once. The fetches run independently."""
        return [self.invalidate(key) for key in keys if key in self._queries]

    def get(self, key: str) -> Any:
        """Last good snapshot for ``key``, or None before the first success."""
        return self._query(key).data

    def state(self, key: str) -> QueryState:
        return self._query(key)

    def is_loading(self, key: str) -> bool:
        task = self._query(key).task
        return task is not None and not task.done()

    def _query(self, key: str) -> QueryState:
        try:
            return self._queries[key]
        except KeyError:
            raise KeyError(f"Unknown query: {key}") from None

    async def _poll(self, key: str) -> None:
        self.invalidate(key)

    async def _run(self, query: QueryState) -> None:
        query.fetch_count += 1
        try:
            data = await query.fetch()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            query.error = e
            logger.warning(
                f"Fetch for {query.key} failed: {e}",
                extra={"extra_data": {"query": query.key, "error_type": type(e).__name__}},
            )
            return

        if data is None:
            logger.debug(f"Fetch for {query.key} returned no data, keeping previous snapshot")
            return

        query.data = data
        query.error = None
        query.updated_at = datetime.now(timezone.utc)


def build_dashboard_queries(
    client: DashboardClient,
    scheduler: Optional[QueryScheduler] = None,
    settings: Optional[Settings] = None,
) -> QueryScheduler:
    """
    Register the dashboard's queries at their default cadence.

    Status, balances and diagnostics poll on the slow interval; gas price
    and the header's status poll on the fast one.
    """
    settings = settings or get_settings()
    scheduler = scheduler or QueryScheduler()

    scheduler.register(STATUS_KEY, client.get_bot_status, settings.status_poll_seconds)
    scheduler.register(BALANCES_KEY, client.get_balances, settings.balances_poll_seconds)
    scheduler.register(DIAGNOSTICS_KEY, client.get_diagnostics, settings.diagnostics_poll_seconds)
    scheduler.register(GAS_PRICE_KEY, fetch_gas_price, settings.gas_price_poll_seconds)
    scheduler.register(HEADER_STATUS_KEY, client.get_bot_status, settings.header_status_poll_seconds)

    return scheduler


__all__ = [
    "STATUS_KEY",
    "BALANCES_KEY",
    "DIAGNOSTICS_KEY",
    "GAS_PRICE_KEY",
    "HEADER_STATUS_KEY",
    "REFETCH_ALL_KEYS",
    "QueryState",
    "QueryScheduler",
    "build_dashboard_queries",
]
