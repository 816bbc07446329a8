"""
Module entry point.

    python -m arbdash serve [--host HOST] [--port PORT] [--reload]
    python -m arbdash seed [--transactions N]
"""
from __future__ import annotations

import argparse
import asyncio
import sys
from typing import List, Optional

import uvicorn

from .core.logging import cleanup_logging, setup_logging
from .core.settings import get_settings


def _serve(args: argparse.Namespace) -> int:
    settings = get_settings()
    uvicorn.run(
        "arbdash.main:app",
        host=args.host or settings.host,
        port=args.port or settings.port,
        reload=args.reload or settings.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


async def _seed(transaction_count: int) -> dict:
    from .storage.database import db_manager
    from .storage.seed import seed_demo_data

    await db_manager.initialize()
    try:
        return await seed_demo_data(db_manager, transaction_count=transaction_count)
    finally:
        await db_manager.close()


def _run_seed(args: argparse.Namespace) -> int:
    settings = get_settings()
    setup_logging(
        log_level=settings.log_level,
        debug=True,
        log_dir=settings.logs_dir,
        retention_days=settings.log_retention_days,
    )
    try:
        created = asyncio.run(_seed(args.transactions))
    finally:
        cleanup_logging()

    for table, count in created.items():
        print(f"{table}: {count} created")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="arbdash", description="Arbitrage Bot Dashboard backend")
    subcommands = parser.add_subparsers(dest="command", required=True)

    serve = subcommands.add_parser("serve", help="Run the API server")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(handler=_serve)

    seed = subcommands.add_parser("seed", help="Create tables and insert demo data")
    seed.add_argument("--transactions", type=int, default=10, help="Transactions to generate")
    seed.set_defaults(handler=_run_seed)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    return args.handler(args)


if __name__ == "__main__":
    sys.exit(main())
