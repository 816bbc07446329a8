"""
JSON-lines logging for the dashboard backend.

Records are written off the event loop: the root logger only enqueues,
and a QueueListener thread formats and writes them to ``app.jsonl`` (all
levels) and ``errors.jsonl`` (ERROR and above), both rotated at UTC
midnight. Context travels in ``extra={"extra_data": {...}}``.
"""
from __future__ import annotations

import json
import logging
import logging.handlers
import queue
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Union

REDACTED = "[REDACTED]"

NOISY_LOGGERS = ("httpx", "httpcore", "apscheduler", "aiosqlite")


class StructuredFormatter(logging.Formatter):
    """
    Render a record as a single JSON object.

    Keys of ``extra_data`` that look like credentials are masked.
    """

    context_fields = ("trace_id", "request_id", "query", "tx_hash", "entity")
    sensitive_patterns = ("key", "secret", "token", "password", "passphrase", "private", "mnemonic", "seed")

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc)
            .isoformat()
            .replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
        }

        for name in self.context_fields:
            context = getattr(record, name, None)
            if context is not None:
                payload[name] = context

        extra_data = getattr(record, "extra_data", None)
        if isinstance(extra_data, dict):
            for key, value in extra_data.items():
                payload[key] = REDACTED if self.is_sensitive(key) else value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=str, separators=(",", ":"))

    def is_sensitive(self, key: str) -> bool:
        lowered = key.lower()
        return any(pattern in lowered for pattern in self.sensitive_patterns)


_listener: Optional[logging.handlers.QueueListener] = None


def _daily_file(path: Path, retention_days: int, level: int) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.TimedRotatingFileHandler(
        filename=str(path),
        when="midnight",
        backupCount=retention_days,
        encoding="utf-8",
        utc=True,
    )
    handler.setLevel(level)
    handler.setFormatter(StructuredFormatter())
    return handler


def setup_logging(
    log_level: str = "INFO",
    debug: bool = False,
    log_dir: Union[str, Path] = "data/logs",
    retention_days: int = 90,
) -> None:
    """
    Configure the root logger. Safe to call again; the previous listener
    is stopped first.

    Args:
        log_level: Root level name (DEBUG, INFO, WARNING, ERROR)
        debug: Mirror INFO and above to stderr in plain text
        log_dir: Directory receiving app.jsonl and errors.jsonl
        retention_days: Rotated files kept per log
    """
    global _listener

    cleanup_logging()

    directory = Path(log_dir)
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    records: queue.Queue = queue.Queue(-1)
    root.addHandler(logging.handlers.QueueHandler(records))
    _listener = logging.handlers.QueueListener(
        records,
        _daily_file(directory / "app.jsonl", retention_days, logging.DEBUG),
        _daily_file(directory / "errors.jsonl", retention_days, logging.ERROR),
        respect_handler_level=True,
    )
    _listener.start()

    if debug:
        stderr = logging.StreamHandler()
        stderr.setLevel(logging.INFO)
        stderr.setFormatter(logging.Formatter("%(asctime)s %(levelname)-7s %(name)s: %(message)s"))
        root.addHandler(stderr)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured",
        extra={"extra_data": {"log_level": log_level, "debug": debug, "log_dir": str(directory)}},
    )


def cleanup_logging() -> None:
    """Stop the queue listener, flushing queued records to disk."""
    global _listener

    if _listener is not None:
        _listener.stop()
        _listener = None


def get_logger(name: str) -> logging.Logger:
    """Module logger; call as ``get_logger(__name__)``."""
    return logging.getLogger(name)


__all__ = ["StructuredFormatter", "setup_logging", "cleanup_logging", "get_logger"]
