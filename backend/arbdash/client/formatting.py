"""Display helpers for addresses, token amounts, times and bot status."""
from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Union

from ..storage.models import BotStatusCode

_TIME_UNITS = (
    ("year", 31_536_000),
    ("month", 2_592_000),
    ("week", 604_800),
    ("day", 86_400),
    ("hour", 3_600),
    ("minute", 60),
    ("second", 1),
)


def shorten_address(address: Optional[str], chars: int = 4) -> str:
    """``0x1234...abcd`` form of an address; empty string for no address."""
    if not address:
        return ""
    return f"{address[:chars + 2]}...{address[-chars:]}"


def format_units(value: Union[int, str], decimals: int = 18, places: int = 6) -> str:
    """
    Convert an integer smallest-unit amount to a fixed-point string.

    >>> format_units(1500000000000000000)
    '1.500000'
    >>> format_units("12500000000", decimals=6, places=2)
    '12500.00'
    """
    amount = Decimal(int(value)).scaleb(-decimals)
    return f"{amount:.{places}f}"


def format_token(value: Union[int, str], symbol: str, decimals: int = 6, places: int = 2) -> str:
    """Token amount with thousands separators and symbol, e.g. ``12,500.00 USDC``."""
    amount = Decimal(int(value)).scaleb(-decimals)
    return f"{amount:,.{places}f} {symbol}"


def time_ago(timestamp: Union[int, float, datetime], now: Optional[datetime] = None) -> str:
    """
    Relative time such as ``"3 hours ago"``.

    Args:
        timestamp: Unix seconds or a datetime (naive values are UTC)
        now: Reference time, defaults to the current UTC time
    """
    if isinstance(timestamp, datetime):
        moment = timestamp if timestamp.tzinfo else timestamp.replace(tzinfo=timezone.utc)
    else:
        moment = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    now = now or datetime.now(timezone.utc)

    seconds = int((now - moment).total_seconds())
    for unit, unit_seconds in _TIME_UNITS:
        count = seconds // unit_seconds
        if count > 0:
            return f"{count} {unit}{'' if count == 1 else 's'} ago"
    return "just now"


def bot_status_name(code: int) -> str:
    """Display name of a bot status code; ``Unknown`` for unrecognized codes."""
    try:
        return BotStatusCode(code).label
    except ValueError:
        return "Unknown"


__all__ = [
    "shorten_address",
    "format_units",
    "format_token",
    "time_ago",
    "bot_status_name",
]
