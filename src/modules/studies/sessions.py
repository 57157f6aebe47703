"""Time and session utilities for Indian exchange studies.

Timestamp convention: candle times are seconds since the epoch that the
market-data API has already shifted to exchange-local time. They are read
as if UTC *were* local time, so the UTC hour/minute of a timestamp is the
exchange wall-clock hour/minute. Never apply a second IST offset.
"""

from collections.abc import Iterable
from datetime import datetime, timezone
from types import MappingProxyType
from typing import NamedTuple

import pandas as pd

from src.modules.studies.types import Candle

MARKET_OPEN = (9, 15)
MARKET_CLOSE = (15, 30)

# Market open per exchange segment, in minutes from midnight
EXCHANGE_OPEN_MINUTES = MappingProxyType(
    {
        "NSE": 9 * 60 + 15,
        "BSE": 9 * 60 + 15,
        "NFO": 9 * 60 + 15,
        "BFO": 9 * 60 + 15,
        "NSE_INDEX": 9 * 60 + 15,
        "BSE_INDEX": 9 * 60 + 15,
        "MCX": 9 * 60,
        "CDS": 9 * 60,
        "BCD": 9 * 60,
    }
)

DEFAULT_EXCHANGE = "NSE"


class TimeComponents(NamedTuple):
    """Exchange-local wall-clock parts of a timestamp."""

    hours: int
    minutes: int
    date_str: str


def time_components(timestamp: int) -> TimeComponents:
    """Split a timestamp into exchange-local hour, minute and YYYY-MM-DD date.

    Args:
        timestamp: Unix seconds in the local-as-UTC convention.

    Returns:
        TimeComponents(hours, minutes, date_str).
    """
    dt = datetime.fromtimestamp(timestamp, tz=timezone.utc)
    return TimeComponents(dt.hour, dt.minute, dt.strftime("%Y-%m-%d"))


def to_minutes_since_midnight(hours: int, minutes: int) -> int:
    return hours * 60 + minutes


def market_open_time() -> tuple[int, int]:
    return MARKET_OPEN


def market_close_time() -> tuple[int, int]:
    return MARKET_CLOSE


def is_market_hours(
    timestamp: int,
    market_open: tuple[int, int] = MARKET_OPEN,
    market_close: tuple[int, int] = MARKET_CLOSE,
) -> bool:
    """Check whether a timestamp falls in regular market hours.

    Both ends are inclusive, so the 15:30 bar counts as in-session.

    Args:
        timestamp: Unix seconds in the local-as-UTC convention.
        market_open: Session open (hour, minute). Default 09:15.
        market_close: Session close (hour, minute). Default 15:30.

    Returns:
        True if open <= time-of-day <= close.
    """
    hours, minutes, _ = time_components(timestamp)
    now = to_minutes_since_midnight(hours, minutes)
    return (
        to_minutes_since_midnight(*market_open)
        <= now
        <= to_minutes_since_midnight(*market_close)
    )


def is_in_time_window(
    timestamp: int,
    start_hour: int,
    start_minute: int,
    end_hour: int,
    end_minute: int,
) -> bool:
    """Check whether a timestamp falls in the half-open window [start, end)."""
    hours, minutes, _ = time_components(timestamp)
    now = to_minutes_since_midnight(hours, minutes)
    start = to_minutes_since_midnight(start_hour, start_minute)
    end = to_minutes_since_midnight(end_hour, end_minute)
    return start <= now < end


def is_after_time(timestamp: int, hour: int, minute: int) -> bool:
    """Check whether a timestamp's time-of-day is at or after hour:minute."""
    hours, minutes, _ = time_components(timestamp)
    return to_minutes_since_midnight(hours, minutes) >= to_minutes_since_midnight(
        hour, minute
    )


def group_candles_by_day(candles: Iterable[Candle]) -> dict[str, list[Candle]]:
    """Group candles by trading day.

    Days keep their first-seen order and candles keep input order within
    a day; callers sort inside a day if the input was not pre-sorted.

    Args:
        candles: Candle records.

    Returns:
        Insertion-ordered mapping of YYYY-MM-DD -> candles.
    """
    days: dict[str, list[Candle]] = {}
    for candle in candles:
        days.setdefault(time_components(candle.time).date_str, []).append(candle)
    return days


def market_open_minutes(exchange: str = DEFAULT_EXCHANGE) -> int:
    """Market open for an exchange in minutes from midnight (NSE if unknown)."""
    return EXCHANGE_OPEN_MINUTES.get(
        str(exchange).upper(), EXCHANGE_OPEN_MINUTES[DEFAULT_EXCHANGE]
    )


def session_keys(
    times: pd.Series,
    reset_at_market_open: bool = False,
    exchange: str = DEFAULT_EXCHANGE,
) -> pd.Series:
    """Compute the trading-session key of every bar.

    The key is the bar's calendar date. With ``reset_at_market_open`` a
    bar before the exchange's open minute belongs to the previous day's
    session, so an MCX evening session is not split at midnight.

    Args:
        times: Unix-second timestamps.
        reset_at_market_open: Roll pre-open bars back to the previous session.
        exchange: Exchange segment used to look up the open minute.

    Returns:
        Series of normalized datetime64 dates aligned with ``times``.
    """
    dt = pd.to_datetime(times.astype("int64"), unit="s")
    keys = dt.dt.normalize()

    if reset_at_market_open:
        minutes = dt.dt.hour * 60 + dt.dt.minute
        pre_open = minutes < market_open_minutes(exchange)
        keys = keys.where(~pre_open, keys - pd.Timedelta(days=1))

    return keys


def session_runs(keys: pd.Series) -> pd.Series:
    """Number contiguous runs of equal session keys (1, 1, 2, 2, 2, 3, ...)."""
    return (keys != keys.shift()).cumsum()
