"""Shared fixtures for chart study tests.

All data is static and deterministic. No network calls, no randomness.
Timestamps follow the study convention: UTC wall clock == exchange time.
"""

from collections.abc import Callable
from datetime import datetime, timezone

import pytest

from src.modules.studies.types import Candle

DAY = 86_400


def _ts(day: str, clock: str = "00:00") -> int:
    """Unix seconds for 'YYYY-MM-DD' + 'HH:MM' read as exchange-local time."""
    dt = datetime.strptime(f"{day} {clock}", "%Y-%m-%d %H:%M")
    return int(dt.replace(tzinfo=timezone.utc).timestamp())


def _bar(
    time: int,
    open_: float,
    high: float,
    low: float,
    close: float,
    volume: float = 1000.0,
    **flow: float,
) -> Candle:
    return Candle(time=time, open=open_, high=high, low=low, close=close, volume=volume, **flow)


def _flat(time: int, price: float, volume: float = 1000.0) -> Candle:
    """A bar whose open/high/low/close are all ``price`` (typical price == price)."""
    return _bar(time, price, price, price, price, volume)


@pytest.fixture
def ts() -> Callable[..., int]:
    return _ts


@pytest.fixture
def bar() -> Callable[..., Candle]:
    return _bar


@pytest.fixture
def flat() -> Callable[..., Candle]:
    return _flat


@pytest.fixture
def rising_daily_candles() -> list[Candle]:
    """30 daily candles whose close rises by exactly 1 every day."""
    start = _ts("2024-01-01")
    return [
        _bar(
            start + i * DAY,
            open_=99.5 + i,
            high=101.0 + i,
            low=98.5 + i,
            close=100.0 + i,
            volume=1_000.0 + 10 * i,
        )
        for i in range(30)
    ]


@pytest.fixture
def falling_daily_candles() -> list[Candle]:
    """30 daily candles whose close falls by exactly 1 every day."""
    start = _ts("2024-01-01")
    return [
        _bar(start + i * DAY, 130.5 - i, 131.0 - i, 129.0 - i, 130.0 - i)
        for i in range(30)
    ]


@pytest.fixture
def sample_candles() -> list[Candle]:
    """60 daily candles of a noisy uptrend with up and down days."""
    start = _ts("2024-01-01")
    moves = [0.5, 0.8, -0.3, 1.0, 0.0, 0.6, -0.7, 0.4, 1.2, -0.5]
    closes = [100.0]
    for i in range(1, 60):
        closes.append(closes[-1] + moves[i % len(moves)])

    candles = []
    for i, close in enumerate(closes):
        open_ = closes[i - 1] if i else close - 0.2
        candles.append(
            _bar(
                start + i * DAY,
                open_=open_,
                high=max(open_, close) + 0.5,
                low=min(open_, close) - 0.3,
                close=close,
                volume=1_000_000.0 + (i % 7) * 25_000,
            )
        )
    return candles


@pytest.fixture
def intraday_two_days() -> list[Candle]:
    """Two sessions of 5-minute bars, 09:15 to 15:30, alternating green/red."""
    candles = []
    for day_index, day in enumerate(["2024-01-15", "2024-01-16"]):
        t = _ts(day, "09:15")
        end = _ts(day, "15:30")
        i = 0
        while t <= end:
            base = 100.0 + day_index * 10 + (i % 6)
            up = i % 2 == 0
            open_, close = (base, base + 1) if up else (base + 1, base)
            candles.append(_bar(t, open_, base + 1.5, base - 0.5, close, 500.0 + 10 * i))
            t += 300
            i += 1
    return candles
