"""Momentum indicators: Wilder RSI with EMA and WMA signal lines.

The Hilenga-Milenga oscillator plots RSI together with a fast EMA of RSI
("price" line) and a slow WMA of RSI ("strength" line) around a 50
midline. Pure functions; no state or side effects.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np
import pandas as pd

from src.modules.studies.candles import CandleInput, to_frame, to_points
from src.modules.studies.types import Point
from src.shared.logger import get_logger

logger = get_logger(__name__)

# RS substitute when the average loss is zero (RSI = 100 - 100/101)
RS_WHEN_NO_LOSS = 100.0

MIDLINE = 50.0


@dataclass(frozen=True)
class MomentumConfig:
    """Hilenga-Milenga lengths.

    Attributes:
        rsi_length: RSI period (default 9).
        ema_length: EMA period applied to RSI (default 3).
        wma_length: WMA period applied to RSI (default 21).
    """

    rsi_length: int = 9
    ema_length: int = 3
    wma_length: int = 21

    def __post_init__(self) -> None:
        for name in ("rsi_length", "ema_length", "wma_length"):
            value = getattr(self, name)
            if value < 1:
                raise ValueError(f"Period {name} must be >= 1, got {value}")


@dataclass(frozen=True)
class HilengaMilengaResult:
    """RSI line plus its EMA and WMA signal lines."""

    rsi_line: list[Point] = field(default_factory=list)
    ema_line: list[Point] = field(default_factory=list)
    wma_line: list[Point] = field(default_factory=list)


@dataclass(frozen=True)
class HilengaMilengaSnapshot:
    """Last values of each line, for a legend or watchlist cell."""

    rsi: float | None
    ema: float | None
    wma: float | None
    signal: str | None


def _wilder_rsi(close: pd.Series, period: int) -> pd.Series:
    """RSI Series indexed by candle position, starting at position ``period``."""
    delta = close.diff().iloc[1:]
    gains = delta.clip(lower=0.0)
    losses = (-delta).clip(lower=0.0)

    # Seed with the simple mean of the first `period` changes, then
    # ewm(alpha=1/period, adjust=False) is exactly Wilder's recurrence.
    seeded_gains = gains.iloc[period - 1 :].copy()
    seeded_losses = losses.iloc[period - 1 :].copy()
    seeded_gains.iloc[0] = gains.iloc[:period].mean()
    seeded_losses.iloc[0] = losses.iloc[:period].mean()

    alpha = 1.0 / period
    avg_gain = seeded_gains.ewm(alpha=alpha, adjust=False).mean()
    avg_loss = seeded_losses.ewm(alpha=alpha, adjust=False).mean()

    rs = (avg_gain / avg_loss).where(avg_loss != 0, RS_WHEN_NO_LOSS)
    return 100.0 - (100.0 / (1.0 + rs))


def rsi_points(candles: CandleInput, period: int = 9) -> list[Point]:
    """Calculate Relative Strength Index (Wilder's smoothing).

    Args:
        candles: Ordered candles.
        period: Lookback period (default 9).

    Returns:
        RSI points between 0 and 100. The first point is stamped at the
        candle right after the seed window; empty if fewer than
        ``period + 1`` candles.

    Raises:
        ValueError: If period < 1.
    """
    if period < 1:
        raise ValueError(f"Period must be >= 1, got {period}")

    df = to_frame(candles)
    if len(df) < period + 1:
        return []

    rsi = _wilder_rsi(df["close"], period)
    return to_points(df["time"].loc[rsi.index], rsi)


def ema_values(values: Sequence[float], period: int) -> list[float]:
    """EMA of a value list, seeded with the SMA of the first ``period`` values.

    Returns:
        ``len(values) - period + 1`` values; empty if there are too few.
    """
    if period < 1:
        raise ValueError(f"Period must be >= 1, got {period}")
    if len(values) < period:
        return []

    series = pd.Series(values[period - 1 :], dtype=float)
    series.iloc[0] = float(np.mean(values[:period]))
    return series.ewm(span=period, adjust=False).mean().tolist()


def wma_values(values: Sequence[float], period: int) -> list[float]:
    """Linearly weighted moving average, most recent value weighted ``period``.

    Returns:
        ``len(values) - period + 1`` values; empty if there are too few.
    """
    if period < 1:
        raise ValueError(f"Period must be >= 1, got {period}")
    if len(values) < period:
        return []

    weights = np.arange(1, period + 1, dtype=float)
    weight_sum = period * (period + 1) / 2

    result = (
        pd.Series(values, dtype=float)
        .rolling(window=period, min_periods=period)
        .apply(lambda window: np.dot(window, weights) / weight_sum, raw=True)
    )
    return result.iloc[period - 1 :].tolist()


def _align(rsi_line: list[Point], values: list[float], offset: int) -> list[Point]:
    return [
        Point(time=rsi_line[offset + i].time, value=value)
        for i, value in enumerate(values)
        if offset + i < len(rsi_line)
    ]


def calculate_hilenga_milenga(
    candles: CandleInput,
    config: MomentumConfig | None = None,
) -> HilengaMilengaResult:
    """Calculate the Hilenga-Milenga oscillator.

    The EMA line starts ``ema_length - 1`` RSI points in and the WMA line
    ``wma_length - 1`` RSI points in; each point carries the time of the
    RSI point it smooths up to.

    Args:
        candles: Ordered candles.
        config: Lengths (defaults 9 / 3 / 21).

    Returns:
        HilengaMilengaResult. All three lines are empty when there are
        fewer than ``max(rsi_length, wma_length) + 1`` candles.
    """
    config = config or MomentumConfig()
    df = to_frame(candles)

    if len(df) < max(config.rsi_length, config.wma_length) + 1:
        logger.debug(f"Hilenga-Milenga needs more history, got {len(df)} candles")
        return HilengaMilengaResult()

    rsi_line = rsi_points(df, config.rsi_length)
    rsi_series = [p.value for p in rsi_line]

    ema_line = _align(rsi_line, ema_values(rsi_series, config.ema_length), config.ema_length - 1)
    wma_line = _align(rsi_line, wma_values(rsi_series, config.wma_length), config.wma_length - 1)

    return HilengaMilengaResult(rsi_line=rsi_line, ema_line=ema_line, wma_line=wma_line)


def latest_hilenga_milenga(
    candles: CandleInput,
    config: MomentumConfig | None = None,
) -> HilengaMilengaSnapshot:
    """Return the latest RSI/EMA/WMA values and a bullish/bearish read.

    The signal is "bullish" when RSI is above the 50 midline, "bearish"
    otherwise, and None when no RSI could be computed.
    """
    result = calculate_hilenga_milenga(candles, config)

    def last(line: list[Point]) -> float | None:
        return line[-1].value if line else None

    rsi = last(result.rsi_line)
    signal = None if rsi is None else ("bullish" if rsi > MIDLINE else "bearish")

    return HilengaMilengaSnapshot(
        rsi=rsi,
        ema=last(result.ema_line),
        wma=last(result.wma_line),
        signal=signal,
    )
