"""Renko bricks: fixed price-increment bars built from closing prices.

Brick size is either supplied or derived from a 14-period ATR snapped to
a readable round number. Bricks carry synthetic, strictly increasing
timestamps (base time + brick index) because several bricks can come out
of one candle and a time-based chart rejects duplicate times.
"""

from __future__ import annotations

import math

import pandas as pd

from src.modules.studies.candles import CandleInput, to_frame
from src.modules.studies.types import RenkoBrick

ATR_PERIOD = 14

# Fallback brick basis when there is not enough history for an ATR
RANGE_FALLBACK_SHARE = 0.02

# Reversal needs twice the brick size against the current trend
REVERSAL_BRICKS = 2

# Absorbs float error in brick counts (e.g. 0.3 / 0.1 = 2.9999999999999996)
_EPSILON = 1e-9

UP = "up"
DOWN = "down"


def calculate_atr(candles: CandleInput, period: int = ATR_PERIOD) -> float:
    """Average True Range over the last ``period`` bars (simple mean).

    True range = max(high - low, |high - prev close|, |low - prev close|).

    Args:
        candles: Ordered candles.
        period: Number of true ranges to average (default 14).

    Returns:
        ATR. With fewer than ``period + 1`` candles, 2% of the close-price
        range instead; 1.0 for empty input.

    Raises:
        ValueError: If period < 1.
    """
    if period < 1:
        raise ValueError(f"Period must be >= 1, got {period}")

    df = to_frame(candles)
    if df.empty:
        return 1.0
    if len(df) < period + 1:
        return float(df["close"].max() - df["close"].min()) * RANGE_FALLBACK_SHARE

    prev_close = df["close"].shift(1)
    tr = pd.concat(
        [
            df["high"] - df["low"],
            (df["high"] - prev_close).abs(),
            (df["low"] - prev_close).abs(),
        ],
        axis=1,
    ).max(axis=1)

    return float(tr.iloc[1:].tail(period).mean())


def default_brick_size(candles: CandleInput) -> float:
    """Suggest a brick size: the ATR snapped to 1, 2.5, 5 or 10 x 10^k.

    Returns:
        Brick size; 1.0 for empty input and 0.0 when the ATR is zero
        (perfectly flat prices).
    """
    df = to_frame(candles)
    if df.empty:
        return 1.0

    atr = calculate_atr(df, ATR_PERIOD)
    if not atr > 0:
        return 0.0

    magnitude = 10 ** math.floor(math.log10(atr))
    normalized = atr / magnitude

    if normalized < 1.5:
        rounded = 1.0
    elif normalized < 3.5:
        rounded = 2.5
    elif normalized < 7.5:
        rounded = 5.0
    else:
        rounded = 10.0

    return rounded * magnitude


class _BrickBuilder:
    """Accumulates bricks with sequential synthetic times."""

    def __init__(self, base_time: int) -> None:
        self.base_time = base_time
        self.bricks: list[RenkoBrick] = []

    def add(self, open_: float, close: float) -> None:
        self.bricks.append(
            RenkoBrick(
                time=self.base_time + len(self.bricks),
                open=open_,
                high=max(open_, close),
                low=min(open_, close),
                close=close,
            )
        )


def _whole_bricks(moves: float) -> int:
    return int(math.floor(moves + _EPSILON))


def calculate_renko(
    candles: CandleInput,
    brick_size: float | None = None,
) -> list[RenkoBrick]:
    """Convert candles to Renko bricks.

    Driven by closing prices only. While the trend is unset, a move of one
    brick in either direction starts it. In a trend, each full brick in the
    trend direction adds a brick. A reversal needs a move of two bricks
    against the trend, measured from the last brick close. The first
    reversal brick starts at the far edge of the last brick, so a 2-brick
    move against the trend draws exactly one reversal brick.

    Brick edges sit on whole multiples of the brick size and moves are
    measured in bricks, so fractional sizes such as 0.1 hit their
    thresholds exactly.

    If no brick forms at all, a single brick spanning the first and last
    close is returned so a chart always has something to draw. Completely
    flat data (zero ATR) returns the candles themselves as bricks.

    Args:
        candles: Ordered candles.
        brick_size: Price per brick; None or 0 derives it from the ATR.

    Returns:
        Bricks with strictly increasing times; empty for empty input.

    Raises:
        ValueError: If brick_size is negative.
    """
    if brick_size is not None and brick_size < 0:
        raise ValueError(f"Brick size must be >= 0, got {brick_size}")

    df = to_frame(candles)
    if df.empty:
        return []

    size = brick_size or default_brick_size(df)
    if not size > 0:
        return [
            RenkoBrick(time=int(t), open=o, high=h, low=lo, close=c)
            for t, o, h, lo, c in df[["time", "open", "high", "low", "close"]].itertuples(
                index=False
            )
        ]

    closes = df["close"].to_numpy(dtype=float)
    builder = _BrickBuilder(int(df["time"].iloc[0]))
    # Last brick close as a whole number of bricks from zero
    level = _whole_bricks(closes[0] / size)
    direction: str | None = None

    for close in closes:
        moves = (close - level * size) / size

        if direction in (None, UP) and moves >= 1 - _EPSILON:
            for _ in range(_whole_bricks(moves)):
                builder.add(level * size, (level + 1) * size)
                level += 1
            direction = UP
        elif direction in (None, DOWN) and moves <= -1 + _EPSILON:
            for _ in range(_whole_bricks(-moves)):
                builder.add(level * size, (level - 1) * size)
                level -= 1
            direction = DOWN
        elif direction == UP and moves <= -REVERSAL_BRICKS + _EPSILON:
            # Reversal bricks hang off the open of the last up brick
            level -= 1
            for _ in range(_whole_bricks(-moves - 1)):
                builder.add(level * size, (level - 1) * size)
                level -= 1
            direction = DOWN
        elif direction == DOWN and moves >= REVERSAL_BRICKS - _EPSILON:
            level += 1
            for _ in range(_whole_bricks(moves - 1)):
                builder.add(level * size, (level + 1) * size)
                level += 1
            direction = UP

    if not builder.bricks:
        builder.add(float(closes[0]), float(closes[-1]))

    return builder.bricks
