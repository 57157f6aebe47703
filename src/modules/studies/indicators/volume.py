"""Volume indicators: direction-colored bars, Volume MA, relative-volume spikes.

Pure functions operating on ordered candles. No state or side effects.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import pandas as pd

from src.modules.studies.candles import CandleInput, to_frame, to_points
from src.modules.studies.types import ColoredPoint, Point

UP_COLOR = "#089981"
DOWN_COLOR = "#F23645"


@dataclass(frozen=True)
class EnhancedVolumeConfig:
    """Relative-volume settings.

    Attributes:
        ma_period: Trailing window for the average volume (default 20).
        up_color: Normal bar on an up candle.
        down_color: Normal bar on a down candle.
        high_volume_up_color: Spike bar on an up candle.
        high_volume_down_color: Spike bar on a down candle.
        high_volume_threshold: volume / average at or above which a bar
            is a spike (default 1.5).
        show_ma: Emit the average-volume line.
    """

    ma_period: int = 20
    up_color: str = "#26A69A"
    down_color: str = "#EF5350"
    high_volume_up_color: str = "#00E676"
    high_volume_down_color: str = "#FF1744"
    high_volume_threshold: float = 1.5
    show_ma: bool = True

    def __post_init__(self) -> None:
        if self.ma_period < 1:
            raise ValueError(f"Period must be >= 1, got {self.ma_period}")


@dataclass(frozen=True)
class VolumeAnalysis:
    """Per-bar relative volume figures for tooltips and labels."""

    time: int
    volume: float
    avg_volume: float
    relative_volume: float
    percent_above_avg: int
    is_high_volume: bool
    is_up: bool


@dataclass(frozen=True)
class EnhancedVolume:
    """Colored bars, average-volume line and per-bar analysis."""

    bars: list[ColoredPoint] = field(default_factory=list)
    ma: list[Point] = field(default_factory=list)
    analysis: list[VolumeAnalysis] = field(default_factory=list)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _rolling_mean(volume: pd.Series, period: int) -> pd.Series:
    return volume.rolling(window=period, min_periods=period).mean()


def calculate_volume(
    candles: CandleInput,
    up_color: str = UP_COLOR,
    down_color: str = DOWN_COLOR,
) -> list[ColoredPoint]:
    """Volume histogram colored by candle direction (``close >= open`` is up).

    Returns:
        One bar per candle; empty for empty input.
    """
    df = to_frame(candles)
    is_up = (df["close"] >= df["open"]).tolist()

    return [
        ColoredPoint(time=int(t), value=float(v), color=up_color if up else down_color)
        for t, v, up in zip(df["time"].tolist(), df["volume"].tolist(), is_up)
    ]


def calculate_volume_ma(candles: CandleInput, period: int = 20) -> list[Point]:
    """Calculate the simple moving average of volume.

    Args:
        candles: Ordered candles with volume.
        period: MA period (default 20).

    Returns:
        MA points starting at candle index ``period - 1``.

    Raises:
        ValueError: If period < 1.
    """
    if period < 1:
        raise ValueError(f"Period must be >= 1, got {period}")

    df = to_frame(candles)
    return to_points(df["time"], _rolling_mean(df["volume"], period), keep_missing=False)


def calculate_enhanced_volume(
    candles: CandleInput,
    config: EnhancedVolumeConfig | None = None,
) -> EnhancedVolume:
    """Volume bars highlighted when volume spikes above its trailing average.

    Before the MA window fills the average is 0, relative volume is 1 and
    no bar is a spike.

    Args:
        candles: Ordered candles with volume.
        config: Colors, MA period and spike threshold.

    Returns:
        EnhancedVolume with bars, MA line (if ``show_ma``) and analysis.
    """
    config = config or EnhancedVolumeConfig()
    df = to_frame(candles)
    if df.empty:
        return EnhancedVolume()

    volume = df["volume"]
    rolling = _rolling_mean(volume, config.ma_period)
    avg = rolling.fillna(0.0)
    has_avg = avg > 0

    relative = (volume / avg).where(has_avg, 1.0)
    percent = ((volume - avg) / avg * 100.0).where(has_avg, 0.0)
    is_high = relative >= config.high_volume_threshold
    is_up = df["close"] >= df["open"]

    bars: list[ColoredPoint] = []
    analysis: list[VolumeAnalysis] = []
    rows = zip(
        df["time"].tolist(),
        volume.tolist(),
        avg.tolist(),
        relative.tolist(),
        percent.tolist(),
        is_high.tolist(),
        is_up.tolist(),
    )
    for t, vol, avg_vol, rel, pct, high, up in rows:
        if high:
            color = config.high_volume_up_color if up else config.high_volume_down_color
        else:
            color = config.up_color if up else config.down_color

        bars.append(ColoredPoint(time=int(t), value=float(vol), color=color))
        analysis.append(
            VolumeAnalysis(
                time=int(t),
                volume=float(vol),
                avg_volume=float(avg_vol),
                relative_volume=float(rel),
                percent_above_avg=_round_half_up(pct),
                is_high_volume=bool(high),
                is_up=bool(up),
            )
        )

    ma = to_points(df["time"], rolling, keep_missing=False) if config.show_ma else []
    return EnhancedVolume(bars=bars, ma=ma, analysis=analysis)
