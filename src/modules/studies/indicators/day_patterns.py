"""Intraday day-pattern detectors: First Red Candle and Opening Range Breakout.

Both work per trading day on market-hours bars and produce immutable
per-day levels plus chart markers. A day contributes nothing when its
level line would have zero length, since start and end would share a
timestamp.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from src.modules.studies.candles import CandleInput, to_candles
from src.modules.studies.sessions import (
    MARKET_CLOSE,
    MARKET_OPEN,
    group_candles_by_day,
    is_after_time,
    is_in_time_window,
    is_market_hours,
)
from src.modules.studies.types import Candle, Level, Marker, Point

FIRST_RED_TEXT = "FRC: 1st Red"
BREAKOUT_TEXT = "RB: Breakout"
BREAKDOWN_TEXT = "RB: Breakdown"


@dataclass(frozen=True)
class FirstCandleConfig:
    """First Red Candle marker color and session bounds."""

    highlight_color: str = "#FFD700"
    market_open: tuple[int, int] = MARKET_OPEN
    market_close: tuple[int, int] = MARKET_CLOSE


@dataclass(frozen=True)
class FirstCandleDay:
    """One trading day's first red candle and its level."""

    date: str
    first_red_candle: Candle
    levels: Level
    markers: list[Marker]


@dataclass(frozen=True)
class FirstCandleResult:
    days: list[FirstCandleDay] = field(default_factory=list)
    markers: list[Marker] = field(default_factory=list)
    levels: list[Level] = field(default_factory=list)
    current_day_levels: Level | None = None


@dataclass(frozen=True)
class RangeBreakoutConfig:
    """Opening-range window, colors and session bounds.

    Attributes:
        range_start: Window start (hour, minute), inclusive. Default 09:30.
        range_end: Window end (hour, minute), exclusive. Default 10:00.
        high_color: Range-high line and breakout marker color.
        low_color: Range-low line and breakdown marker color.
        show_signals: Emit breakout/breakdown markers.
        market_open: Session open (hour, minute).
        market_close: Session close (hour, minute).
    """

    range_start: tuple[int, int] = (9, 30)
    range_end: tuple[int, int] = (10, 0)
    high_color: str = "#089981"
    low_color: str = "#F23645"
    show_signals: bool = True
    market_open: tuple[int, int] = MARKET_OPEN
    market_close: tuple[int, int] = MARKET_CLOSE

    def __post_init__(self) -> None:
        if self.range_end <= self.range_start:
            raise ValueError(
                f"range_end {self.range_end} must be after range_start {self.range_start}"
            )


@dataclass(frozen=True)
class RangeBreakoutResult:
    high_lines: list[Point] = field(default_factory=list)
    low_lines: list[Point] = field(default_factory=list)
    markers: list[Marker] = field(default_factory=list)
    levels: list[Level] = field(default_factory=list)


def _market_days(
    candles: list[Candle],
    market_open: tuple[int, int],
    market_close: tuple[int, int],
) -> list[tuple[str, list[Candle]]]:
    """Per-day market-hours bars, sorted by time; days without any are dropped."""
    days = []
    for date_str, day_candles in group_candles_by_day(candles).items():
        session = [
            c
            for c in sorted(day_candles, key=lambda c: c.time)
            if is_market_hours(c.time, market_open, market_close)
        ]
        if session:
            days.append((date_str, session))
    return days


def calculate_first_red_candle(
    candles: CandleInput,
    config: FirstCandleConfig | None = None,
) -> FirstCandleResult:
    """Find the first bearish (close < open) bar of every trading day.

    Its high/low become the day's level, drawn from that bar to the day's
    last market-hours bar, with a marker above the bar.

    Args:
        candles: Intraday candles (typically 5-minute).
        config: Colors and market-hours bounds.

    Returns:
        FirstCandleResult; ``current_day_levels`` is the latest day's level.
    """
    config = config or FirstCandleConfig()
    days: list[FirstCandleDay] = []

    for date_str, session in _market_days(
        to_candles(candles), config.market_open, config.market_close
    ):
        first_red = next((c for c in session if c.close < c.open), None)
        if first_red is None:
            continue

        last = session[-1]
        if first_red.time == last.time:
            continue

        levels = Level(
            high=first_red.high,
            low=first_red.low,
            date=date_str,
            start_time=first_red.time,
            end_time=last.time,
        )
        marker = Marker(
            time=first_red.time,
            position="aboveBar",
            color=config.highlight_color,
            shape="arrowDown",
            text=FIRST_RED_TEXT,
        )
        days.append(
            FirstCandleDay(
                date=date_str, first_red_candle=first_red, levels=levels, markers=[marker]
            )
        )

    return FirstCandleResult(
        days=days,
        markers=[m for day in days for m in day.markers],
        levels=[day.levels for day in days],
        current_day_levels=days[-1].levels if days else None,
    )


def latest_first_red_candle(
    candles: CandleInput,
    config: FirstCandleConfig | None = None,
) -> FirstCandleDay | None:
    """Return the most recent day's first red candle, or None."""
    result = calculate_first_red_candle(candles, config)
    return result.days[-1] if result.days else None


def calculate_range_breakout(
    candles: CandleInput,
    config: RangeBreakoutConfig | None = None,
) -> RangeBreakoutResult:
    """Opening-range breakout levels and signals per trading day.

    The range is the high/low of bars in [range_start, range_end). After
    the window, the first close above the range high is a breakout and the
    first close below the range low a breakdown; each fires at most once a
    day. Level lines run from the first post-window bar to the day's last bar.

    Args:
        candles: Intraday candles.
        config: Window, colors and market-hours bounds.

    Returns:
        RangeBreakoutResult with two line points per qualifying day.
    """
    config = config or RangeBreakoutConfig()
    result = RangeBreakoutResult()
    (start_h, start_m), (end_h, end_m) = config.range_start, config.range_end

    for date_str, session in _market_days(
        to_candles(candles), config.market_open, config.market_close
    ):
        window = [c for c in session if is_in_time_window(c.time, start_h, start_m, end_h, end_m)]
        if not window:
            continue

        range_high = max(c.high for c in window)
        range_low = min(c.low for c in window)

        post_range = [c for c in session if is_after_time(c.time, end_h, end_m)]
        if not post_range:
            continue

        start, last = post_range[0], session[-1]
        if start.time == last.time:
            continue

        result.levels.append(
            Level(
                high=range_high,
                low=range_low,
                date=date_str,
                start_time=start.time,
                end_time=last.time,
            )
        )
        result.high_lines.extend(
            [Point(start.time, range_high), Point(last.time, range_high)]
        )
        result.low_lines.extend([Point(start.time, range_low), Point(last.time, range_low)])

        if config.show_signals:
            result.markers.extend(_breakout_markers(post_range, range_high, range_low, config))

    return result


def _breakout_markers(
    post_range: list[Candle],
    range_high: float,
    range_low: float,
    config: RangeBreakoutConfig,
) -> list[Marker]:
    markers = []
    breakout = breakdown = False

    for candle in post_range:
        if not breakout and candle.close > range_high:
            markers.append(
                Marker(candle.time, "aboveBar", config.high_color, "arrowUp", BREAKOUT_TEXT)
            )
            breakout = True
        if not breakdown and candle.close < range_low:
            markers.append(
                Marker(candle.time, "belowBar", config.low_color, "arrowDown", BREAKDOWN_TEXT)
            )
            breakdown = True
        if breakout and breakdown:
            break

    return markers


def latest_range_breakout(
    candles: CandleInput,
    config: RangeBreakoutConfig | None = None,
) -> Level | None:
    """Return the most recent day's opening-range level, or None."""
    levels = calculate_range_breakout(candles, config).levels
    return levels[-1] if levels else None
