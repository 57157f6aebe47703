"""Tests for First Red Candle and Opening Range Breakout detectors."""

from collections.abc import Callable

import pytest

from src.modules.studies.indicators.day_patterns import (
    BREAKDOWN_TEXT,
    BREAKOUT_TEXT,
    FIRST_RED_TEXT,
    FirstCandleConfig,
    RangeBreakoutConfig,
    calculate_first_red_candle,
    calculate_range_breakout,
    latest_first_red_candle,
    latest_range_breakout,
)
from src.modules.studies.types import Candle

D1 = "2024-01-15"
D2 = "2024-01-16"

# ========================================================================
# First Red Candle Tests
# ========================================================================


class TestFirstRedCandle:
    """Tests for the first bearish bar of each day."""

    def test_two_days(self, intraday_two_days: list[Candle], ts: Callable[..., int]) -> None:
        """Green at 09:15, red at 09:20: the 09:20 bar sets each day's level."""
        result = calculate_first_red_candle(intraday_two_days)

        assert [day.date for day in result.days] == [D1, D2]
        first = result.days[0]
        assert first.first_red_candle.time == ts(D1, "09:20")
        assert (first.levels.high, first.levels.low) == (102.5, 100.5)
        assert first.levels.start_time == ts(D1, "09:20")
        assert first.levels.end_time == ts(D1, "15:30")

        assert result.current_day_levels == result.days[1].levels
        assert result.current_day_levels.high == 112.5

    def test_markers(self, intraday_two_days: list[Candle]) -> None:
        """One arrow above each first red bar."""
        result = calculate_first_red_candle(intraday_two_days)

        assert len(result.markers) == 2
        marker = result.markers[0]
        assert marker.text == FIRST_RED_TEXT
        assert marker.position == "aboveBar"
        assert marker.shape == "arrowDown"
        assert marker.color == "#FFD700"
        assert result.levels == [day.levels for day in result.days]

    def test_pre_market_bars_ignored(
        self, ts: Callable[..., int], bar: Callable[..., Candle]
    ) -> None:
        """A red bar before 09:15 does not count."""
        candles = [
            bar(ts(D1, "09:10"), 10.0, 11.0, 8.0, 9.0),
            bar(ts(D1, "09:15"), 10.0, 12.0, 9.0, 11.0),
            bar(ts(D1, "09:20"), 11.0, 11.5, 9.5, 10.0),
            bar(ts(D1, "09:25"), 10.0, 10.5, 9.5, 10.2),
        ]
        result = calculate_first_red_candle(candles)
        assert result.days[0].first_red_candle.time == ts(D1, "09:20")

    def test_custom_market_hours(self, ts: Callable[..., int], bar: Callable[..., Candle]) -> None:
        """Session bounds come from config."""
        candles = [
            bar(ts(D1, "09:05"), 10.0, 11.0, 8.0, 9.0),
            bar(ts(D1, "09:10"), 10.0, 12.0, 9.0, 11.0),
        ]
        config = FirstCandleConfig(market_open=(9, 0), market_close=(23, 30))
        result = calculate_first_red_candle(candles, config)
        assert result.days[0].first_red_candle.time == ts(D1, "09:05")

    def test_day_without_red_skipped(
        self, ts: Callable[..., int], bar: Callable[..., Candle]
    ) -> None:
        """An all-green day contributes nothing."""
        candles = [bar(ts(D1, f"09:{m}"), 10.0, 12.0, 9.0, 11.0) for m in (15, 20, 25)]
        result = calculate_first_red_candle(candles)

        assert result.days == []
        assert result.current_day_levels is None

    def test_red_on_last_bar_skipped(
        self, ts: Callable[..., int], bar: Callable[..., Candle]
    ) -> None:
        """A first red bar that is the day's last bar would draw a zero-length line."""
        candles = [
            bar(ts(D1, "09:15"), 10.0, 12.0, 9.0, 11.0),
            bar(ts(D1, "09:20"), 11.0, 11.5, 9.5, 10.0),
        ]
        assert calculate_first_red_candle(candles).days == []

    def test_unsorted_input(self, intraday_two_days: list[Candle], ts: Callable[..., int]) -> None:
        """Bars are ordered by time within each day."""
        result = calculate_first_red_candle(list(reversed(intraday_two_days)))
        assert {day.first_red_candle.time for day in result.days} == {
            ts(D1, "09:20"),
            ts(D2, "09:20"),
        }

    def test_latest(self, intraday_two_days: list[Candle]) -> None:
        """latest_first_red_candle returns the last day, or None."""
        assert latest_first_red_candle(intraday_two_days).date == D2
        assert latest_first_red_candle([]) is None


# ========================================================================
# Opening Range Breakout Tests
# ========================================================================


class TestRangeBreakout:
    """Tests for the opening range and its breakout signals."""

    @pytest.fixture
    def breakout_day(self, ts: Callable[..., int], bar: Callable[..., Candle]) -> list[Candle]:
        return [
            bar(ts(D1, "09:15"), 100.0, 120.0, 80.0, 100.0),
            bar(ts(D1, "09:30"), 100.0, 105.0, 95.0, 100.0),
            bar(ts(D1, "09:55"), 100.0, 104.0, 96.0, 101.0),
            bar(ts(D1, "10:00"), 101.0, 104.0, 99.0, 100.0),
            bar(ts(D1, "10:05"), 100.0, 107.0, 100.0, 106.0),
            bar(ts(D1, "10:10"), 106.0, 108.0, 105.0, 107.0),
            bar(ts(D1, "10:15"), 100.0, 100.0, 93.0, 94.0),
            bar(ts(D1, "10:20"), 94.0, 94.0, 90.0, 91.0),
            bar(ts(D1, "15:30"), 91.0, 101.0, 90.0, 100.0),
        ]

    def test_range_from_window(self, breakout_day: list[Candle], ts: Callable[..., int]) -> None:
        """Range covers [09:30, 10:00); lines run 10:00 to the day's last bar."""
        result = calculate_range_breakout(breakout_day)

        level = result.levels[0]
        assert (level.high, level.low) == (105.0, 95.0)
        assert level.start_time == ts(D1, "10:00")
        assert level.end_time == ts(D1, "15:30")
        assert [(p.time, p.value) for p in result.high_lines] == [
            (ts(D1, "10:00"), 105.0),
            (ts(D1, "15:30"), 105.0),
        ]
        assert [p.value for p in result.low_lines] == [95.0, 95.0]

    def test_signals_fire_once(self, breakout_day: list[Candle], ts: Callable[..., int]) -> None:
        """First close above the high and first close below the low, once each."""
        markers = calculate_range_breakout(breakout_day).markers

        assert [(m.time, m.text) for m in markers] == [
            (ts(D1, "10:05"), BREAKOUT_TEXT),
            (ts(D1, "10:15"), BREAKDOWN_TEXT),
        ]
        assert markers[0].position == "aboveBar" and markers[0].shape == "arrowUp"
        assert markers[1].position == "belowBar" and markers[1].color == "#F23645"

    def test_signals_disabled(self, breakout_day: list[Candle]) -> None:
        """show_signals=False keeps levels and drops markers."""
        result = calculate_range_breakout(breakout_day, RangeBreakoutConfig(show_signals=False))
        assert result.markers == []
        assert len(result.levels) == 1

    def test_no_breakout_inside_range(self, intraday_two_days: list[Candle]) -> None:
        """Closes that stay inside the range emit no markers but still draw lines."""
        result = calculate_range_breakout(intraday_two_days)

        assert result.markers == []
        assert len(result.levels) == 2
        assert len(result.high_lines) == 4
        assert (result.levels[0].high, result.levels[0].low) == (106.5, 99.5)

    def test_custom_window(self, breakout_day: list[Candle], ts: Callable[..., int]) -> None:
        """A 09:15-09:30 window takes its range from the 09:15 bar only."""
        config = RangeBreakoutConfig(range_start=(9, 15), range_end=(9, 30))
        level = calculate_range_breakout(breakout_day, config).levels[0]

        assert (level.high, level.low) == (120.0, 80.0)
        assert level.start_time == ts(D1, "09:30")

    def test_no_window_bars(self, ts: Callable[..., int], bar: Callable[..., Candle]) -> None:
        """A day with no bar in the window is skipped."""
        candles = [
            bar(ts(D1, "10:00"), 100.0, 101.0, 99.0, 100.0),
            bar(ts(D1, "10:05"), 100.0, 101.0, 99.0, 100.0),
        ]
        assert calculate_range_breakout(candles).levels == []

    def test_single_post_range_bar(
        self, ts: Callable[..., int], bar: Callable[..., Candle]
    ) -> None:
        """One bar after the window would draw a zero-length line: skipped."""
        candles = [
            bar(ts(D1, "09:30"), 100.0, 101.0, 99.0, 100.0),
            bar(ts(D1, "10:00"), 100.0, 110.0, 99.0, 109.0),
        ]
        result = calculate_range_breakout(candles)
        assert result.levels == []
        assert result.markers == []

    def test_invalid_window(self) -> None:
        """range_end must come after range_start."""
        with pytest.raises(ValueError, match="range_end"):
            RangeBreakoutConfig(range_start=(10, 0), range_end=(9, 30))

    def test_latest(self, intraday_two_days: list[Candle]) -> None:
        """latest_range_breakout returns the last day's level, or None."""
        assert latest_range_breakout(intraday_two_days).date == D2
        assert latest_range_breakout([]) is None
