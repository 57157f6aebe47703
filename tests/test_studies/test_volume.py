"""Tests for volume studies."""

from collections.abc import Callable

import pytest

from src.modules.studies.indicators.volume import (
    DOWN_COLOR,
    UP_COLOR,
    EnhancedVolumeConfig,
    calculate_enhanced_volume,
    calculate_volume,
    calculate_volume_ma,
)
from src.modules.studies.types import Candle


@pytest.fixture
def spike_candles(ts: Callable[..., int], bar: Callable[..., Candle]) -> list[Candle]:
    """20 green bars of volume 100, then a red bar of volume 200."""
    candles = [
        bar(ts("2024-01-15", "09:15") + i * 300, 10.0, 11.0, 9.0, 10.5, 100.0) for i in range(20)
    ]
    candles.append(bar(ts("2024-01-15", "09:15") + 20 * 300, 10.5, 11.0, 9.0, 10.0, 200.0))
    return candles


class TestVolume:
    """Tests for the direction-colored volume histogram."""

    def test_colors_by_direction(self, ts: Callable[..., int], bar: Callable[..., Candle]) -> None:
        """close >= open is up (doji included), otherwise down."""
        candles = [
            bar(ts("2024-01-15", "10:00"), 10.0, 11.0, 9.0, 10.5, 5.0),
            bar(ts("2024-01-15", "10:05"), 10.0, 11.0, 9.0, 10.0, 6.0),
            bar(ts("2024-01-15", "10:10"), 10.5, 11.0, 9.0, 10.0, 7.0),
        ]
        bars = calculate_volume(candles)

        assert [b.color for b in bars] == [UP_COLOR, UP_COLOR, DOWN_COLOR]
        assert [b.value for b in bars] == [5.0, 6.0, 7.0]

    def test_custom_colors(self, spike_candles: list[Candle]) -> None:
        """Colors can be overridden."""
        bars = calculate_volume(spike_candles, up_color="green", down_color="red")
        assert bars[0].color == "green"
        assert bars[-1].color == "red"

    def test_empty(self) -> None:
        """No candles, no bars."""
        assert calculate_volume([]) == []


class TestVolumeMA:
    """Tests for the volume moving average."""

    def test_starts_at_period_minus_one(self, spike_candles: list[Candle]) -> None:
        """First MA point is stamped at candle index period - 1."""
        points = calculate_volume_ma(spike_candles, period=20)

        assert len(points) == 2
        assert points[0].time == spike_candles[19].time
        assert points[0].value == pytest.approx(100.0)
        assert points[1].value == pytest.approx(105.0)

    def test_short_input(self, spike_candles: list[Candle]) -> None:
        """Fewer candles than the period gives no points."""
        assert calculate_volume_ma(spike_candles[:5], period=20) == []

    def test_bad_period(self, spike_candles: list[Candle]) -> None:
        """Should raise ValueError for period < 1."""
        with pytest.raises(ValueError, match="Period"):
            calculate_volume_ma(spike_candles, period=0)


class TestEnhancedVolume:
    """Tests for relative-volume spike detection."""

    def test_spike_detected(self, spike_candles: list[Candle]) -> None:
        """200 against an average of 105 is a spike on a red bar."""
        result = calculate_enhanced_volume(spike_candles)
        last = result.analysis[-1]

        assert last.avg_volume == pytest.approx(105.0)
        assert last.relative_volume == pytest.approx(200.0 / 105.0)
        assert last.percent_above_avg == 90
        assert last.is_high_volume
        assert not last.is_up
        assert result.bars[-1].color == "#FF1744"

    def test_warmup_bars(self, spike_candles: list[Candle]) -> None:
        """Before the window fills: average 0, relative 1, no spike."""
        first = calculate_enhanced_volume(spike_candles).analysis[0]

        assert first.avg_volume == 0.0
        assert first.relative_volume == 1.0
        assert first.percent_above_avg == 0
        assert not first.is_high_volume

    def test_normal_bar_colors(self, spike_candles: list[Candle]) -> None:
        """At-average green bars use the normal up color."""
        result = calculate_enhanced_volume(spike_candles)
        assert result.bars[19].color == "#26A69A"
        assert result.analysis[19].relative_volume == pytest.approx(1.0)

    def test_threshold_is_inclusive(self, spike_candles: list[Candle]) -> None:
        """A relative volume equal to the threshold counts as a spike."""
        config = EnhancedVolumeConfig(ma_period=1, high_volume_threshold=1.0)
        result = calculate_enhanced_volume(spike_candles, config)
        assert all(a.is_high_volume for a in result.analysis)
        assert result.bars[0].color == "#00E676"

    def test_ma_line_optional(self, spike_candles: list[Candle]) -> None:
        """show_ma=False omits the MA line but keeps the analysis."""
        result = calculate_enhanced_volume(spike_candles, EnhancedVolumeConfig(show_ma=False))
        assert result.ma == []
        assert len(result.analysis) == 21

    def test_short_period(self, spike_candles: list[Candle]) -> None:
        """A 1-bar window makes every bar its own average."""
        result = calculate_enhanced_volume(spike_candles, EnhancedVolumeConfig(ma_period=1))
        assert all(a.relative_volume == pytest.approx(1.0) for a in result.analysis)
        assert len(result.ma) == 21

    def test_bad_config(self) -> None:
        """ma_period must be positive."""
        with pytest.raises(ValueError, match="Period"):
            EnhancedVolumeConfig(ma_period=0)

    def test_empty(self) -> None:
        """Empty input gives an empty result."""
        result = calculate_enhanced_volume([])
        assert result.bars == [] and result.ma == [] and result.analysis == []
