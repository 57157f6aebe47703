"""Volume Weighted Average Price family: VWAP, Buy/Sell VWAP, Anchored VWAP, Bands.

Every variant shares one pattern: cumulative (price x volume) over
cumulative volume, restarted at each trading-session boundary.

    VWAP = cumsum(price * volume) / cumsum(volume)
    Typical price (hlc3) = (high + low + close) / 3

Pure functions over ordered candles; no state or side effects.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import StrEnum

import numpy as np
import pandas as pd

from src.modules.studies.candles import CandleInput, to_frame, to_points
from src.modules.studies.sessions import DEFAULT_EXCHANGE, session_keys, session_runs
from src.modules.studies.types import Point

# Share of a bar's volume attributed to the off-side when no order-flow
# split is supplied (e.g. buy volume on a red candle). Kept for parity
# with the dashboard; the value is a heuristic, not derived.
OFF_SIDE_VOLUME_SHARE = 0.4


class PriceSource(StrEnum):
    """Bar price fed into the VWAP accumulator."""

    CLOSE = "close"
    OPEN = "open"
    HIGH = "high"
    LOW = "low"
    HLC3 = "hlc3"

    @classmethod
    def parse(cls, value: str | PriceSource) -> PriceSource:
        """Case-insensitive lookup; anything unrecognised means hlc3."""
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.HLC3


class AnchorType(StrEnum):
    """How the anchored VWAP picks its starting bar."""

    TIME = "time"
    HIGH = "high"
    LOW = "low"
    SESSION = "session"


@dataclass(frozen=True)
class VWAPConfig:
    """Standard VWAP settings.

    Attributes:
        reset_daily: Restart accumulation at each new session.
        exchange: Exchange segment, used when resetting at market open.
        reset_at_market_open: Session boundary is the exchange open time
            instead of midnight (keeps MCX evening sessions whole).
        source: Price fed into the accumulator (default hlc3).
        ignore_volume: Treat every bar as volume 1 (equal weight).
    """

    reset_daily: bool = True
    exchange: str = DEFAULT_EXCHANGE
    reset_at_market_open: bool = False
    source: PriceSource | str = PriceSource.HLC3
    ignore_volume: bool = False


@dataclass(frozen=True)
class AnchoredVWAPConfig:
    """Anchored VWAP settings.

    Attributes:
        anchor_type: TIME, HIGH, LOW or SESSION.
        anchor_time: Unix seconds; required for TIME anchors.
        session_date: Day whose first bar anchors a SESSION VWAP. Defaults
            to the date of the last candle.
        reset_daily: Also restart at each calendar-date change after the anchor.
    """

    anchor_type: AnchorType | str = AnchorType.TIME
    anchor_time: int | None = None
    session_date: date | None = None
    reset_daily: bool = False

    def __post_init__(self) -> None:
        if AnchorType(self.anchor_type) is AnchorType.TIME and self.anchor_time is None:
            raise ValueError("anchor_time is required for a time-anchored VWAP")


@dataclass(frozen=True)
class VWAPBandsConfig:
    """VWAP standard-deviation band settings."""

    std_dev_multiplier: float = 2.0
    reset_daily: bool = True

    def __post_init__(self) -> None:
        if self.std_dev_multiplier < 0:
            raise ValueError(
                f"std_dev_multiplier must be >= 0, got {self.std_dev_multiplier}"
            )


@dataclass(frozen=True)
class VWAPBands:
    """VWAP with +/-1 sigma and +/-multiplier sigma bands."""

    vwap: list[Point] = field(default_factory=list)
    upper_band_1: list[Point] = field(default_factory=list)
    lower_band_1: list[Point] = field(default_factory=list)
    upper_band_2: list[Point] = field(default_factory=list)
    lower_band_2: list[Point] = field(default_factory=list)


@dataclass(frozen=True)
class AllVWAPs:
    """Standard, buy-side and sell-side VWAP computed together."""

    vwap: list[Point] = field(default_factory=list)
    buy_vwap: list[Point] = field(default_factory=list)
    sell_vwap: list[Point] = field(default_factory=list)


def typical_price(df: pd.DataFrame, source: PriceSource | str = PriceSource.HLC3) -> pd.Series:
    """Select the bar price for a VWAP source."""
    source = PriceSource.parse(source)
    if source is PriceSource.HLC3:
        return (df["high"] + df["low"] + df["close"]) / 3.0
    return df[source.value]


def _session_cumsum(values: pd.DataFrame, runs: pd.Series | None) -> pd.DataFrame:
    """Cumulative sums, restarted on each session run when ``runs`` is given."""
    if runs is None:
        return values.cumsum()
    return values.groupby(runs.to_numpy()).cumsum()


def _accumulate(
    df: pd.DataFrame,
    price: pd.Series,
    volume: pd.Series,
    reset_daily: bool,
    reset_at_market_open: bool = False,
    exchange: str = DEFAULT_EXCHANGE,
) -> pd.Series:
    """VWAP over the given bars with session resets."""
    runs = (
        session_runs(session_keys(df["time"], reset_at_market_open, exchange))
        if reset_daily
        else None
    )
    cum = _session_cumsum(pd.DataFrame({"tpv": price * volume, "vol": volume}), runs)
    return (cum["tpv"] / cum["vol"]).where(cum["vol"] > 0, price)


def calculate_vwap(candles: CandleInput, config: VWAPConfig | None = None) -> list[Point]:
    """Calculate session VWAP.

    Zero-volume bars do not accumulate and do not take part in session
    detection: they repeat the previous VWAP value, or their own source
    price when nothing has been emitted yet. With ``ignore_volume`` every
    bar weighs 1 and no bar is zero-volume.

    Args:
        candles: Ordered candles with volume.
        config: VWAP settings (defaults: daily reset at midnight, hlc3).

    Returns:
        One point per candle; empty for empty input.
    """
    config = config or VWAPConfig()
    df = to_frame(candles)
    if df.empty:
        return []

    price = typical_price(df, config.source)
    volume = pd.Series(1.0, index=df.index) if config.ignore_volume else df["volume"]
    active = volume > 0

    vwap = pd.Series(np.nan, index=df.index)
    if active.any():
        vwap.loc[active] = _accumulate(
            df.loc[active],
            price.loc[active],
            volume.loc[active],
            config.reset_daily,
            config.reset_at_market_open,
            config.exchange,
        )

    # Leading zero-volume bars seed the series with their own price
    if pd.isna(vwap.iloc[0]):
        vwap.iloc[0] = price.iloc[0]
    return to_points(df["time"], vwap.ffill())


def _side_vwap(
    candles: CandleInput,
    reset_daily: bool,
    volume_column: str,
    price_column: str,
    fallback_price_column: str,
    bullish_side: bool,
) -> list[Point]:
    df = to_frame(candles)
    if df.empty:
        return []

    is_up = df["close"] >= df["open"]
    on_side = is_up if bullish_side else ~is_up
    estimated = df["volume"].where(on_side, df["volume"] * OFF_SIDE_VOLUME_SHARE)
    side_volume = df[volume_column].fillna(estimated)

    # A zero/missing explicit aggressor price falls back to the bar extreme
    explicit_price = df[price_column]
    side_price = explicit_price.where(
        explicit_price.notna() & (explicit_price != 0), df[fallback_price_column]
    )

    active = side_volume > 0
    vwap = pd.Series(np.nan, index=df.index)
    if active.any():
        vwap.loc[active] = _accumulate(
            df.loc[active], side_price.loc[active], side_volume.loc[active], reset_daily
        )

    # Inactive bars repeat the last value; nothing is emitted before the first one
    return to_points(df["time"], vwap.ffill(), keep_missing=False)


def calculate_buy_vwap(candles: CandleInput, reset_daily: bool = True) -> list[Point]:
    """Calculate Buy VWAP from aggressive (buyer-initiated) volume.

    Uses ``buy_volume`` when the candle carries it. Otherwise a green
    candle gives its full volume to the buy side and a red candle 40%.
    Aggressive buys lift the offer, so the price is ``buy_vwap`` if
    present, else the bar high.

    Returns:
        Points for bars from the first one with buy volume onward.
    """
    return _side_vwap(candles, reset_daily, "buy_volume", "buy_vwap", "high", bullish_side=True)


def calculate_sell_vwap(candles: CandleInput, reset_daily: bool = True) -> list[Point]:
    """Calculate Sell VWAP from aggressive (seller-initiated) volume.

    Mirror of :func:`calculate_buy_vwap`: red candles give full volume,
    green candles 40%, and the price is ``sell_vwap`` or the bar low.
    """
    return _side_vwap(candles, reset_daily, "sell_volume", "sell_vwap", "low", bullish_side=False)


def find_anchor_index(df: pd.DataFrame, config: AnchoredVWAPConfig) -> int:
    """Locate the anchor bar for an anchored VWAP (0 when none qualifies)."""
    anchor_type = AnchorType(config.anchor_type)

    if anchor_type is AnchorType.HIGH:
        return int(df["high"].to_numpy().argmax())
    if anchor_type is AnchorType.LOW:
        return int(df["low"].to_numpy().argmin())

    if anchor_type is AnchorType.SESSION:
        dates = pd.to_datetime(df["time"], unit="s").dt.date
        target = config.session_date or dates.iloc[-1]
        matches = np.flatnonzero((dates == target).to_numpy())
    else:
        matches = np.flatnonzero((df["time"] >= config.anchor_time).to_numpy())

    return int(matches[0]) if len(matches) else 0


def calculate_anchored_vwap(
    candles: CandleInput,
    config: AnchoredVWAPConfig,
) -> list[Point]:
    """Calculate VWAP accumulated from an anchor bar.

    Bars before the anchor get ``value=None``. After the anchor a
    zero-volume bar shows the running VWAP, or its own typical price
    before any volume has accumulated.

    Args:
        candles: Ordered candles.
        config: Anchor selection.

    Returns:
        One point per candle; empty for empty input.
    """
    df = to_frame(candles)
    if df.empty:
        return []

    anchor = find_anchor_index(df, config)
    tail = df.iloc[anchor:]
    price = typical_price(tail)

    vwap = _accumulate(tail, price, tail["volume"], config.reset_daily)
    values = pd.concat([pd.Series(np.nan, index=df.index[:anchor]), vwap])
    return to_points(df["time"], values)


def calculate_vwap_bands(
    candles: CandleInput,
    config: VWAPBandsConfig | None = None,
) -> VWAPBands:
    """Calculate VWAP with volume-weighted standard deviation bands.

    variance = cumsum(P^2 * V) / cumsum(V) - VWAP^2, clamped at zero so
    floating-point drift never reaches sqrt as a negative number.

    A zero-volume bar repeats the previous VWAP on all five lines (None
    before any volume).

    Args:
        candles: Ordered candles.
        config: Band multiplier and reset settings.

    Returns:
        VWAPBands with five aligned lines, one point per candle.
    """
    config = config or VWAPBandsConfig()
    df = to_frame(candles)
    if df.empty:
        return VWAPBands()

    price = typical_price(df)
    volume = df["volume"]
    active = volume > 0

    vwap = pd.Series(np.nan, index=df.index)
    std_dev = pd.Series(np.nan, index=df.index)

    if active.any():
        bars = df.loc[active]
        p, v = price.loc[active], volume.loc[active]
        runs = session_runs(session_keys(bars["time"])) if config.reset_daily else None
        cum = _session_cumsum(pd.DataFrame({"tpv": p * v, "tp2v": p * p * v, "vol": v}), runs)

        active_vwap = cum["tpv"] / cum["vol"]
        variance = (cum["tp2v"] / cum["vol"] - active_vwap**2).clip(lower=0.0)
        vwap.loc[active] = active_vwap
        std_dev.loc[active] = np.sqrt(variance)

    vwap = vwap.ffill()
    # Carried-forward bars collapse the bands onto the VWAP
    std_dev = std_dev.where(active, 0.0)
    multiplier = config.std_dev_multiplier
    times = df["time"]

    return VWAPBands(
        vwap=to_points(times, vwap),
        upper_band_1=to_points(times, vwap + std_dev),
        lower_band_1=to_points(times, vwap - std_dev),
        upper_band_2=to_points(times, vwap + std_dev * multiplier),
        lower_band_2=to_points(times, vwap - std_dev * multiplier),
    )


def calculate_all_vwaps(candles: CandleInput, reset_daily: bool = True) -> AllVWAPs:
    """Calculate standard, buy and sell VWAP in one call."""
    return AllVWAPs(
        vwap=calculate_vwap(candles, VWAPConfig(reset_daily=reset_daily)),
        buy_vwap=calculate_buy_vwap(candles, reset_daily),
        sell_vwap=calculate_sell_vwap(candles, reset_daily),
    )
