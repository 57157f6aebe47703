"""Record types shared by every chart study.

Inputs are Candle records; outputs are Point series or the richer
Level / Marker / RenkoBrick records. All records are immutable and
serialize to plain dicts for JSON transport to a chart front end.

A Candle rejects itself on construction when a required OHLC field is
missing or high < low. Studies let that ValueError propagate, so one
corrupt bar fails the whole call instead of being silently dropped.
Missing input (None, a string, any non-sequence) is different: it gives
an empty result.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import asdict, dataclass
from typing import Any

# camelCase keys as emitted by the broker market-data API
_FIELD_ALIASES: dict[str, str] = {
    "buyVolume": "buy_volume",
    "sellVolume": "sell_volume",
    "buyVwap": "buy_vwap",
    "sellVwap": "sell_vwap",
}

_REQUIRED_FIELDS = ("time", "open", "high", "low", "close")
_OPTIONAL_FIELDS = ("buy_volume", "sell_volume", "buy_vwap", "sell_vwap")


def _optional_float(value: Any) -> float | None:
    if value is None:
        return None
    return float(value)


@dataclass(slots=True, frozen=True)
class Candle:
    """A single OHLCV bar.

    Attributes:
        time:   Unix timestamp (seconds), interpreted as if UTC were the
                exchange-local wall clock.
        open:   Opening price.
        high:   Highest price during the bar.
        low:    Lowest price during the bar.
        close:  Closing price.
        volume: Traded volume (0 when the feed carries none).
        buy_volume:  Aggressive buy volume, when the feed provides order flow.
        sell_volume: Aggressive sell volume, when the feed provides order flow.
        buy_vwap:    Average aggressive buy price, when provided.
        sell_vwap:   Average aggressive sell price, when provided.
    """

    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float = 0.0
    buy_volume: float | None = None
    sell_volume: float | None = None
    buy_vwap: float | None = None
    sell_vwap: float | None = None

    def __post_init__(self) -> None:
        if self.high < self.low:
            raise ValueError(f"high ({self.high}) must be >= low ({self.low})")

    @property
    def is_up(self) -> bool:
        """True for a bullish (or unchanged) bar."""
        return self.close >= self.open

    @classmethod
    def from_mapping(cls, item: Mapping[str, Any]) -> Candle:
        """Build a Candle from a dict-like record.

        Args:
            item: Mapping with time/open/high/low/close and optional volume
                and order-flow fields (snake_case or camelCase).

        Returns:
            Parsed Candle.

        Raises:
            ValueError: If a required OHLC field is missing.
        """
        data = {_FIELD_ALIASES.get(k, k): v for k, v in item.items()}

        missing = [f for f in _REQUIRED_FIELDS if data.get(f) is None]
        if missing:
            raise ValueError(f"Candle record missing fields: {missing}")

        return cls(
            time=int(data["time"]),
            open=float(data["open"]),
            high=float(data["high"]),
            low=float(data["low"]),
            close=float(data["close"]),
            volume=float(data.get("volume") or 0.0),
            **{f: _optional_float(data.get(f)) for f in _OPTIONAL_FIELDS},
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True, frozen=True)
class Point:
    """One sample of a line series. ``value=None`` means no data yet."""

    time: int
    value: float | None

    def to_dict(self) -> dict[str, Any]:
        return {"time": self.time, "value": self.value}


@dataclass(slots=True, frozen=True)
class ColoredPoint:
    """Histogram sample with its own bar color."""

    time: int
    value: float
    color: str

    def to_dict(self) -> dict[str, Any]:
        return {"time": self.time, "value": self.value, "color": self.color}


@dataclass(slots=True, frozen=True)
class Level:
    """A per-day high/low level drawn from start_time to end_time."""

    high: float
    low: float
    date: str
    start_time: int
    end_time: int

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True, frozen=True)
class Marker:
    """A chart annotation pinned to one bar."""

    time: int
    position: str
    color: str
    shape: str
    text: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(slots=True, frozen=True)
class RenkoBrick:
    """A Renko brick. ``time`` is synthetic and strictly increasing."""

    time: int
    open: float
    high: float
    low: float
    close: float

    @property
    def is_up(self) -> bool:
        return self.close >= self.open

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
