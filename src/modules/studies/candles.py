"""Candle input normalization and Point output helpers.

Studies accept candles as Candle records, plain mappings, or a DataFrame.
These helpers convert any of them to the shape a study computes on, and
convert computed Series back into Point lists.

Records are validated as Candles on the way in; a corrupt record raises
ValueError rather than being skipped.
"""

from collections.abc import Mapping, Sequence
from typing import Union

import numpy as np
import pandas as pd

from src.modules.studies.types import Candle, Point

CandleInput = Union[Sequence[Candle], Sequence[Mapping], pd.DataFrame, None]

PRICE_COLUMNS = ["open", "high", "low", "close"]
FLOW_COLUMNS = ["buy_volume", "sell_volume", "buy_vwap", "sell_vwap"]
FRAME_COLUMNS = ["time", *PRICE_COLUMNS, "volume", *FLOW_COLUMNS]


def _empty_frame() -> pd.DataFrame:
    return pd.DataFrame({col: pd.Series(dtype=float) for col in FRAME_COLUMNS})


def _is_record_sequence(candles: object) -> bool:
    return isinstance(candles, Sequence) and not isinstance(candles, (str, bytes))


def to_candles(candles: CandleInput) -> list[Candle]:
    """Normalize any supported candle input to a list of Candle records.

    Args:
        candles: Candle records, mappings, or a candle DataFrame.

    Returns:
        List of Candle. Empty for None or any non-sequence input.

    Raises:
        ValueError: If a record is missing a required OHLC field.
    """
    if isinstance(candles, pd.DataFrame):
        if candles.empty:
            return []
        frame = to_frame(candles)
        records = frame.astype(object).where(frame.notna(), None).to_dict("records")
        return [Candle.from_mapping(r) for r in records]

    if not _is_record_sequence(candles):
        return []

    return [c if isinstance(c, Candle) else Candle.from_mapping(c) for c in candles]


def to_frame(candles: CandleInput) -> pd.DataFrame:
    """Normalize any supported candle input to a candle DataFrame.

    The result has a RangeIndex and the columns time, open, high, low,
    close, volume, buy_volume, sell_volume, buy_vwap, sell_vwap. Missing
    volume is 0.0; missing order-flow fields are NaN.

    A DataFrame without a ``time`` column but with a DatetimeIndex takes
    its times from the index.

    Args:
        candles: Candle records, mappings, or a candle DataFrame.

    Returns:
        New DataFrame (the input is never modified). Empty for None or
        any non-sequence input.

    Raises:
        ValueError: If required columns or fields are missing.
    """
    if isinstance(candles, pd.DataFrame):
        df = candles.copy()
        if "time" not in df.columns and isinstance(df.index, pd.DatetimeIndex):
            df["time"] = df.index.as_unit("s").asi8
        missing = {"time", *PRICE_COLUMNS} - set(df.columns)
        if missing:
            raise ValueError(f"Missing required columns: {missing}")
    elif _is_record_sequence(candles):
        if len(candles) == 0:
            return _empty_frame()
        df = pd.DataFrame([c.to_dict() for c in to_candles(candles)])
    else:
        return _empty_frame()

    for col in FLOW_COLUMNS:
        if col not in df.columns:
            df[col] = np.nan
    if "volume" not in df.columns:
        df["volume"] = 0.0

    df = df[FRAME_COLUMNS].reset_index(drop=True)
    df["time"] = df["time"].astype("int64")
    df[PRICE_COLUMNS] = df[PRICE_COLUMNS].astype(float)
    df["volume"] = df["volume"].astype(float).fillna(0.0)
    df[FLOW_COLUMNS] = df[FLOW_COLUMNS].astype(float)
    return df


def to_points(times: pd.Series, values: pd.Series, keep_missing: bool = True) -> list[Point]:
    """Zip a time Series and a value Series into Points.

    NaN values become ``None`` so the output is JSON-safe.

    Args:
        times: Unix-second timestamps.
        values: Values aligned positionally with ``times``.
        keep_missing: If False, drop points whose value is missing.

    Returns:
        List of Point in input order.
    """
    points = []
    for t, v in zip(times.tolist(), values.tolist()):
        if v is None or (isinstance(v, float) and np.isnan(v)):
            if keep_missing:
                points.append(Point(time=int(t), value=None))
            continue
        points.append(Point(time=int(t), value=float(v)))
    return points
