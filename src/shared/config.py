"""Configuration loader for Candle Studies.

Loads configuration from environment variables with sensible defaults.
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Config:
    """Study configuration loaded from environment variables.

    Attributes:
        exchange: Default exchange segment for session resets (NSE, MCX, ...).
        market_open: Regular session open as (hour, minute), exchange-local.
        market_close: Regular session close as (hour, minute), exchange-local.
        log_level: Logging level name for the study engine.
        environment: Current environment (dev/prod).
    """

    exchange: str
    market_open: tuple[int, int]
    market_close: tuple[int, int]
    log_level: str
    environment: str


def parse_clock(value: str) -> tuple[int, int]:
    """Parse an ``HH:MM`` string into an (hour, minute) tuple.

    Args:
        value: Clock string such as "09:15".

    Returns:
        (hour, minute) tuple.

    Raises:
        ValueError: If the string is not a valid 24-hour clock time.
    """
    parts = value.strip().split(":")
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        raise ValueError(f"Expected HH:MM clock time, got {value!r}")

    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour < 24 and 0 <= minute < 60):
        raise ValueError(f"Clock time out of range: {value!r}")
    return hour, minute


def load_config() -> Config:
    """Load configuration from environment variables.

    Returns:
        Config object with all settings.

    Raises:
        ValueError: If MARKET_OPEN or MARKET_CLOSE is malformed.
    """
    return Config(
        exchange=os.getenv("STUDIES_EXCHANGE", "NSE").upper(),
        market_open=parse_clock(os.getenv("MARKET_OPEN", "09:15")),
        market_close=parse_clock(os.getenv("MARKET_CLOSE", "15:30")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        environment=os.getenv("ENVIRONMENT", "dev"),
    )
