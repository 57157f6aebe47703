"""Chart study indicators.

All indicators are pure functions: candles + config in, points out.
No state, no side effects, no I/O.
"""

from src.modules.studies.indicators.day_patterns import (
    calculate_first_red_candle,
    calculate_range_breakout,
    latest_first_red_candle,
    latest_range_breakout,
)
from src.modules.studies.indicators.momentum import (
    calculate_hilenga_milenga,
    latest_hilenga_milenga,
)
from src.modules.studies.indicators.renko import (
    calculate_atr,
    calculate_renko,
    default_brick_size,
)
from src.modules.studies.indicators.volume import (
    calculate_enhanced_volume,
    calculate_volume,
    calculate_volume_ma,
)
from src.modules.studies.indicators.vwap import (
    calculate_all_vwaps,
    calculate_anchored_vwap,
    calculate_buy_vwap,
    calculate_sell_vwap,
    calculate_vwap,
    calculate_vwap_bands,
)

__all__ = [
    "calculate_hilenga_milenga",
    "latest_hilenga_milenga",
    "calculate_vwap",
    "calculate_buy_vwap",
    "calculate_sell_vwap",
    "calculate_anchored_vwap",
    "calculate_vwap_bands",
    "calculate_all_vwaps",
    "calculate_volume",
    "calculate_volume_ma",
    "calculate_enhanced_volume",
    "calculate_atr",
    "default_brick_size",
    "calculate_renko",
    "calculate_first_red_candle",
    "latest_first_red_candle",
    "calculate_range_breakout",
    "latest_range_breakout",
]
