"""Study Engine: orchestrates chart study computation.

Runs any subset of the registered studies over one candle sequence and
returns their results keyed by study name. This is the single entry
point a chart front end or worker uses to refresh its overlays.
"""

from collections.abc import Callable, Iterable
from typing import Any

import pandas as pd

from src.modules.studies.candles import CandleInput, to_frame
from src.modules.studies.indicators.day_patterns import (
    FirstCandleConfig,
    RangeBreakoutConfig,
    calculate_first_red_candle,
    calculate_range_breakout,
)
from src.modules.studies.indicators.momentum import calculate_hilenga_milenga
from src.modules.studies.indicators.renko import calculate_renko
from src.modules.studies.indicators.volume import (
    calculate_enhanced_volume,
    calculate_volume,
    calculate_volume_ma,
)
from src.modules.studies.indicators.vwap import (
    AnchoredVWAPConfig,
    AnchorType,
    VWAPConfig,
    calculate_anchored_vwap,
    calculate_buy_vwap,
    calculate_sell_vwap,
    calculate_vwap,
    calculate_vwap_bands,
)
from src.shared.config import Config, load_config
from src.shared.logger import get_logger

StudyFn = Callable[[pd.DataFrame], Any]


class StudyEngine:
    """Computes chart studies for a candle sequence.

    Exchange and market-hours settings come from Config: VWAP sessions
    start at the configured exchange's open, and the day-pattern studies
    use the configured market hours. Every other study setting uses the
    study's defaults.

    Usage:
        engine = StudyEngine()
        results = engine.compute(candles, studies=["vwap", "renko"])
    """

    def __init__(self, config: Config | None = None) -> None:
        """Initialize StudyEngine.

        Args:
            config: Study configuration (loaded from the environment if None).
        """
        self._config = config or load_config()
        self._logger = get_logger(__name__, self._config.log_level)
        self._registry: dict[str, StudyFn] = self._build_registry()

    @property
    def studies(self) -> list[str]:
        """Names of all registered studies, in computation order."""
        return list(self._registry)

    def _build_registry(self) -> dict[str, StudyFn]:
        cfg = self._config
        vwap_config = VWAPConfig(exchange=cfg.exchange, reset_at_market_open=True)
        session_bounds = {"market_open": cfg.market_open, "market_close": cfg.market_close}

        return {
            "hilenga_milenga": calculate_hilenga_milenga,
            "vwap": lambda df: calculate_vwap(df, vwap_config),
            "buy_vwap": calculate_buy_vwap,
            "sell_vwap": calculate_sell_vwap,
            "anchored_vwap": lambda df: calculate_anchored_vwap(
                df, AnchoredVWAPConfig(anchor_type=AnchorType.SESSION)
            ),
            "vwap_bands": calculate_vwap_bands,
            "volume": calculate_volume,
            "volume_ma": calculate_volume_ma,
            "enhanced_volume": calculate_enhanced_volume,
            "renko": calculate_renko,
            "first_red_candle": lambda df: calculate_first_red_candle(
                df, FirstCandleConfig(**session_bounds)
            ),
            "range_breakout": lambda df: calculate_range_breakout(
                df, RangeBreakoutConfig(**session_bounds)
            ),
        }

    def compute(
        self,
        candles: CandleInput,
        studies: str | Iterable[str] | None = None,
    ) -> dict[str, Any]:
        """Compute the requested studies.

        Args:
            candles: Ordered candles (records, mappings or DataFrame).
            studies: Study names to run, or a single name; all registered
                studies if None.

        Returns:
            Dict of study name -> study result, in request order.

        Raises:
            ValueError: If a study name is not registered.
        """
        if studies is None:
            names = self.studies
        elif isinstance(studies, str):
            names = [studies]
        else:
            names = list(studies)

        unknown = [name for name in names if name not in self._registry]
        if unknown:
            raise ValueError(f"Unknown study: {', '.join(unknown)}")

        df = to_frame(candles)
        results = {name: self._registry[name](df) for name in names}

        self._logger.info(
            f"Computed {len(results)} studies for {len(df)} bars",
            extra={"extra": {"studies": names, "bars": len(df), "exchange": self._config.exchange}},
        )
        return results
