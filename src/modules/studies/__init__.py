"""Study Engine: orchestrates chart study computation.

Turns ordered OHLCV candles into derived series (RSI composites, VWAP
family, volume analytics, Renko bricks, day-pattern levels).
"""

from src.modules.studies.engine import StudyEngine
from src.modules.studies.types import Candle, Point

__all__ = ["StudyEngine", "Candle", "Point"]
