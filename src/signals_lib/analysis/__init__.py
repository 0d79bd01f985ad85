"""
signals_lib.analysis — indicator, scoring and classification modules.

    from signals_lib.analysis import rsi, macd, explosion_score, classify_score
"""

from signals_lib.analysis.classification import classify_score, classify_trend
from signals_lib.analysis.indicators import ema, macd, rsi, volatility
from signals_lib.analysis.scorer import (
    EXPLOSION_THRESHOLD,
    MAJOR_TOKENS,
    explosion_score,
    score_new_listings,
)

__all__ = [
    # classification
    "classify_score",
    "classify_trend",
    # indicators
    "ema",
    "macd",
    "rsi",
    "volatility",
    # scorer
    "EXPLOSION_THRESHOLD",
    "MAJOR_TOKENS",
    "explosion_score",
    "score_new_listings",
]
