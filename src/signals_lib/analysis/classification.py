"""
Score → recommendation and RSI → trend labels.

The two classifications are independent: recommendation endpoints use
the score bands, analysis endpoints use the RSI trend.
"""

from __future__ import annotations

from signals_lib.core.models import Recommendation, Trend

# Highest threshold first; first match wins
RECOMMENDATION_BANDS: tuple[tuple[float, Recommendation], ...] = (
    (85, Recommendation.IMMEDIATE_BUY),
    (70, Recommendation.STRONG_BUY),
    (50, Recommendation.WATCH),
    (35, Recommendation.MONITOR),
)

RSI_OVERBOUGHT = 70.0
RSI_OVERSOLD = 30.0

TIMEFRAMES: dict[Recommendation, str] = {
    Recommendation.IMMEDIATE_BUY: "1-6h",
    Recommendation.STRONG_BUY: "6-24h",
    Recommendation.WATCH: "1-3d",
    Recommendation.MONITOR: "3-7d",
    Recommendation.AVOID: "n/a",
}


def classify_score(score: float) -> Recommendation:
    for threshold, label in RECOMMENDATION_BANDS:
        if score >= threshold:
            return label
    return Recommendation.AVOID


def classify_trend(rsi_value: float) -> Trend:
    if rsi_value > RSI_OVERBOUGHT:
        return Trend.OVERBOUGHT
    if rsi_value < RSI_OVERSOLD:
        return Trend.OVERSOLD
    return Trend.NEUTRAL


def holding_timeframe(recommendation: Recommendation) -> str:
    return TIMEFRAMES[recommendation]
