"""
Request-scoped data types shared by the client, scorer and API layers.

All of these are produced fresh per request and discarded afterwards;
only the caches in ``signals_lib.core.cache`` outlive a request.
Numeric fields are kept as floats here and rendered to fixed-precision
strings by ``to_payload()`` at the HTTP boundary.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


def fmt_price(value: float) -> str:
    return f"{value:.6f}"


def fmt_pct(value: float) -> str:
    return f"{value:.2f}"


class Recommendation(str, Enum):
    """Score-based action label, strongest first."""

    IMMEDIATE_BUY = "IMMEDIATE_BUY"
    STRONG_BUY = "STRONG_BUY"
    WATCH = "WATCH"
    MONITOR = "MONITOR"
    AVOID = "AVOID"


class Trend(str, Enum):
    """RSI-based momentum label."""

    OVERBOUGHT = "Overbought"
    OVERSOLD = "Oversold"
    NEUTRAL = "Neutral"


@dataclass(frozen=True)
class TickerSnapshot:
    """24h rolling summary for one trading pair."""

    symbol: str
    last_price: float
    price_change_percent: float
    volume: float
    quote_volume: float
    count: int


@dataclass(frozen=True)
class VolumeData:
    """Volume figures used by the explosion score.

    Looked up per candidate; a failed lookup degrades to ``VolumeData.zero()``.
    """

    volume: float = 0.0
    quote_volume: float = 0.0
    count: int = 0

    @classmethod
    def zero(cls) -> "VolumeData":
        return cls()

    @classmethod
    def from_ticker(cls, ticker: TickerSnapshot) -> "VolumeData":
        return cls(
            volume=ticker.volume,
            quote_volume=ticker.quote_volume,
            count=ticker.count,
        )


@dataclass(frozen=True)
class MACDResult:
    macd: float = 0.0
    signal: float = 0.0
    histogram: float = 0.0

    def to_payload(self) -> dict[str, str]:
        return {
            "macd": f"{self.macd:.6f}",
            "signal": f"{self.signal:.6f}",
            "histogram": f"{self.histogram:.6f}",
        }


@dataclass(frozen=True)
class ExplosionScore:
    symbol: str
    score: int
    price_change_percent: float
    last_price: float
    recommendation: Recommendation = Recommendation.AVOID

    def to_payload(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "score": self.score,
            "priceChangePercent": fmt_pct(self.price_change_percent),
            "lastPrice": fmt_price(self.last_price),
            "recommendation": self.recommendation.value,
        }


@dataclass(frozen=True)
class NewListingCandidate:
    symbol: str
    price: float
    volume: float
    trades: int
    price_change: float
    score: float

    def to_payload(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "price": fmt_price(self.price),
            "volume": fmt_pct(self.volume),
            "trades": self.trades,
            "priceChange": fmt_pct(self.price_change),
            "score": fmt_pct(self.score),
        }


@dataclass(frozen=True)
class SymbolAnalysis:
    symbol: str
    price: float
    rsi: float
    macd: MACDResult
    volatility: float
    trend: Trend

    def to_payload(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "price": fmt_price(self.price),
            "rsi": fmt_pct(self.rsi),
            "macd": self.macd.to_payload(),
            "volatility": fmt_pct(self.volatility),
            "trend": self.trend.value,
        }


@dataclass(frozen=True)
class TradeRecommendation:
    symbol: str
    score: int
    recommendation: Recommendation
    buy_price: float
    sell_target: float
    stop_loss: float
    confidence: int
    timeframe: str
    rsi: float
    volatility: float

    def to_payload(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "score": self.score,
            "recommendation": self.recommendation.value,
            "buyPrice": fmt_price(self.buy_price),
            "sellTarget": fmt_price(self.sell_target),
            "stopLoss": fmt_price(self.stop_loss),
            "confidence": f"{self.confidence}%",
            "timeframe": self.timeframe,
            "rsi": fmt_pct(self.rsi),
            "volatility": fmt_pct(self.volatility),
        }
