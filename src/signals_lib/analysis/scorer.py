"""
Explosion and new-listing scorers for spot crypto pairs.

Explosion Score (0-100, banded sum, capped):
  1. 24h price change:  >25% → 40, >20% → 35, >15% → 30, >10% → 20, >5% → 10
  2. Quote volume:      >5M → 25, >2M → 20, >1M → 15, >500k → 10, >100k → 5
  3. Trade count:       >50k → 10, >20k → 8, >10k → 6, >5k → 4, >1k → 2
  4. RSI bonus:         30 < RSI < 70 → 10, RSI > 70 → 5, RSI ≤ 30 → 0

A pair is an "explosion" at a score of 70 or more.

New Listing Score (0-100):
  trades/1000·20 + quoteVolume/100k·15 + max(0, change)·2 + (change > 10 ? 20 : 0)
  for non-major pairs inside the liquidity/volatility window below.

Usage:
    from signals_lib.analysis.scorer import build_explosion, score_new_listings

    result = build_explosion(ticker, volume_data, closes)
    if result.score >= EXPLOSION_THRESHOLD:
        ...
"""

from __future__ import annotations

from typing import Iterable, Sequence

from signals_lib.analysis.classification import classify_score, holding_timeframe
from signals_lib.analysis.indicators import rsi
from signals_lib.core.models import (
    ExplosionScore,
    NewListingCandidate,
    TickerSnapshot,
    TradeRecommendation,
    VolumeData,
)

EXPLOSION_THRESHOLD = 70
MAX_SCORE = 100

# (exclusive lower bound, points), highest first
PRICE_CHANGE_BANDS: tuple[tuple[float, int], ...] = (
    (25, 40),
    (20, 35),
    (15, 30),
    (10, 20),
    (5, 10),
)
QUOTE_VOLUME_BANDS: tuple[tuple[float, int], ...] = (
    (5_000_000, 25),
    (2_000_000, 20),
    (1_000_000, 15),
    (500_000, 10),
    (100_000, 5),
)
TRADE_COUNT_BANDS: tuple[tuple[float, int], ...] = (
    (50_000, 10),
    (20_000, 8),
    (10_000, 6),
    (5_000, 4),
    (1_000, 2),
)
RSI_HEALTHY_BONUS = 10
RSI_OVERBOUGHT_BONUS = 5

# Well-known majors, excluded from the new-listing scan.  Exact upstream
# symbol format, so membership is a plain string test.
MAJOR_TOKENS: frozenset[str] = frozenset(
    {
        "BTCUSDT",
        "ETHUSDT",
        "BNBUSDT",
        "XRPUSDT",
        "ADAUSDT",
        "SOLUSDT",
        "DOTUSDT",
        "LINKUSDT",
        "LTCUSDT",
        "BCHUSDT",
        "UNIUSDT",
        "MATICUSDT",
        "AVAXUSDT",
        "ATOMUSDT",
        "FTMUSDT",
        "NEARUSDT",
        "ALGOUSDT",
        "XLMUSDT",
        "VETUSDT",
        "ICPUSDT",
        "FILUSDT",
        "TRXUSDT",
        "ETCUSDT",
        "THETAUSDT",
    }
)

# New-listing window (all bounds exclusive)
NEW_LISTING_QUOTE_VOLUME = (50_000, 10_000_000)
NEW_LISTING_TRADES = (500, 100_000)
NEW_LISTING_PRICE_CHANGE = (-50, 200)


def band_points(value: float, bands: Sequence[tuple[float, int]]) -> int:
    """Points of the first band whose lower bound *value* exceeds."""
    for lower, points in bands:
        if value > lower:
            return points
    return 0


def rsi_bonus(rsi_value: float) -> int:
    if 30 < rsi_value < 70:
        return RSI_HEALTHY_BONUS
    if rsi_value > 70:
        return RSI_OVERBOUGHT_BONUS
    # exactly 70 falls in neither band
    return 0


def explosion_score(
    ticker: TickerSnapshot, volume_data: VolumeData, prices: Sequence[float]
) -> int:
    """Weighted banded score in ``[0, 100]``."""
    total = (
        band_points(ticker.price_change_percent, PRICE_CHANGE_BANDS)
        + band_points(volume_data.quote_volume, QUOTE_VOLUME_BANDS)
        + band_points(volume_data.count, TRADE_COUNT_BANDS)
        + rsi_bonus(rsi(prices))
    )
    return max(0, min(MAX_SCORE, total))


def max_attainable_score(price_change_percent: float) -> int:
    """Best score a ticker could reach given only its 24h change."""
    best = (
        band_points(price_change_percent, PRICE_CHANGE_BANDS)
        + QUOTE_VOLUME_BANDS[0][1]
        + TRADE_COUNT_BANDS[0][1]
        + RSI_HEALTHY_BONUS
    )
    return min(MAX_SCORE, best)


def build_explosion(
    ticker: TickerSnapshot, volume_data: VolumeData, prices: Sequence[float]
) -> ExplosionScore:
    score = explosion_score(ticker, volume_data, prices)
    return ExplosionScore(
        symbol=ticker.symbol,
        score=score,
        price_change_percent=ticker.price_change_percent,
        last_price=ticker.last_price,
        recommendation=classify_score(score),
    )


def rank_explosions(
    scores: Iterable[ExplosionScore], threshold: int = EXPLOSION_THRESHOLD
) -> list[ExplosionScore]:
    """Keep scores at or above *threshold*, highest first."""
    kept = [s for s in scores if s.score >= threshold]
    kept.sort(key=lambda s: s.score, reverse=True)
    return kept


# ---------------------------------------------------------------------------
# New listings
# ---------------------------------------------------------------------------


def _inside(value: float, bounds: tuple[float, float]) -> bool:
    return bounds[0] < value < bounds[1]


def is_new_listing_candidate(ticker: TickerSnapshot, quote_asset: str = "USDT") -> bool:
    if not ticker.symbol.endswith(quote_asset) or ticker.symbol == quote_asset:
        return False
    if ticker.symbol in MAJOR_TOKENS:
        return False
    return (
        _inside(ticker.quote_volume, NEW_LISTING_QUOTE_VOLUME)
        and _inside(ticker.count, NEW_LISTING_TRADES)
        and _inside(ticker.price_change_percent, NEW_LISTING_PRICE_CHANGE)
        and ticker.last_price > 0
    )


def new_listing_score(ticker: TickerSnapshot) -> float:
    change = ticker.price_change_percent
    raw = (
        ticker.count / 1000 * 20
        + ticker.quote_volume / 100_000 * 15
        + max(0.0, change) * 2
        + (20 if change > 10 else 0)
    )
    return min(float(MAX_SCORE), raw)


def score_new_listings(
    tickers: Iterable[TickerSnapshot], quote_asset: str = "USDT"
) -> list[NewListingCandidate]:
    """Filter the ticker universe to new-listing candidates, highest first."""
    candidates = [
        NewListingCandidate(
            symbol=t.symbol,
            price=t.last_price,
            volume=t.quote_volume,
            trades=t.count,
            price_change=t.price_change_percent,
            score=new_listing_score(t),
        )
        for t in tickers
        if is_new_listing_candidate(t, quote_asset)
    ]
    candidates.sort(key=lambda c: c.score, reverse=True)
    return candidates


# ---------------------------------------------------------------------------
# Trade levels for the recommendation endpoint
# ---------------------------------------------------------------------------

TARGET_PCT_RANGE = (3.0, 25.0)
STOP_PCT_RANGE = (2.0, 10.0)


def _clamp(value: float, bounds: tuple[float, float]) -> float:
    return max(bounds[0], min(bounds[1], value))


def build_trade_recommendation(
    ticker: TickerSnapshot,
    volume_data: VolumeData,
    prices: Sequence[float],
    volatility_pct: float,
) -> TradeRecommendation:
    """Score a single symbol and derive entry, target and stop levels.

    The target sits two volatilities above the last price and the stop one
    volatility below, each clamped to a sane percentage range.
    """
    score = explosion_score(ticker, volume_data, prices)
    label = classify_score(score)
    target_pct = _clamp(2 * volatility_pct, TARGET_PCT_RANGE)
    stop_pct = _clamp(volatility_pct, STOP_PCT_RANGE)
    price = ticker.last_price
    return TradeRecommendation(
        symbol=ticker.symbol,
        score=score,
        recommendation=label,
        buy_price=price,
        sell_target=price * (1 + target_pct / 100),
        stop_loss=price * (1 - stop_pct / 100),
        confidence=score,
        timeframe=holding_timeframe(label),
        rsi=rsi(prices),
        volatility=volatility_pct,
    )
