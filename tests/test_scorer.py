"""
Tests for the scoring engine (analysis/scorer.py).

Covers:
  - band_points(): strict lower bounds, first match wins
  - rsi_bonus(): healthy / overbought / oversold bands and the RSI=70 edge
  - explosion_score(): worked example, [0, 100] bounds, monotonicity in
    price change, quote volume and trade count
  - max_attainable_score(): threshold reachability used by the scan pre-filter
  - build_explosion() / rank_explosions(): labels, threshold and ordering
  - New listings: quote-asset and majors exclusion, exclusive numeric
    window, score formula and cap, ordering
  - build_trade_recommendation(): target / stop clamping and timeframe
"""

import pytest
from conftest import _alternating_closes, _falling_closes, _rising_closes

from signals_lib.analysis.scorer import (
    EXPLOSION_THRESHOLD,
    MAJOR_TOKENS,
    PRICE_CHANGE_BANDS,
    QUOTE_VOLUME_BANDS,
    TRADE_COUNT_BANDS,
    band_points,
    build_explosion,
    build_trade_recommendation,
    explosion_score,
    is_new_listing_candidate,
    max_attainable_score,
    new_listing_score,
    rank_explosions,
    rsi_bonus,
    score_new_listings,
)
from signals_lib.core.models import (
    ExplosionScore,
    Recommendation,
    TickerSnapshot,
    VolumeData,
)


def _ticker(
    symbol: str = "ABCUSDT",
    last_price: float = 1.0,
    change: float = 0.0,
    quote_volume: float = 0.0,
    count: int = 0,
    volume: float = 0.0,
) -> TickerSnapshot:
    return TickerSnapshot(
        symbol=symbol,
        last_price=last_price,
        price_change_percent=change,
        volume=volume,
        quote_volume=quote_volume,
        count=count,
    )


NEUTRAL = _alternating_closes(30)  # RSI exactly 50


# ---------------------------------------------------------------------------
# Bands
# ---------------------------------------------------------------------------


class TestBands:
    @pytest.mark.parametrize(
        "change,points",
        [(30, 40), (25.01, 40), (25, 35), (20.5, 35), (16, 30), (15, 20),
         (11, 20), (10, 10), (6, 10), (5, 0), (0, 0), (-20, 0)],
    )
    def test_price_change(self, change, points):
        assert band_points(change, PRICE_CHANGE_BANDS) == points

    @pytest.mark.parametrize(
        "quote_volume,points",
        [(6e6, 25), (5e6, 20), (2.5e6, 20), (1.5e6, 15), (600e3, 10),
         (500e3, 5), (150e3, 5), (100e3, 0), (0, 0)],
    )
    def test_quote_volume(self, quote_volume, points):
        assert band_points(quote_volume, QUOTE_VOLUME_BANDS) == points

    @pytest.mark.parametrize(
        "count,points",
        [(60_000, 10), (50_000, 8), (25_000, 8), (15_000, 6), (6_000, 4),
         (2_000, 2), (1_000, 0), (0, 0)],
    )
    def test_trade_count(self, count, points):
        assert band_points(count, TRADE_COUNT_BANDS) == points

    @pytest.mark.parametrize(
        "value,bonus",
        [(50, 10), (30.01, 10), (69.99, 10), (70, 0), (70.01, 5), (100, 5),
         (30, 0), (10, 0), (0, 0)],
    )
    def test_rsi_bonus(self, value, bonus):
        assert rsi_bonus(value) == bonus


# ---------------------------------------------------------------------------
# Explosion score
# ---------------------------------------------------------------------------


class TestExplosionScore:
    def test_worked_example_is_immediate_buy(self):
        ticker = _ticker(change=30)
        volume = VolumeData(quote_volume=6_000_000, count=60_000)
        result = build_explosion(ticker, volume, NEUTRAL)
        assert result.score == 40 + 25 + 10 + 10 == 85
        assert result.recommendation is Recommendation.IMMEDIATE_BUY

    def test_overbought_rsi_gets_partial_credit(self):
        volume = VolumeData(quote_volume=6_000_000, count=60_000)
        assert explosion_score(_ticker(change=30), volume, _rising_closes(30)) == 80

    def test_oversold_rsi_gets_nothing(self):
        volume = VolumeData(quote_volume=6_000_000, count=60_000)
        assert explosion_score(_ticker(change=30), volume, _falling_closes(30)) == 75

    def test_missing_prices_use_neutral_rsi(self):
        assert explosion_score(_ticker(), VolumeData.zero(), []) == 10

    def test_zero_volume_data(self):
        assert explosion_score(_ticker(change=26), VolumeData.zero(), NEUTRAL) == 50

    def test_bounded(self):
        for change in (-100, 0, 12, 50, 1000):
            for qv in (0, 2e5, 3e6, 1e9):
                for count in (0, 3_000, 1_000_000):
                    score = explosion_score(
                        _ticker(change=change),
                        VolumeData(quote_volume=qv, count=count),
                        NEUTRAL,
                    )
                    assert 0 <= score <= 100

    def test_monotonic_in_price_change(self):
        volume = VolumeData(quote_volume=1.5e6, count=12_000)
        scores = [
            explosion_score(_ticker(change=c), volume, NEUTRAL)
            for c in range(-10, 60)
        ]
        assert scores == sorted(scores)

    def test_monotonic_in_quote_volume(self):
        scores = [
            explosion_score(
                _ticker(change=12), VolumeData(quote_volume=qv, count=12_000), NEUTRAL
            )
            for qv in range(0, 8_000_000, 50_000)
        ]
        assert scores == sorted(scores)

    def test_monotonic_in_trade_count(self):
        scores = [
            explosion_score(
                _ticker(change=12), VolumeData(quote_volume=1.5e6, count=n), NEUTRAL
            )
            for n in range(0, 70_000, 500)
        ]
        assert scores == sorted(scores)


class TestMaxAttainableScore:
    def test_fifteen_percent_cannot_explode(self):
        assert max_attainable_score(15) < EXPLOSION_THRESHOLD

    def test_above_fifteen_percent_can_explode(self):
        assert max_attainable_score(15.01) >= EXPLOSION_THRESHOLD

    def test_upper_bound_holds(self):
        volume = VolumeData(quote_volume=1e9, count=10**7)
        for change in (0, 7, 12, 17, 22, 40):
            ticker = _ticker(change=change)
            assert explosion_score(ticker, volume, NEUTRAL) <= max_attainable_score(change)


class TestRankExplosions:
    def test_threshold_and_order(self):
        scores = [
            ExplosionScore("A", 72, 16.0, 1.0),
            ExplosionScore("B", 69, 30.0, 1.0),
            ExplosionScore("C", 95, 40.0, 1.0),
            ExplosionScore("D", 70, 21.0, 1.0),
        ]
        ranked = rank_explosions(scores)
        assert [s.symbol for s in ranked] == ["C", "A", "D"]

    def test_empty(self):
        assert rank_explosions([]) == []


# ---------------------------------------------------------------------------
# New listings
# ---------------------------------------------------------------------------


def _listing(symbol: str = "NEWUSDT", **overrides) -> TickerSnapshot:
    fields = dict(last_price=0.5, change=12.0, quote_volume=200_000, count=2_000)
    fields.update(overrides)
    return _ticker(symbol=symbol, **fields)


class TestNewListingFilter:
    def test_qualifies(self):
        assert is_new_listing_candidate(_listing())

    @pytest.mark.parametrize("symbol", sorted(MAJOR_TOKENS))
    def test_majors_excluded_even_when_thresholds_met(self, symbol):
        assert not is_new_listing_candidate(_listing(symbol=symbol))

    def test_membership_is_exact(self):
        assert not is_new_listing_candidate(_listing(symbol="BTCUSDT"))
        assert is_new_listing_candidate(_listing(symbol="WBTCUSDT"))

    def test_other_quote_assets_excluded(self):
        assert not is_new_listing_candidate(_listing(symbol="NEWBTC"))
        assert not is_new_listing_candidate(_listing(symbol="USDT"))

    def test_custom_quote_asset(self):
        assert is_new_listing_candidate(_listing(symbol="NEWFDUSD"), quote_asset="FDUSD")

    @pytest.mark.parametrize(
        "overrides",
        [
            {"quote_volume": 50_000},
            {"quote_volume": 10_000_000},
            {"count": 500},
            {"count": 100_000},
            {"change": -50},
            {"change": 200},
            {"last_price": 0.0},
        ],
    )
    def test_bounds_are_exclusive(self, overrides):
        assert not is_new_listing_candidate(_listing(**overrides))

    @pytest.mark.parametrize(
        "overrides",
        [
            {"quote_volume": 50_001},
            {"quote_volume": 9_999_999},
            {"count": 501},
            {"count": 99_999},
            {"change": -49.9},
            {"change": 199.9},
        ],
    )
    def test_just_inside_bounds(self, overrides):
        assert is_new_listing_candidate(_listing(**overrides))


class TestNewListingScore:
    def test_formula(self):
        ticker = _listing(count=1_000, quote_volume=100_000, change=5.0)
        assert new_listing_score(ticker) == pytest.approx(20 + 15 + 10)

    def test_momentum_bonus(self):
        ticker = _listing(count=600, quote_volume=60_000, change=11.0)
        assert new_listing_score(ticker) == pytest.approx(12 + 9 + 22 + 20)

    def test_negative_change_adds_nothing(self):
        ticker = _listing(count=600, quote_volume=60_000, change=-10.0)
        assert new_listing_score(ticker) == pytest.approx(12 + 9)

    def test_capped_at_100(self):
        assert new_listing_score(_listing(count=2_000, quote_volume=200_000)) == 100.0

    def test_ranked_descending(self):
        tickers = [
            _listing("LOWUSDT", count=600, quote_volume=60_000, change=0.0),
            _listing("BTCUSDT"),
            _listing("MIDUSDT", count=1_000, quote_volume=100_000, change=5.0),
            _listing("TOPUSDT", count=3_000, quote_volume=300_000, change=30.0),
            _listing("OLDBTC"),
        ]
        ranked = score_new_listings(tickers)
        assert [c.symbol for c in ranked] == ["TOPUSDT", "MIDUSDT", "LOWUSDT"]
        assert ranked[0].score == 100.0
        assert ranked[1].trades == 1_000
        assert ranked[1].volume == 100_000


# ---------------------------------------------------------------------------
# Trade recommendation
# ---------------------------------------------------------------------------


class TestTradeRecommendation:
    def _build(self, volatility_pct: float, change: float = 30.0):
        ticker = _ticker(last_price=2.0, change=change)
        volume = VolumeData(quote_volume=6_000_000, count=60_000)
        return build_trade_recommendation(ticker, volume, NEUTRAL, volatility_pct)

    def test_levels_scale_with_volatility(self):
        rec = self._build(5.0)
        assert rec.buy_price == 2.0
        assert rec.sell_target == pytest.approx(2.0 * 1.10)
        assert rec.stop_loss == pytest.approx(2.0 * 0.95)

    def test_levels_clamped_low(self):
        rec = self._build(0.0)
        assert rec.sell_target == pytest.approx(2.0 * 1.03)
        assert rec.stop_loss == pytest.approx(2.0 * 0.98)

    def test_levels_clamped_high(self):
        rec = self._build(40.0)
        assert rec.sell_target == pytest.approx(2.0 * 1.25)
        assert rec.stop_loss == pytest.approx(2.0 * 0.90)

    def test_label_confidence_and_timeframe(self):
        rec = self._build(5.0)
        assert rec.score == 85
        assert rec.confidence == 85
        assert rec.recommendation is Recommendation.IMMEDIATE_BUY
        assert rec.timeframe == "1-6h"
        assert rec.rsi == pytest.approx(50.0)

    def test_flat_price_is_monitor(self):
        rec = self._build(5.0, change=0.0)
        assert rec.score == 25 + 10 + 10
        assert rec.recommendation is Recommendation.MONITOR
        assert rec.timeframe == "3-7d"
