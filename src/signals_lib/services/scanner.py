"""
Market scanner — turns exchange snapshots into ranked signals.

Owns the market-data client and both caches for the life of the process;
the FastAPI app builds one instance at startup and hands it to the routers
through ``app.state``.

Flow per request:
    BinanceClient → (snapshot cache | price series cache) → indicators
        → scorer → classification → payload

Failure policy:
  - Enrichment lookups inside a scan (per-candidate volume, closes) degrade
    to zero/empty defaults, so one bad symbol never blanks a ranked list.
  - Lookups for a symbol the caller named (``analyze``, ``recommend``)
    propagate ``UpstreamError`` to the HTTP layer.
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Optional, Sequence

from signals_lib.analysis.classification import classify_trend
from signals_lib.analysis.indicators import macd, rsi, volatility
from signals_lib.analysis.scorer import (
    EXPLOSION_THRESHOLD,
    build_explosion,
    build_trade_recommendation,
    max_attainable_score,
    rank_explosions,
    score_new_listings,
)
from signals_lib.core.cache import PriceSeriesCache, TTLCache
from signals_lib.core.config import ServiceSettings
from signals_lib.core.errors import UpstreamError
from signals_lib.core.logging_config import get_logger
from signals_lib.core.models import (
    ExplosionScore,
    NewListingCandidate,
    SymbolAnalysis,
    TickerSnapshot,
    TradeRecommendation,
    VolumeData,
)
from signals_lib.integrations.binance_client import BinanceClient

logger = get_logger("scanner")

UNIVERSE_KEY = "ticker_24hr|*"


class MarketScanner:
    """Explosion, new-listing and per-symbol analysis over one exchange."""

    def __init__(
        self,
        client: BinanceClient,
        settings: Optional[ServiceSettings] = None,
        *,
        now_fn: Optional[Callable[[], float]] = None,
    ):
        self.client = client
        self.settings = settings or ServiceSettings()
        self.snapshot_cache: TTLCache[Any] = TTLCache(
            self.settings.snapshot_ttl, name="snapshot", now_fn=now_fn
        )
        self.price_cache = PriceSeriesCache(
            client, ttl=self.settings.history_ttl, now_fn=now_fn
        )

    async def aclose(self) -> None:
        await self.client.aclose()

    # ------------------------------------------------------------------
    # Cached upstream access
    # ------------------------------------------------------------------

    async def get_universe(self) -> list[TickerSnapshot]:
        async def _fetch() -> tuple[TickerSnapshot, ...]:
            return tuple(await self.client.fetch_tickers())

        return list(await self.snapshot_cache.get_or_fetch(UNIVERSE_KEY, _fetch))

    async def get_ticker(self, symbol: str) -> TickerSnapshot:
        return await self.snapshot_cache.get_or_fetch(
            f"ticker_24hr|{symbol}", lambda: self.client.fetch_ticker(symbol)
        )

    async def get_closes(
        self,
        symbol: str,
        interval: str | None = None,
        limit: int | None = None,
    ) -> list[float]:
        return await self.price_cache.get_or_fetch(
            symbol,
            interval or self.settings.kline_interval,
            limit or self.settings.kline_limit,
        )

    async def _volume_or_zero(self, symbol: str) -> VolumeData:
        try:
            return VolumeData.from_ticker(await self.get_ticker(symbol))
        except UpstreamError as exc:
            logger.warning(
                "volume_lookup_degraded", symbol=symbol, error=type(exc).__name__
            )
            return VolumeData.zero()

    async def _closes_or_empty(self, symbol: str) -> list[float]:
        try:
            return await self.get_closes(symbol)
        except UpstreamError as exc:
            logger.warning(
                "price_lookup_degraded", symbol=symbol, error=type(exc).__name__
            )
            return []

    # ------------------------------------------------------------------
    # Explosions
    # ------------------------------------------------------------------

    def explosion_candidates(
        self, universe: Sequence[TickerSnapshot]
    ) -> list[TickerSnapshot]:
        """Tickers worth enriching, biggest 24h movers first.

        Drops pairs outside the reference quote asset and pairs whose 24h
        change alone rules out reaching the explosion threshold.  A positive
        ``scan_max_candidates`` caps the list; 0 keeps every candidate.
        """
        quote = self.settings.quote_asset
        candidates = [
            t
            for t in universe
            if t.symbol.endswith(quote)
            and t.symbol != quote
            and max_attainable_score(t.price_change_percent) >= EXPLOSION_THRESHOLD
        ]
        candidates.sort(key=lambda t: t.price_change_percent, reverse=True)
        cap = self.settings.scan_max_candidates
        if cap > 0:
            return candidates[:cap]
        return candidates

    async def scan_explosions(self) -> list[ExplosionScore]:
        """Score every candidate and return the explosions, highest first.

        Candidates are enriched concurrently, at most ``scan_concurrency``
        at a time, to stay inside the exchange's request weight limits.
        """
        universe = await self.get_universe()
        candidates = self.explosion_candidates(universe)
        sem = asyncio.Semaphore(self.settings.scan_concurrency)

        async def _score_one(ticker: TickerSnapshot) -> ExplosionScore:
            async with sem:
                volume_data = await self._volume_or_zero(ticker.symbol)
                closes = await self._closes_or_empty(ticker.symbol)
            return build_explosion(ticker, volume_data, closes)

        scored = await asyncio.gather(*(_score_one(t) for t in candidates))
        explosions = rank_explosions(scored)
        logger.info(
            "explosion_scan_complete",
            universe=len(universe),
            candidates=len(candidates),
            explosions=len(explosions),
        )
        return explosions

    # ------------------------------------------------------------------
    # New listings
    # ------------------------------------------------------------------

    async def scan_new_listings(self) -> list[NewListingCandidate]:
        universe = await self.get_universe()
        listings = score_new_listings(universe, self.settings.quote_asset)
        logger.info(
            "new_listing_scan_complete", universe=len(universe), matches=len(listings)
        )
        return listings

    # ------------------------------------------------------------------
    # Single symbol
    # ------------------------------------------------------------------

    async def analyze(self, symbol: str) -> SymbolAnalysis:
        ticker = await self.get_ticker(symbol)
        closes = await self.get_closes(symbol)
        rsi_value = rsi(closes)
        return SymbolAnalysis(
            symbol=symbol,
            price=ticker.last_price,
            rsi=rsi_value,
            macd=macd(closes),
            volatility=volatility(closes),
            trend=classify_trend(rsi_value),
        )

    async def recommend(self, symbol: str) -> TradeRecommendation:
        ticker = await self.get_ticker(symbol)
        closes = await self.get_closes(symbol)
        return build_trade_recommendation(
            ticker, VolumeData.from_ticker(ticker), closes, volatility(closes)
        )

    # ------------------------------------------------------------------
    # Cache administration
    # ------------------------------------------------------------------

    def flush_caches(self) -> dict[str, int]:
        dropped = {
            "snapshot": self.snapshot_cache.clear(),
            "price_series": self.price_cache.cache.clear(),
        }
        logger.info("caches_flushed", **dropped)
        return dropped

    def cache_stats(self) -> dict[str, Any]:
        return {
            "snapshot": self.snapshot_cache.stats(),
            "price_series": self.price_cache.cache.stats(),
            "upstream_requests": self.client.request_count,
        }
