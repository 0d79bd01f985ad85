"""
Binance spot REST client
========================
Pull-based access to the two public market-data endpoints the scoring
engine needs:

  - ``GET /ticker/24hr[?symbol=S]`` — 24h rolling ticker snapshot(s)
  - ``GET /klines?symbol=S&interval=I&limit=L`` — candles; only the close
    (index 4) is kept

Every call carries a fixed timeout and fails with a subclass of
``UpstreamError`` on timeout, transport failure, non-2xx status or a
malformed body.  No retries happen here; the scanner decides whether a
failure degrades to a default or propagates to the caller.

Usage:
    client = BinanceClient(base_url, api_key=key, timeout=10.0)
    ticker = await client.fetch_ticker("BTCUSDT")
    closes = await client.fetch_klines("BTCUSDT", "1h", 50)
    await client.aclose()
"""

from __future__ import annotations

import logging
import math
from typing import Any, Optional

import httpx

from signals_lib.core.config import DEFAULT_BASE_URL, DEFAULT_TIMEOUT
from signals_lib.core.errors import (
    UpstreamConnectionError,
    UpstreamHttpError,
    UpstreamMalformedData,
    UpstreamTimeout,
)
from signals_lib.core.models import TickerSnapshot

logger = logging.getLogger("binance_client")

KLINE_CLOSE_INDEX = 4


# ---------------------------------------------------------------------------
# Numeric parsing: NaN and Infinity never get through
# ---------------------------------------------------------------------------


def parse_float(value: Any, field: str, symbol: str | None = None) -> float:
    """Parse an upstream numeric field to a finite float.

    Binance sends most numbers as strings.  Anything that does not parse,
    or parses to NaN/Infinity, raises ``UpstreamMalformedData``.
    """
    if isinstance(value, bool):
        raise UpstreamMalformedData(
            f"{field}={value!r} is not numeric", field=field, symbol=symbol
        )
    try:
        result = float(value)
    except (TypeError, ValueError):
        raise UpstreamMalformedData(
            f"{field}={value!r} is not numeric", field=field, symbol=symbol
        ) from None
    if not math.isfinite(result):
        raise UpstreamMalformedData(
            f"{field}={value!r} is not finite", field=field, symbol=symbol
        )
    return result


def parse_int(value: Any, field: str, symbol: str | None = None) -> int:
    result = parse_float(value, field, symbol)
    if not result.is_integer():
        raise UpstreamMalformedData(
            f"{field}={value!r} is not an integer", field=field, symbol=symbol
        )
    return int(result)


def parse_ticker(raw: Any) -> TickerSnapshot:
    """Build a ``TickerSnapshot`` from one ``/ticker/24hr`` object."""
    if not isinstance(raw, dict):
        raise UpstreamMalformedData(f"ticker entry is {type(raw).__name__}, not object")
    symbol = raw.get("symbol")
    if not isinstance(symbol, str) or not symbol:
        raise UpstreamMalformedData("ticker entry has no symbol", field="symbol")
    return TickerSnapshot(
        symbol=symbol,
        last_price=parse_float(raw.get("lastPrice"), "lastPrice", symbol),
        price_change_percent=parse_float(
            raw.get("priceChangePercent"), "priceChangePercent", symbol
        ),
        volume=parse_float(raw.get("volume"), "volume", symbol),
        quote_volume=parse_float(raw.get("quoteVolume"), "quoteVolume", symbol),
        count=parse_int(raw.get("count"), "count", symbol),
    )


def parse_closes(raw: Any, symbol: str, limit: int) -> list[float]:
    """Extract closing prices (oldest first) from a ``/klines`` body."""
    if not isinstance(raw, list):
        raise UpstreamMalformedData(
            f"klines body is {type(raw).__name__}, not array", symbol=symbol
        )
    closes: list[float] = []
    for candle in raw:
        if not isinstance(candle, (list, tuple)) or len(candle) <= KLINE_CLOSE_INDEX:
            raise UpstreamMalformedData(
                "kline entry has no close field", field="close", symbol=symbol
            )
        close = parse_float(candle[KLINE_CLOSE_INDEX], "close", symbol)
        if close <= 0:
            raise UpstreamMalformedData(
                f"close={close!r} is not positive", field="close", symbol=symbol
            )
        closes.append(close)
    # the exchange honours limit, but the series invariant must not depend on it
    return closes[-limit:] if limit > 0 else []


# ---------------------------------------------------------------------------
# BinanceClient
# ---------------------------------------------------------------------------


class BinanceClient:
    """Async wrapper around the Binance public REST API.

    Owns an ``httpx.AsyncClient`` unless one is passed in (tests pass one
    built on ``httpx.MockTransport``).
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        api_key: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        headers = {"Accept": "application/json"}
        if api_key:
            headers["X-MBX-APIKEY"] = api_key
        self._owns_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=timeout, headers=headers
        )
        self._headers = headers
        self.request_count = 0

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http.aclose()

    async def _get(self, endpoint: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}/{endpoint}"
        self.request_count += 1
        try:
            resp = await self._http.get(
                url, params=params, headers=self._headers, timeout=self.timeout
            )
        except httpx.TimeoutException as exc:
            logger.warning("Upstream timeout on %s %s", endpoint, params or "")
            raise UpstreamTimeout(
                f"{endpoint} timed out after {self.timeout:g}s", endpoint=endpoint
            ) from exc
        except httpx.TransportError as exc:
            logger.warning("Upstream connection error on %s: %s", endpoint, exc)
            raise UpstreamConnectionError(
                f"{endpoint} failed: {exc}", endpoint=endpoint
            ) from exc

        if not resp.is_success:
            body = resp.text[:200]
            logger.warning(
                "Upstream HTTP %d on %s %s: %s",
                resp.status_code,
                endpoint,
                params or "",
                body,
            )
            raise UpstreamHttpError(
                f"{endpoint} returned HTTP {resp.status_code}: {body}",
                status_code=resp.status_code,
                endpoint=endpoint,
            )

        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamMalformedData(
                f"{endpoint} returned a non-JSON body", endpoint=endpoint
            ) from exc

    async def fetch_ticker(self, symbol: str) -> TickerSnapshot:
        """24h snapshot for one symbol.  Malformed fields propagate."""
        data = await self._get("ticker/24hr", {"symbol": symbol})
        return parse_ticker(data)

    async def fetch_tickers(self) -> list[TickerSnapshot]:
        """24h snapshots for the whole ticker universe.

        Malformed entries are skipped with a warning so one bad symbol
        cannot blank the ranked lists built from the universe.
        """
        data = await self._get("ticker/24hr")
        if not isinstance(data, list):
            raise UpstreamMalformedData(
                "ticker/24hr body is not an array", endpoint="ticker/24hr"
            )
        tickers: list[TickerSnapshot] = []
        skipped = 0
        for raw in data:
            try:
                tickers.append(parse_ticker(raw))
            except UpstreamMalformedData as exc:
                skipped += 1
                logger.warning("Skipping malformed ticker: %s", exc)
        if skipped:
            logger.info("Parsed %d tickers, skipped %d malformed", len(tickers), skipped)
        return tickers

    async def fetch_snapshot(
        self, symbol: str | None = None
    ) -> TickerSnapshot | list[TickerSnapshot]:
        """One snapshot when *symbol* is given, the full universe otherwise."""
        if symbol is None:
            return await self.fetch_tickers()
        return await self.fetch_ticker(symbol)

    async def fetch_klines(self, symbol: str, interval: str, limit: int) -> list[float]:
        """Closing prices for the last *limit* candles, oldest first."""
        data = await self._get(
            "klines", {"symbol": symbol, "interval": interval, "limit": limit}
        )
        return parse_closes(data, symbol, limit)
