"""
Shared pytest fixtures for the signals test suite.

Provides an in-memory fake of the Binance REST endpoints, served through
``httpx.MockTransport`` so the real ``BinanceClient`` is exercised
without touching the network, plus a controllable clock for TTL tests
and synthetic closing-price generators.
"""

import os

os.environ.setdefault("LOG_LEVEL", "WARNING")

import httpx
import numpy as np
import pytest

from signals_lib.core.config import ServiceSettings
from signals_lib.integrations.binance_client import BinanceClient
from signals_lib.services.scanner import MarketScanner

BASE_URL = "https://api.test/api/v3"


# ---------------------------------------------------------------------------
# Synthetic closing-price generators
# ---------------------------------------------------------------------------


def _alternating_closes(n: int = 50, base: float = 100.0, step: float = 1.0) -> list[float]:
    """Closes that go up and down by *step* in turn.

    With an even RSI period the last ``period`` deltas hold as many gains
    as losses, so RSI is exactly 50.
    """
    return [base + (step if i % 2 else 0.0) for i in range(n)]


def _rising_closes(n: int = 50, start: float = 10.0, step: float = 0.5) -> list[float]:
    return [start + i * step for i in range(n)]


def _falling_closes(n: int = 50, start: float = 50.0, step: float = 0.5) -> list[float]:
    return [start - i * step for i in range(n)]


def _random_walk_closes(n: int = 200, start: float = 100.0, seed: int = 42) -> list[float]:
    rng = np.random.default_rng(seed)
    returns = rng.normal(0, 0.01, n)
    return list(start * np.exp(np.cumsum(returns)))


# ---------------------------------------------------------------------------
# Raw upstream payload builders
# ---------------------------------------------------------------------------


def _raw_ticker(
    symbol: str,
    last_price: float = 1.0,
    change: float = 0.0,
    volume: float = 1_000.0,
    quote_volume: float = 100_000.0,
    count: int = 1_000,
) -> dict:
    """A ``/ticker/24hr`` object, numbers as strings the way Binance sends them."""
    return {
        "symbol": symbol,
        "priceChange": "0.00000000",
        "priceChangePercent": f"{change:.3f}",
        "lastPrice": f"{last_price:.8f}",
        "volume": f"{volume:.8f}",
        "quoteVolume": f"{quote_volume:.8f}",
        "count": count,
    }


def _raw_klines(closes: list[float], start_ms: int = 1_700_000_000_000) -> list[list]:
    hour = 3_600_000
    return [
        [
            start_ms + i * hour,
            f"{c:.8f}",
            f"{c * 1.01:.8f}",
            f"{c * 0.99:.8f}",
            f"{c:.8f}",
            "1000.00000000",
            start_ms + (i + 1) * hour - 1,
            "100000.00000000",
            100,
            "500.00000000",
            "50000.00000000",
            "0",
        ]
        for i, c in enumerate(closes)
    ]


class FakeExchange:
    """Serves ``ticker/24hr`` and ``klines`` from in-memory tables.

    ``fail(endpoint, symbol, how)`` makes one endpoint/symbol misbehave:
    ``"timeout"``, ``"connect"``, ``"garbage"`` (non-JSON body) or an
    HTTP status code.  Use ``symbol=None`` for the full-universe call.
    """

    def __init__(self):
        self.tickers: dict[str, dict] = {}
        self.klines: dict[str, list[float]] = {}
        self.failures: dict[tuple[str, str | None], object] = {}
        self.calls: list[tuple[str, dict]] = []
        self.last_headers: httpx.Headers | None = None

    def add(self, symbol: str, closes: list[float] | None = None, **fields) -> None:
        self.tickers[symbol] = _raw_ticker(symbol, **fields)
        if closes is not None:
            self.klines[symbol] = list(closes)

    def fail(self, endpoint: str, symbol: str | None, how: object) -> None:
        self.failures[(endpoint, symbol)] = how

    def heal(self, endpoint: str, symbol: str | None) -> None:
        self.failures.pop((endpoint, symbol), None)

    def count(self, endpoint: str, symbol: str | None = None) -> int:
        return sum(
            1
            for ep, params in self.calls
            if ep == endpoint and (symbol is None or params.get("symbol") == symbol)
        )

    def handler(self, request: httpx.Request) -> httpx.Response:
        endpoint = request.url.path.split("/api/v3/", 1)[-1]
        params = dict(request.url.params)
        symbol = params.get("symbol")
        self.calls.append((endpoint, params))
        self.last_headers = request.headers

        failure = self.failures.get((endpoint, symbol))
        if failure == "timeout":
            raise httpx.ReadTimeout("timed out", request=request)
        if failure == "connect":
            raise httpx.ConnectError("connection refused", request=request)
        if failure == "garbage":
            return httpx.Response(200, text="<html>maintenance</html>")
        if isinstance(failure, int):
            return httpx.Response(failure, json={"code": -1000, "msg": "failure"})

        if endpoint == "ticker/24hr":
            if symbol is None:
                return httpx.Response(200, json=list(self.tickers.values()))
            if symbol not in self.tickers:
                return httpx.Response(400, json={"code": -1121, "msg": "Invalid symbol."})
            return httpx.Response(200, json=self.tickers[symbol])

        if endpoint == "klines":
            if symbol not in self.klines:
                return httpx.Response(400, json={"code": -1121, "msg": "Invalid symbol."})
            limit = int(params.get("limit", 500))
            return httpx.Response(200, json=_raw_klines(self.klines[symbol][-limit:]))

        return httpx.Response(404, json={"msg": "not found"})

    def client(self, **kwargs) -> BinanceClient:
        transport = httpx.MockTransport(self.handler)
        return BinanceClient(
            BASE_URL,
            http_client=httpx.AsyncClient(transport=transport),
            **kwargs,
        )


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Pytest fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def exchange() -> FakeExchange:
    return FakeExchange()


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def settings() -> ServiceSettings:
    return ServiceSettings(base_url=BASE_URL)


@pytest.fixture()
def scanner(exchange, settings, clock) -> MarketScanner:
    return MarketScanner(exchange.client(), settings, now_fn=clock)


@pytest.fixture()
def alternating_closes() -> list[float]:
    return _alternating_closes()
