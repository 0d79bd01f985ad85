"""
Service configuration read from environment variables.

Settings are read once into an immutable ``ServiceSettings`` and handed
to the app factory, which owns the scanner and caches for the lifetime of
the process.

Environment:
    BINANCE_BASE_URL     — upstream REST root (default: https://api.binance.com/api/v3)
    BINANCE_API_KEY      — optional, sent as X-MBX-APIKEY
    UPSTREAM_TIMEOUT     — per-call timeout in seconds (default: 10)
    SNAPSHOT_CACHE_TTL   — ticker snapshot cache TTL in seconds (default: 180)
    HISTORY_CACHE_TTL    — price series cache TTL in seconds (default: 3600)
    SCAN_CONCURRENCY     — parallel enrichment lookups per scan (default: 5)
    SCAN_MAX_CANDIDATES  — cap on tickers enriched per explosions scan, 0 = no cap (default: 0)
    KLINE_INTERVAL       — kline interval for indicators (default: 1h)
    KLINE_LIMIT          — kline count for indicators (default: 50)
    QUOTE_ASSET          — reference stablecoin suffix (default: USDT)
    HOST / PORT          — uvicorn bind (default: 0.0.0.0 / 8080)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger("config")

DEFAULT_BASE_URL = "https://api.binance.com/api/v3"
DEFAULT_TIMEOUT = 10.0
DEFAULT_SNAPSHOT_TTL = 180.0
DEFAULT_HISTORY_TTL = 3600.0
DEFAULT_SCAN_CONCURRENCY = 5
DEFAULT_SCAN_MAX_CANDIDATES = 0
DEFAULT_KLINE_INTERVAL = "1h"
DEFAULT_KLINE_LIMIT = 50
DEFAULT_QUOTE_ASSET = "USDT"


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %s", name, raw, default)
        return default
    if value <= minimum:
        logger.warning("Out-of-range %s=%r, using default %s", name, raw, default)
        return default
    return value


def _env_int(name: str, default: int, minimum: int = 0) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Invalid %s=%r, using default %s", name, raw, default)
        return default
    if value <= minimum:
        logger.warning("Out-of-range %s=%r, using default %s", name, raw, default)
        return default
    return value


@dataclass(frozen=True)
class ServiceSettings:
    """Runtime configuration for the signals service."""

    base_url: str = DEFAULT_BASE_URL
    api_key: str = ""
    timeout: float = DEFAULT_TIMEOUT
    snapshot_ttl: float = DEFAULT_SNAPSHOT_TTL
    history_ttl: float = DEFAULT_HISTORY_TTL
    scan_concurrency: int = DEFAULT_SCAN_CONCURRENCY
    scan_max_candidates: int = DEFAULT_SCAN_MAX_CANDIDATES
    kline_interval: str = DEFAULT_KLINE_INTERVAL
    kline_limit: int = DEFAULT_KLINE_LIMIT
    quote_asset: str = DEFAULT_QUOTE_ASSET
    host: str = "0.0.0.0"
    port: int = 8080


def load_settings() -> ServiceSettings:
    """Build ``ServiceSettings`` from the current environment."""
    return ServiceSettings(
        base_url=os.getenv("BINANCE_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
        api_key=os.getenv("BINANCE_API_KEY", "").strip(),
        timeout=_env_float("UPSTREAM_TIMEOUT", DEFAULT_TIMEOUT),
        snapshot_ttl=_env_float("SNAPSHOT_CACHE_TTL", DEFAULT_SNAPSHOT_TTL),
        history_ttl=_env_float("HISTORY_CACHE_TTL", DEFAULT_HISTORY_TTL),
        scan_concurrency=_env_int("SCAN_CONCURRENCY", DEFAULT_SCAN_CONCURRENCY),
        scan_max_candidates=_env_int(
            "SCAN_MAX_CANDIDATES", DEFAULT_SCAN_MAX_CANDIDATES, minimum=-1
        ),
        kline_interval=os.getenv("KLINE_INTERVAL", DEFAULT_KLINE_INTERVAL).strip(),
        kline_limit=_env_int("KLINE_LIMIT", DEFAULT_KLINE_LIMIT),
        quote_asset=os.getenv("QUOTE_ASSET", DEFAULT_QUOTE_ASSET).strip().upper(),
        host=os.getenv("HOST", "0.0.0.0"),
        port=_env_int("PORT", 8080),
    )
