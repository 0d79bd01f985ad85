"""
Service info, health check and cache administration.

Provides:
    GET  /             — service name, version and feature list
    GET  /health       — static liveness check
    GET  /api/health   — same, at the path dashboard clients poll
    GET  /cache/stats  — entry counts, TTLs and hit/miss counters
    POST /cache/flush  — drop every cached snapshot and price series
"""

from fastapi import APIRouter, Depends

from signals_lib import __version__
from signals_lib.services.api.signals import get_scanner
from signals_lib.services.scanner import MarketScanner

router = APIRouter(tags=["Health"])

FEATURES = [
    "Explosion detection with multi-factor scoring",
    "Technical analysis (RSI, MACD, volatility)",
    "New listing discovery",
    "Time-windowed upstream cache",
    "Per-symbol buy/sell recommendations",
]


@router.get("/")
def service_info():
    return {
        "service": "crypto-signals",
        "version": __version__,
        "algorithm": "Multi-Factor Explosion Scoring",
        "features": FEATURES,
        "endpoints": {
            "explosions": "/explosions",
            "new_listings": "/new-listings",
            "analysis": "/analysis/{symbol}",
            "recommendation": "/recommendation/{symbol}",
            "health": "/health",
        },
    }


@router.get("/health")
@router.get("/api/health")
def health():
    return {"status": "ok"}


@router.get("/cache/stats")
def cache_stats(scanner: MarketScanner = Depends(get_scanner)):
    return scanner.cache_stats()


@router.post("/cache/flush")
def cache_flush(scanner: MarketScanner = Depends(get_scanner)):
    return {"status": "ok", "dropped": scanner.flush_caches()}
