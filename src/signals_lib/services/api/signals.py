"""
Signals API router.

Endpoints:
    GET  /explosions                — ranked explosion scores (score ≥ 70)
    GET  /new-listings              — ranked new-listing candidates
    GET  /analysis/{symbol}         — RSI, MACD, volatility and trend
    GET  /recommendation/{symbol}   — score, label and trade levels

Scans degrade per symbol; single-symbol endpoints let ``UpstreamError``
propagate to the app's exception handler (502/504).
"""

from fastapi import APIRouter, Depends, Query, Request
from pydantic import BaseModel

from signals_lib.services.scanner import MarketScanner

router = APIRouter(tags=["Signals"])

DEFAULT_LIMIT = 20
MAX_LIMIT = 100


# ---------------------------------------------------------------------------
# Response models: numbers are fixed-precision strings
# ---------------------------------------------------------------------------


class ExplosionOut(BaseModel):
    symbol: str
    score: int
    priceChangePercent: str
    lastPrice: str
    recommendation: str


class NewListingOut(BaseModel):
    symbol: str
    price: str
    volume: str
    trades: int
    priceChange: str
    score: str


class MACDOut(BaseModel):
    macd: str
    signal: str
    histogram: str


class AnalysisOut(BaseModel):
    symbol: str
    price: str
    rsi: str
    macd: MACDOut
    volatility: str
    trend: str


class RecommendationOut(BaseModel):
    symbol: str
    score: int
    recommendation: str
    buyPrice: str
    sellTarget: str
    stopLoss: str
    confidence: str
    timeframe: str
    rsi: str
    volatility: str


def get_scanner(request: Request) -> MarketScanner:
    """The scanner built by the app factory for this process."""
    return request.app.state.scanner


@router.get("/explosions", response_model=list[ExplosionOut])
async def get_explosions(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    scanner: MarketScanner = Depends(get_scanner),
):
    explosions = await scanner.scan_explosions()
    return [e.to_payload() for e in explosions[:limit]]


@router.get("/new-listings", response_model=list[NewListingOut])
async def get_new_listings(
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    scanner: MarketScanner = Depends(get_scanner),
):
    listings = await scanner.scan_new_listings()
    return [c.to_payload() for c in listings[:limit]]


@router.get("/analysis/{symbol}", response_model=AnalysisOut)
async def get_analysis(symbol: str, scanner: MarketScanner = Depends(get_scanner)):
    analysis = await scanner.analyze(symbol.upper())
    return analysis.to_payload()


@router.get("/recommendation/{symbol}", response_model=RecommendationOut)
async def get_recommendation(
    symbol: str, scanner: MarketScanner = Depends(get_scanner)
):
    rec = await scanner.recommend(symbol.upper())
    return rec.to_payload()
