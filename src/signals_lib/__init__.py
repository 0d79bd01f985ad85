"""
signals_lib — crypto explosion scanner and technical-signal service.

    # Core infrastructure
    from signals_lib.core.cache import TTLCache, PriceSeriesCache
    from signals_lib.core.config import load_settings
    from signals_lib.core.logging_config import setup_logging, get_logger

    # Analysis
    from signals_lib.analysis.indicators import rsi, ema, macd, volatility
    from signals_lib.analysis.scorer import explosion_score, score_new_listings
    from signals_lib.analysis.classification import classify_score, classify_trend

    # Upstream + service
    from signals_lib.integrations.binance_client import BinanceClient
    from signals_lib.services.scanner import MarketScanner
    from signals_lib.services.api.main import create_app
"""

__version__ = "2.0.0"
