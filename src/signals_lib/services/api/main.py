"""
Crypto Signals API — FastAPI service
====================================
Serves explosion rankings, new-listing candidates and per-symbol technical
readouts computed from Binance public market data.

Usage (from project root):
    PYTHONPATH=src python -m signals_lib.services.api.main

or, once installed:
    crypto-signals

HOST / PORT and the upstream settings come from the environment, see
``signals_lib.core.config``.
"""

import json
import math
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from signals_lib import __version__
from signals_lib.core.config import ServiceSettings, load_settings
from signals_lib.core.errors import UpstreamError, UpstreamTimeout
from signals_lib.core.logging_config import get_logger, setup_logging
from signals_lib.integrations.binance_client import BinanceClient
from signals_lib.services.api.health import router as health_router
from signals_lib.services.api.signals import router as signals_router
from signals_lib.services.scanner import MarketScanner

logger = get_logger("signals_api")


# ---------------------------------------------------------------------------
# JSON encoding that replaces inf / NaN with null instead of crashing.
# ---------------------------------------------------------------------------
def _sanitize(obj: Any) -> Any:
    """Recursively replace non-finite floats with None."""
    if isinstance(obj, float):
        if math.isnan(obj) or math.isinf(obj):
            return None
        return obj
    if isinstance(obj, dict):
        return {k: _sanitize(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize(v) for v in obj]
    return obj


class SafeJSONResponse(JSONResponse):
    """JSONResponse subclass that handles inf/NaN floats gracefully."""

    def render(self, content: Any) -> bytes:
        return json.dumps(
            _sanitize(content),
            ensure_ascii=False,
            allow_nan=False,
        ).encode("utf-8")


async def _upstream_error_handler(request: Request, exc: Exception) -> JSONResponse:
    status_code = 504 if isinstance(exc, UpstreamTimeout) else 502
    logger.error(
        "upstream_request_failed",
        path=request.url.path,
        error=type(exc).__name__,
        detail=str(exc),
    )
    return SafeJSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__},
    )


def create_app(
    settings: Optional[ServiceSettings] = None,
    scanner: Optional[MarketScanner] = None,
) -> FastAPI:
    """Build the FastAPI app.

    Pass *scanner* to reuse a pre-built one (tests inject a scanner wired
    to a mock transport); otherwise one is created at startup from
    *settings* and closed on shutdown.
    """
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = scanner is None
        active = scanner or MarketScanner(
            BinanceClient(
                settings.base_url,
                api_key=settings.api_key,
                timeout=settings.timeout,
            ),
            settings,
        )
        app.state.scanner = active
        logger.info(
            "signals_api_ready",
            upstream=settings.base_url,
            snapshot_ttl=settings.snapshot_ttl,
            history_ttl=settings.history_ttl,
            scan_concurrency=settings.scan_concurrency,
        )

        yield

        if owned:
            await active.aclose()
        logger.info("signals_api_stopped")

    app = FastAPI(
        title="Crypto Signals API",
        description=(
            "Explosion detection, new-listing discovery and technical "
            "analysis over Binance spot market data."
        ),
        version=__version__,
        lifespan=lifespan,
        default_response_class=SafeJSONResponse,
    )
    app.add_exception_handler(UpstreamError, _upstream_error_handler)

    app.include_router(health_router)
    app.include_router(signals_router)
    return app


def main() -> None:
    import uvicorn

    setup_logging(service="signals-api")
    settings = load_settings()
    uvicorn.run(
        create_app(settings),
        host=settings.host,
        port=settings.port,
        log_level="info",
        log_config=None,
    )


if __name__ == "__main__":
    main()
