"""
Technical indicators on closing-price sequences.

Every function takes prices oldest-first, never mutates its input, and
returns a neutral value instead of raising when there is not enough data:

  - rsi()        → 50 below ``period + 1`` closes
  - macd()       → all-zero result below ``MACD_MIN_BARS`` closes
  - volatility() → 0 below ``VOLATILITY_MIN_BARS`` closes

RSI uses the simple rolling window (arithmetic mean of the last
``period`` gains and losses).  EMAs are seeded with the first price and
use ``k = 2 / (period + 1)``, which is pandas' ``ewm(span=period,
adjust=False)``.  The MACD signal line smooths the full MACD-line series.
"""

from __future__ import annotations

from typing import Sequence

import numpy as np
import pandas as pd

from signals_lib.core.models import MACDResult

RSI_PERIOD = 14
RSI_NEUTRAL = 50.0

MACD_FAST = 12
MACD_SLOW = 26
MACD_SIGNAL = 9
MACD_MIN_BARS = MACD_SLOW + MACD_SIGNAL

VOLATILITY_MIN_BARS = 10


def rsi(prices: Sequence[float], period: int = RSI_PERIOD) -> float:
    """Relative Strength Index in ``[0, 100]``."""
    if period < 1 or len(prices) < period + 1:
        return RSI_NEUTRAL

    deltas = np.diff(np.asarray(prices, dtype=float))[-period:]
    avg_gain = float(np.clip(deltas, 0, None).sum()) / period
    avg_loss = float(np.clip(-deltas, 0, None).sum()) / period

    if avg_loss == 0:
        return 100.0
    rs = avg_gain / avg_loss
    return float(min(100.0, max(0.0, 100.0 - 100.0 / (1.0 + rs))))


def ema_series(prices: Sequence[float], period: int) -> pd.Series:
    """EMA at every bar, seeded with the first price."""
    return pd.Series(prices, dtype=float).ewm(span=period, adjust=False).mean()


def ema(prices: Sequence[float], period: int) -> float:
    """Final EMA value; 0 for an empty sequence."""
    if len(prices) == 0:
        return 0.0
    return float(ema_series(prices, period).iloc[-1])


def macd(prices: Sequence[float]) -> MACDResult:
    """MACD(12, 26) line, 9-period signal line, and histogram."""
    if len(prices) < MACD_MIN_BARS:
        return MACDResult()

    macd_line = ema_series(prices, MACD_FAST) - ema_series(prices, MACD_SLOW)
    signal_line = macd_line.ewm(span=MACD_SIGNAL, adjust=False).mean()

    line = float(macd_line.iloc[-1])
    signal = float(signal_line.iloc[-1])
    return MACDResult(macd=line, signal=signal, histogram=line - signal)


def volatility(prices: Sequence[float]) -> float:
    """Standard deviation of simple returns, as a percentage.

    Uses the population variance (divide by N).
    """
    if len(prices) < VOLATILITY_MIN_BARS:
        return 0.0
    arr = np.asarray(prices, dtype=float)
    returns = np.diff(arr) / arr[:-1]
    return float(np.std(returns, ddof=0) * 100)
