"""Indicator computation over streaming per-asset price series.

Provides the moving average, RSI and Bollinger primitives plus the
IndicatorEngine that keeps rolling history and smoothing accumulators for
each tracked asset.
"""

from trader.indicators.bollinger import BollingerBands, compute_bollinger
from trader.indicators.engine import IndicatorEngine
from trader.indicators.models import IndicatorState
from trader.indicators.moving_average import compute_ema, compute_sma, ema_step
from trader.indicators.rsi import NEUTRAL_RSI, RSIState, update_rsi

__all__ = [
    "BollingerBands",
    "IndicatorEngine",
    "IndicatorState",
    "NEUTRAL_RSI",
    "RSIState",
    "compute_bollinger",
    "compute_ema",
    "compute_sma",
    "ema_step",
    "update_rsi",
]
