"""Signal generation from indicator snapshots.

Provides the sub-signal functions, the weighted composite aggregator, and
the SignalGenerator that produces one bounded Signal per tracked asset.
"""

from trader.signals.components import (
    bollinger_signal,
    clamp,
    macd_signal,
    rsi_signal,
    sma_crossover_signal,
    trend_signal,
)
from trader.signals.composite import compute_composite_score
from trader.signals.generator import SignalGenerator
from trader.signals.models import Signal, SignalComponent

__all__ = [
    "Signal",
    "SignalComponent",
    "SignalGenerator",
    "bollinger_signal",
    "clamp",
    "compute_composite_score",
    "macd_signal",
    "rsi_signal",
    "sma_crossover_signal",
    "trend_signal",
]
