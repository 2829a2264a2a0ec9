"""Indicator snapshot model.

CRITICAL: All indicator values use Decimal. Never use float for indicator computations.
"""

from dataclasses import asdict, dataclass
from decimal import Decimal


@dataclass(frozen=True)
class IndicatorState:
    """Indicator values for one asset after its latest price sample.

    Moving averages fall back to the current price until enough samples
    exist; RSI reports 50 until its accumulators are seeded.
    """

    asset: str
    price: Decimal
    timestamp: float
    sample_count: int
    sma_fast: Decimal
    sma_slow: Decimal
    ema_fast: Decimal  # EMA(12)
    ema_slow: Decimal  # EMA(26)
    macd: Decimal
    macd_signal: Decimal
    macd_hist: Decimal
    rsi: Decimal  # 0-100
    bb_upper: Decimal
    bb_middle: Decimal
    bb_lower: Decimal
    bb_percent_b: Decimal  # 0-1

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dict with Decimal values as strings."""
        return {
            key: str(value) if isinstance(value, Decimal) else value
            for key, value in asdict(self).items()
        }
