"""Sub-signal functions mapping indicator values onto [-1, 1].

Each function is pure and independent. Division by zero and other
degenerate inputs produce 0 (no conviction) rather than an error.

CRITICAL: All computations use Decimal. Never use float.
"""

from decimal import Decimal

#: Precision for sub-signal and composite scores (6 decimal places).
SCORE_QUANTIZE = Decimal("0.000001")

_ONE = Decimal("1")
_ZERO = Decimal("0")
_HALF = Decimal("0.5")
_RSI_ZONE_WIDTH = Decimal("30")


def clamp(value: Decimal, low: Decimal = -_ONE, high: Decimal = _ONE) -> Decimal:
    """Clamp to [low, high] and quantize to score precision."""
    return min(max(value, low), high).quantize(SCORE_QUANTIZE)


def sma_crossover_signal(
    sma_fast: Decimal, sma_slow: Decimal, scale: Decimal = Decimal("20")
) -> Decimal:
    """Relative gap between fast and slow SMA.

    Formula: clamp((sma_fast - sma_slow) / sma_slow * scale)
    With the default scale a 5% gap saturates the signal.
    """
    if sma_slow == 0:
        return _ZERO.quantize(SCORE_QUANTIZE)
    return clamp((sma_fast - sma_slow) / sma_slow * scale)


def rsi_signal(
    rsi: Decimal,
    oversold: Decimal = Decimal("30"),
    overbought: Decimal = Decimal("70"),
) -> Decimal:
    """Mean-reversion bias from RSI zones.

    Below ``oversold`` -> (oversold - rsi) / 30 (buy bias).
    Above ``overbought`` -> -(rsi - overbought) / 30 (sell bias).
    Otherwise 0.
    """
    if rsi < oversold:
        return clamp((oversold - rsi) / _RSI_ZONE_WIDTH)
    if rsi > overbought:
        return clamp(-(rsi - overbought) / _RSI_ZONE_WIDTH)
    return _ZERO.quantize(SCORE_QUANTIZE)


def macd_signal(
    macd_hist: Decimal, bb_middle: Decimal, scale: Decimal = Decimal("100")
) -> Decimal:
    """MACD histogram normalized by the Bollinger middle band.

    Normalizing by price level makes the histogram comparable across assets
    trading at very different magnitudes.
    """
    if bb_middle == 0:
        return _ZERO.quantize(SCORE_QUANTIZE)
    return clamp(macd_hist / bb_middle * scale)


def bollinger_signal(percent_b: Decimal) -> Decimal:
    """Below the middle band biases buy, above biases sell: -(%B - 0.5) * 2."""
    return clamp(-(percent_b - _HALF) * Decimal("2"))


def trend_signal(
    price: Decimal, sma_slow: Decimal, scale: Decimal = Decimal("10")
) -> Decimal:
    """Relative deviation of price from the slow SMA, scaled and clamped."""
    if sma_slow == 0:
        return _ZERO.quantize(SCORE_QUANTIZE)
    return clamp((price - sma_slow) / sma_slow * scale)
