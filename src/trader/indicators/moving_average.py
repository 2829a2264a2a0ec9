"""Simple and exponential moving averages.

Uses Decimal arithmetic with quantize to prevent precision explosion.

CRITICAL: All computations use Decimal. Never use float.
"""

from collections.abc import Iterable, Sequence
from decimal import Decimal

#: Precision limit for indicator intermediate results (12 decimal places).
#: Prevents Decimal division from producing arbitrarily long representations.
INDICATOR_QUANTIZE = Decimal("0.000000000001")


def ema_alpha(period: int) -> Decimal:
    """Smoothing factor k = 2 / (period + 1)."""
    return Decimal("2") / (Decimal(period) + Decimal("1"))


def compute_sma(prices: Sequence[Decimal], period: int) -> Decimal | None:
    """Arithmetic mean of the last ``period`` prices.

    Returns None (no signal) when fewer than ``period`` prices exist or the
    period is not positive. Callers decide the fallback.
    """
    if period <= 0 or len(prices) < period:
        return None
    window = prices[-period:]
    return (sum(window, Decimal("0")) / Decimal(period)).quantize(INDICATOR_QUANTIZE)


def ema_step(prev: Decimal | None, value: Decimal, period: int) -> Decimal:
    """Advance an EMA accumulator by one observation.

    The first observation seeds the accumulator (``prev`` is None), so the
    first EMA value equals the raw input.
    """
    if prev is None:
        return value.quantize(INDICATOR_QUANTIZE)
    k = ema_alpha(period)
    return (value * k + prev * (Decimal("1") - k)).quantize(INDICATOR_QUANTIZE)


def compute_ema(values: Iterable[Decimal], period: int) -> list[Decimal]:
    """EMA series over ``values`` (oldest first), same length as input.

    Equivalent to folding :func:`ema_step` over the input; empty input
    yields an empty list.
    """
    result: list[Decimal] = []
    prev: Decimal | None = None
    for v in values:
        prev = ema_step(prev, v, period)
        result.append(prev)
    return result
