"""Bollinger Bands and %B over a rolling price window."""

from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

from trader.indicators.moving_average import INDICATOR_QUANTIZE

_HALF = Decimal("0.5")


@dataclass(frozen=True)
class BollingerBands:
    upper: Decimal
    middle: Decimal
    lower: Decimal
    percent_b: Decimal


def compute_bollinger(
    prices: Sequence[Decimal], period: int, multiplier: Decimal
) -> BollingerBands:
    """Compute bands from the last ``period`` prices (fewer if not yet available).

    Uses the population standard deviation. %B is clamped to [0, 1] and
    defaults to 0.5 when the window has zero deviation.

    Raises:
        ValueError: If ``prices`` is empty.
    """
    if not prices:
        raise ValueError("Bollinger bands need at least one price")

    window = prices[-period:] if period > 0 else prices
    n = Decimal(len(window))
    mean = sum(window, Decimal("0")) / n
    variance = sum(((p - mean) ** 2 for p in window), Decimal("0")) / n
    std_dev = variance.sqrt()

    upper = mean + multiplier * std_dev
    lower = mean - multiplier * std_dev
    last = window[-1]

    if std_dev == 0 or upper == lower:
        percent_b = _HALF
    else:
        percent_b = (last - lower) / (upper - lower)
        percent_b = min(max(percent_b, Decimal("0")), Decimal("1"))

    return BollingerBands(
        upper=upper.quantize(INDICATOR_QUANTIZE),
        middle=mean.quantize(INDICATOR_QUANTIZE),
        lower=lower.quantize(INDICATOR_QUANTIZE),
        percent_b=percent_b.quantize(INDICATOR_QUANTIZE),
    )
