"""Incremental Wilder RSI.

The average gain/loss accumulators stay None until ``period`` price changes
(``period + 1`` samples) have been observed. They are then seeded with the
simple mean of those changes and smoothed recursively afterwards:

    avg = (prev_avg * (period - 1) + x) / period
"""

from dataclasses import dataclass, field
from decimal import Decimal

from trader.indicators.moving_average import INDICATOR_QUANTIZE

#: RSI reported before the accumulators are seeded.
NEUTRAL_RSI = Decimal("50")

#: RS used when the average loss is zero.
_RS_SENTINEL = Decimal("100")

_HUNDRED = Decimal("100")


@dataclass
class RSIState:
    """Per-asset RSI accumulators."""

    period: int
    prev_price: Decimal | None = None
    avg_gain: Decimal | None = None
    avg_loss: Decimal | None = None
    _seed_gains: list[Decimal] = field(default_factory=list)
    _seed_losses: list[Decimal] = field(default_factory=list)

    @property
    def is_seeded(self) -> bool:
        return self.avg_gain is not None and self.avg_loss is not None


def rsi_from_averages(avg_gain: Decimal, avg_loss: Decimal) -> Decimal:
    """RSI = 100 - 100 / (1 + RS), with RS = 100 when avg_loss is zero."""
    if avg_loss == 0:
        rs = _RS_SENTINEL
    else:
        rs = avg_gain / avg_loss
    rsi = _HUNDRED - _HUNDRED / (Decimal("1") + rs)
    return min(max(rsi, Decimal("0")), _HUNDRED).quantize(INDICATOR_QUANTIZE)


def update_rsi(state: RSIState, price: Decimal) -> Decimal:
    """Feed one price into the accumulators and return the current RSI.

    Returns NEUTRAL_RSI until the accumulators are seeded.
    """
    if state.prev_price is None:
        state.prev_price = price
        return NEUTRAL_RSI

    change = price - state.prev_price
    state.prev_price = price
    gain = change if change > 0 else Decimal("0")
    loss = -change if change < 0 else Decimal("0")

    if not state.is_seeded:
        state._seed_gains.append(gain)
        state._seed_losses.append(loss)
        if len(state._seed_gains) < state.period:
            return NEUTRAL_RSI
        period = Decimal(state.period)
        state.avg_gain = (sum(state._seed_gains, Decimal("0")) / period).quantize(
            INDICATOR_QUANTIZE
        )
        state.avg_loss = (sum(state._seed_losses, Decimal("0")) / period).quantize(
            INDICATOR_QUANTIZE
        )
        state._seed_gains.clear()
        state._seed_losses.clear()
    else:
        period = Decimal(state.period)
        state.avg_gain = (
            (state.avg_gain * (period - 1) + gain) / period
        ).quantize(INDICATOR_QUANTIZE)
        state.avg_loss = (
            (state.avg_loss * (period - 1) + loss) / period
        ).quantize(INDICATOR_QUANTIZE)

    return rsi_from_averages(state.avg_gain, state.avg_loss)
