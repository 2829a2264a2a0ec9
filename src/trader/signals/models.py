"""Signal data models.

CRITICAL: All score values use Decimal. Never use float for signal computations.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class SignalComponent(str, Enum):
    """Named sub-signals contributing to the composite score."""

    SMA_CROSSOVER = "sma_crossover"
    RSI = "rsi"
    MACD = "macd"
    BOLLINGER = "bollinger"
    TREND = "trend"


def neutral_components() -> dict[str, Decimal]:
    return {c.value: Decimal("0") for c in SignalComponent}


@dataclass(frozen=True)
class Signal:
    """Composite directional conviction for one asset with its breakdown.

    Positive values are bullish, negative bearish. The composite and every
    component lie in [-1, 1].
    """

    asset: str
    composite: Decimal
    components: dict[str, Decimal] = field(default_factory=neutral_components)

    @classmethod
    def neutral(cls, asset: str) -> "Signal":
        return cls(asset=asset, composite=Decimal("0"), components=neutral_components())

    @property
    def is_neutral(self) -> bool:
        return self.composite == 0 and all(v == 0 for v in self.components.values())

    def to_dict(self) -> dict:
        return {
            "asset": self.asset,
            "composite": str(self.composite),
            "components": {k: str(v) for k, v in self.components.items()},
        }
