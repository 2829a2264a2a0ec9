"""Shared data models for the signal trader.

CRITICAL: All monetary values use Decimal. Never use float for prices, quantities, or fees.
Timestamps are unix seconds (float).
"""

import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class BotStatus(str, Enum):
    """Process-level lifecycle state."""

    STOPPED = "stopped"
    RUNNING = "running"
    HALTED = "halted"


class TradeKind(str, Enum):
    """On-chain action type."""

    WRAP = "wrap"
    SWAP = "swap"


@dataclass(frozen=True)
class PriceSample:
    """A single observed price for one asset."""

    timestamp: float
    price: Decimal


@dataclass(frozen=True)
class TradeInstruction:
    """A single trade emitted by the decision engine.

    ``wrap_first`` means the executor must wrap ``amount_in`` of the native
    asset into ``from_asset`` before swapping.
    """

    kind: TradeKind
    from_asset: str
    to_asset: str
    amount_in: Decimal
    expected_amount_out: Decimal
    min_amount_out: Decimal
    rule: str
    asset: str
    signal: Decimal
    wrap_first: bool = False

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dict with Decimal values as strings."""
        return {
            "kind": self.kind.value,
            "from_asset": self.from_asset,
            "to_asset": self.to_asset,
            "amount_in": str(self.amount_in),
            "expected_amount_out": str(self.expected_amount_out),
            "min_amount_out": str(self.min_amount_out),
            "rule": self.rule,
            "asset": self.asset,
            "signal": str(self.signal),
            "wrap_first": self.wrap_first,
        }


@dataclass(frozen=True)
class ExecutionResult:
    """Confirmed outcome of an executed instruction."""

    success: bool
    amount_out: Decimal
    reference: str
    block_height: int | None = None
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class TradeRecord:
    """A trade that the order executor confirmed."""

    time: float
    kind: TradeKind
    from_asset: str
    to_asset: str
    amount_in: Decimal
    amount_out_estimate: Decimal
    tx_ref: str
    block_height: int
    rule: str = ""

    def to_dict(self) -> dict:
        return {
            "time": self.time,
            "kind": self.kind.value,
            "from_asset": self.from_asset,
            "to_asset": self.to_asset,
            "amount_in": str(self.amount_in),
            "amount_out_estimate": str(self.amount_out_estimate),
            "tx_ref": self.tx_ref,
            "block_height": self.block_height,
            "rule": self.rule,
        }


@dataclass
class PortfolioState:
    """Balances, USD prices and drawdown bookkeeping for the trading account.

    ``peak_value_usd`` only rises, except when an operator reset re-anchors
    it. ``halted`` is sticky until that reset.
    """

    balances: dict[str, Decimal] = field(default_factory=dict)
    prices_usd: dict[str, Decimal] = field(default_factory=dict)
    total_value_usd: Decimal = Decimal("0")
    peak_value_usd: Decimal = Decimal("0")
    current_drawdown_pct: Decimal = Decimal("0")
    halted: bool = False

    def balance(self, asset: str) -> Decimal:
        return self.balances.get(asset, Decimal("0"))

    def price(self, asset: str) -> Decimal | None:
        return self.prices_usd.get(asset)

    def value_usd(self, asset: str) -> Decimal:
        """USD value of one holding; zero when the asset has no known price."""
        price = self.prices_usd.get(asset)
        if price is None:
            return Decimal("0")
        return self.balance(asset) * price

    def to_dict(self) -> dict:
        return {
            "balances": {k: str(v) for k, v in self.balances.items()},
            "prices_usd": {k: str(v) for k, v in self.prices_usd.items()},
            "total_value_usd": str(self.total_value_usd),
            "peak_value_usd": str(self.peak_value_usd),
            "current_drawdown_pct": str(self.current_drawdown_pct),
            "halted": self.halted,
        }
