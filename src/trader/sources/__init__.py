"""Chain and market data collaborators.

Defines the abstract block, price, balance and fee interfaces plus the
simulated and ccxt-backed implementations used in paper mode.
"""

from trader.sources.base import BalanceSource, BlockSource, FeeOracle, PriceSource
from trader.sources.price_cache import PriceCache
from trader.sources.simulated import SimulatedChain, SimulatedPriceSource

__all__ = [
    "BalanceSource",
    "BlockSource",
    "FeeOracle",
    "PriceCache",
    "PriceSource",
    "SimulatedChain",
    "SimulatedPriceSource",
]
