"""Simulated chain and market for paper mode.

SimulatedChain advances its block height with wall-clock time and walks
the fee level randomly. SimulatedPriceSource is a geometric random walk
per pair, one step per call. Both accept a seed for reproducible runs.
"""

from __future__ import annotations

import math
import random
import time
from collections.abc import Callable
from decimal import Decimal

from trader.config import ChainSettings, PaperSettings
from trader.exceptions import SourceUnavailableError
from trader.sources.base import BlockSource, FeeOracle, PriceSource

_PRICE_QUANTIZE = Decimal("0.00000001")
_FEE_QUANTIZE = Decimal("0.0001")


class SimulatedChain(BlockSource, FeeOracle):
    """Block height from elapsed time, fee level from a bounded random walk.

    Args:
        settings: Block cadence, start height, base fee and seed.
        clock: Time source, injectable for tests.
    """

    def __init__(
        self,
        settings: ChainSettings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings
        self._clock = clock
        self._started_at = clock()
        self._rng = random.Random(settings.seed)
        self._fee = settings.base_fee_gwei

    async def get_block_number(self) -> int:
        elapsed = max(self._clock() - self._started_at, 0.0)
        return self._settings.start_height + int(elapsed // self._settings.block_time)

    async def get_fee_level(self) -> Decimal:
        step = Decimal(str(self._rng.uniform(-1.0, 1.0))) * self._settings.fee_volatility
        base = self._settings.base_fee_gwei
        # Stays within [base / 2, base * 4]
        self._fee = min(max(self._fee * (Decimal("1") + step), base / 2), base * 4)
        return self._fee.quantize(_FEE_QUANTIZE)


class SimulatedPriceSource(PriceSource):
    """Geometric random walk generator. Useful for offline demos and paper trading."""

    def __init__(self, settings: PaperSettings) -> None:
        self._settings = settings
        self._rng = random.Random(settings.seed)
        self._prices: dict[str, float] = {}

    async def get_price(self, pair_id: str) -> Decimal:
        price = self._prices.get(pair_id)
        if price is None:
            start = self._settings.start_prices.get(pair_id)
            if start is None:
                raise SourceUnavailableError(f"No simulated market for {pair_id}")
            price = float(start)

        # dt=1 step; r ~ N(drift, vol)
        r = self._rng.gauss(mu=self._settings.drift, sigma=self._settings.volatility)
        price = max(0.0001, price * math.exp(r))
        self._prices[pair_id] = price
        return Decimal(str(price)).quantize(_PRICE_QUANTIZE)
