"""Shared in-memory price cache.

The scheduler writes the prices it fetched for each tick; the paper
executor reads them to price simulated swaps without calling the price
source a second time inside the same tick.
"""

import asyncio
import time
from collections.abc import Callable
from decimal import Decimal


class PriceCache:
    """Latest USD price and timestamp per asset, guarded by an asyncio.Lock.

    Args:
        clock: Time source used for staleness checks; must match the
            timestamps passed to update_prices.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._prices: dict[str, tuple[Decimal, float]] = {}
        self._lock = asyncio.Lock()
        self._clock = clock

    async def update_prices(self, prices: dict[str, Decimal], timestamp: float) -> None:
        """Store a full set of per-asset prices observed at ``timestamp``."""
        async with self._lock:
            for asset, price in prices.items():
                self._prices[asset] = (price, timestamp)

    async def get_price(self, asset: str) -> Decimal | None:
        """Return the latest cached price for an asset, or None if not cached."""
        async with self._lock:
            entry = self._prices.get(asset)
            return entry[0] if entry is not None else None

    async def is_stale(self, asset: str, max_age_seconds: float = 60.0) -> bool:
        """True if the asset has no cached price or it is older than max_age_seconds."""
        async with self._lock:
            entry = self._prices.get(asset)
        if entry is None:
            return True
        return self._clock() - entry[1] > max_age_seconds
