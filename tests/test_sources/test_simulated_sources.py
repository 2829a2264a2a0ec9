"""Tests for the simulated chain and price random walk."""

from decimal import Decimal

import pytest

from trader.config import ChainSettings, PaperSettings
from trader.exceptions import SourceUnavailableError
from trader.sources.simulated import SimulatedChain, SimulatedPriceSource


class FakeClock:
    def __init__(self, now: float = 1_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now


class TestSimulatedChain:
    @pytest.mark.asyncio
    async def test_height_advances_with_time(self) -> None:
        clock = FakeClock()
        chain = SimulatedChain(ChainSettings(start_height=1, block_time=2.0), clock=clock)
        assert await chain.get_block_number() == 1

        clock.now += 1.9
        assert await chain.get_block_number() == 1

        clock.now += 3.1
        assert await chain.get_block_number() == 3

    @pytest.mark.asyncio
    async def test_fee_stays_bounded(self) -> None:
        settings = ChainSettings(base_fee_gwei=Decimal("0.05"), fee_volatility=Decimal("0.5"), seed=1)
        chain = SimulatedChain(settings, clock=FakeClock())
        for _ in range(200):
            fee = await chain.get_fee_level()
            assert Decimal("0.025") <= fee <= Decimal("0.2")


class TestSimulatedPriceSource:
    @pytest.mark.asyncio
    async def test_seeded_walk_is_reproducible(self) -> None:
        first = SimulatedPriceSource(PaperSettings(seed=42))
        second = SimulatedPriceSource(PaperSettings(seed=42))
        a = [await first.get_price("WETH/USDC") for _ in range(20)]
        b = [await second.get_price("WETH/USDC") for _ in range(20)]
        assert a == b
        assert all(p > 0 for p in a)

    @pytest.mark.asyncio
    async def test_starts_near_configured_price(self) -> None:
        source = SimulatedPriceSource(PaperSettings(seed=3, volatility=0.001))
        price = await source.get_price("LINK/USDC")
        assert abs(price - Decimal("15")) < Decimal("0.5")

    @pytest.mark.asyncio
    async def test_unknown_pair_unavailable(self) -> None:
        source = SimulatedPriceSource(PaperSettings())
        with pytest.raises(SourceUnavailableError):
            await source.get_price("DOGE/USDC")
