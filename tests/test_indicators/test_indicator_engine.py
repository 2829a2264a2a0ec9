"""Tests for IndicatorEngine -- streaming history, accumulators, and sample validation."""

from decimal import Decimal

import pytest

from trader.config import IndicatorSettings
from trader.exceptions import StaleSampleError
from trader.indicators.engine import IndicatorEngine
from trader.models import PriceSample


def _feed(engine: IndicatorEngine, asset: str, prices: list, start: float = 1.0) -> None:
    for i, price in enumerate(prices):
        engine.update(asset, PriceSample(timestamp=start + i, price=Decimal(str(price))))


@pytest.fixture
def engine() -> IndicatorEngine:
    return IndicatorEngine(IndicatorSettings())


class TestUpdate:
    def test_first_sample_seeds_accumulators(self, engine: IndicatorEngine) -> None:
        state = engine.update("WETH", PriceSample(timestamp=1.0, price=Decimal("3000")))
        assert state.ema_fast == Decimal("3000")
        assert state.ema_slow == Decimal("3000")
        assert state.macd == Decimal("0")
        assert state.macd_hist == Decimal("0")
        assert state.rsi == Decimal("50")
        assert state.bb_percent_b == Decimal("0.5")

    def test_sma_falls_back_to_price_before_enough_samples(
        self, engine: IndicatorEngine
    ) -> None:
        _feed(engine, "WETH", [100, 102, 104])
        state = engine.state("WETH")
        assert state is not None
        assert state.sma_fast == Decimal("104")
        assert state.sma_slow == Decimal("104")

    def test_sma_uses_window_once_available(self, engine: IndicatorEngine) -> None:
        _feed(engine, "WETH", list(range(1, 11)))
        assert engine.state("WETH").sma_fast == Decimal("5.5")

    def test_constant_price_ema_converges(self, engine: IndicatorEngine) -> None:
        _feed(engine, "LINK", [15] * 60)
        state = engine.state("LINK")
        assert state.ema_fast == Decimal("15")
        assert state.ema_slow == Decimal("15")
        assert state.macd == Decimal("0")

    def test_rsi_stays_in_range(self, engine: IndicatorEngine) -> None:
        _feed(engine, "WETH", [100, 105, 95, 110, 90, 115, 85, 120, 80] * 5)
        assert Decimal("0") <= engine.state("WETH").rsi <= Decimal("100")

    def test_assets_are_independent(self, engine: IndicatorEngine) -> None:
        _feed(engine, "WETH", [3000, 3010])
        _feed(engine, "LINK", [15])
        assert engine.sample_count("WETH") == 2
        assert engine.sample_count("LINK") == 1
        assert engine.last_price("LINK") == Decimal("15")


class TestValidation:
    def test_rejects_non_positive_price(self, engine: IndicatorEngine) -> None:
        with pytest.raises(ValueError):
            engine.update("WETH", PriceSample(timestamp=1.0, price=Decimal("0")))
        assert engine.sample_count("WETH") == 0

    def test_rejects_out_of_order_sample(self, engine: IndicatorEngine) -> None:
        _feed(engine, "WETH", [100, 101], start=10.0)
        before = engine.state("WETH")
        with pytest.raises(StaleSampleError):
            engine.update("WETH", PriceSample(timestamp=5.0, price=Decimal("999")))
        assert engine.state("WETH") == before
        assert engine.sample_count("WETH") == 2

    def test_rejects_duplicate_timestamp(self, engine: IndicatorEngine) -> None:
        _feed(engine, "WETH", [100], start=10.0)
        with pytest.raises(StaleSampleError):
            engine.update("WETH", PriceSample(timestamp=10.0, price=Decimal("101")))


class TestHistory:
    def test_oldest_samples_evicted_at_capacity(self) -> None:
        engine = IndicatorEngine(IndicatorSettings(price_history_size=5))
        _feed(engine, "WETH", [1, 2, 3, 4, 5, 6, 7, 8])
        history = engine.history("WETH")
        assert [s.price for s in history] == [Decimal(p) for p in (4, 5, 6, 7, 8)]
        assert engine.sample_count("WETH") == 5

    def test_is_warm_uses_slow_period(self, engine: IndicatorEngine) -> None:
        _feed(engine, "WETH", range(1, 30))
        assert not engine.is_warm("WETH")
        engine.update("WETH", PriceSample(timestamp=100.0, price=Decimal("30")))
        assert engine.is_warm("WETH")

    def test_registered_asset_has_no_state(self, engine: IndicatorEngine) -> None:
        engine.register("LINK")
        assert engine.assets == ["LINK"]
        assert engine.state("LINK") is None
        assert engine.states() == {}


class TestDeterminism:
    def test_replay_yields_identical_state(self) -> None:
        prices = [3000, 3012.5, 2990, 3005, 3050, 2980, 3100, 3075] * 6
        first = IndicatorEngine(IndicatorSettings())
        second = IndicatorEngine(IndicatorSettings())
        _feed(first, "WETH", prices)
        _feed(second, "WETH", prices)
        assert first.state("WETH") == second.state("WETH")
