"""Tests for sub-signal functions and composite aggregation.

All values use Decimal. Every sub-signal must land in [-1, 1] and degrade
to 0 on degenerate input.
"""

from decimal import Decimal

from trader.signals.components import (
    bollinger_signal,
    clamp,
    macd_signal,
    rsi_signal,
    sma_crossover_signal,
    trend_signal,
)
from trader.signals.composite import compute_composite_score
from trader.signals.models import SignalComponent

D = Decimal


class TestSmaCrossover:
    def test_small_gap_is_proportional(self) -> None:
        assert sma_crossover_signal(D("101"), D("100")) == D("0.2")

    def test_five_percent_gap_saturates(self) -> None:
        assert sma_crossover_signal(D("105"), D("100")) == D("1")
        assert sma_crossover_signal(D("90"), D("100")) == D("-1")

    def test_zero_slow_sma_is_neutral(self) -> None:
        assert sma_crossover_signal(D("1"), D("0")) == D("0")


class TestRsiSignal:
    def test_oversold_is_bullish(self) -> None:
        assert rsi_signal(D("20")) == D("0.333333")

    def test_overbought_is_bearish(self) -> None:
        assert rsi_signal(D("80")) == D("-0.333333")

    def test_neutral_zone(self) -> None:
        assert rsi_signal(D("50")) == D("0")
        assert rsi_signal(D("30")) == D("0")
        assert rsi_signal(D("70")) == D("0")

    def test_extremes_saturate(self) -> None:
        assert rsi_signal(D("0")) == D("1")
        assert rsi_signal(D("100")) == D("-1")


class TestMacdSignal:
    def test_normalized_by_middle_band(self) -> None:
        assert macd_signal(D("0.1"), D("100")) == D("0.1")

    def test_saturates(self) -> None:
        assert macd_signal(D("5"), D("100")) == D("1")

    def test_zero_middle_band_is_neutral(self) -> None:
        assert macd_signal(D("5"), D("0")) == D("0")


class TestBollingerSignal:
    def test_band_edges(self) -> None:
        assert bollinger_signal(D("0")) == D("1")
        assert bollinger_signal(D("1")) == D("-1")
        assert bollinger_signal(D("0.5")) == D("0")


class TestTrendSignal:
    def test_above_slow_sma(self) -> None:
        assert trend_signal(D("110"), D("100")) == D("1")

    def test_below_slow_sma(self) -> None:
        assert trend_signal(D("95"), D("100")) == D("-0.5")

    def test_zero_slow_sma_is_neutral(self) -> None:
        assert trend_signal(D("10"), D("0")) == D("0")


class TestClamp:
    def test_quantizes_to_six_places(self) -> None:
        assert clamp(D("0.12345678")).as_tuple().exponent == -6


class TestCompositeScore:
    def test_weighted_sum(self) -> None:
        components = {
            SignalComponent.SMA_CROSSOVER.value: D("1"),
            SignalComponent.RSI.value: D("-1"),
            SignalComponent.MACD.value: D("0.5"),
            SignalComponent.BOLLINGER.value: D("0"),
            SignalComponent.TREND.value: D("1"),
        }
        weights = {
            SignalComponent.SMA_CROSSOVER.value: D("0.25"),
            SignalComponent.RSI.value: D("0.20"),
            SignalComponent.MACD.value: D("0.20"),
            SignalComponent.BOLLINGER.value: D("0.20"),
            SignalComponent.TREND.value: D("0.15"),
        }
        # 0.25 - 0.20 + 0.10 + 0 + 0.15
        assert compute_composite_score(components, weights) == D("0.3")

    def test_clamped_when_weights_exceed_one(self) -> None:
        components = {"a": D("1"), "b": D("1")}
        weights = {"a": D("1"), "b": D("1")}
        assert compute_composite_score(components, weights) == D("1")

    def test_missing_component_counts_as_zero(self) -> None:
        assert compute_composite_score({}, {"a": D("0.5")}) == D("0")
