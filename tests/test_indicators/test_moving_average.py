"""Tests for SMA and EMA helpers.

All test values use Decimal (project convention).
"""

from decimal import Decimal

from trader.indicators.moving_average import compute_ema, compute_sma, ema_alpha, ema_step


class TestComputeSma:
    def test_mean_of_last_period_prices(self) -> None:
        prices = [Decimal("1"), Decimal("2"), Decimal("3")]
        assert compute_sma(prices, 2) == Decimal("2.5")

    def test_insufficient_data_returns_none(self) -> None:
        assert compute_sma([Decimal("1")], 2) is None

    def test_non_positive_period_returns_none(self) -> None:
        assert compute_sma([Decimal("1"), Decimal("2")], 0) is None


class TestEma:
    def test_alpha(self) -> None:
        assert ema_alpha(3) == Decimal("0.5")

    def test_first_step_seeds_with_value(self) -> None:
        assert ema_step(None, Decimal("42"), 12) == Decimal("42")

    def test_known_values_period_3(self) -> None:
        """alpha = 0.5: 1, 1.5, 2.25, 3.125, 4.0625."""
        values = [Decimal(v) for v in ("1", "2", "3", "4", "5")]
        assert compute_ema(values, 3) == [
            Decimal("1"),
            Decimal("1.5"),
            Decimal("2.25"),
            Decimal("3.125"),
            Decimal("4.0625"),
        ]

    def test_empty_input(self) -> None:
        assert compute_ema([], 3) == []

    def test_constant_series_converges_to_constant(self) -> None:
        """Seeded far away, the EMA still converges onto a constant price."""
        values = [Decimal("200")] + [Decimal("100")] * 300
        result = compute_ema(values, 26)
        assert abs(result[-1] - Decimal("100")) < Decimal("0.0001")

    def test_precision_is_bounded(self) -> None:
        result = compute_ema([Decimal("1"), Decimal("2")], 2)
        assert result[-1].as_tuple().exponent >= -12
