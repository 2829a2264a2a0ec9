"""Tests for PortfolioTracker valuation and peak re-anchoring."""

from decimal import Decimal

import pytest

from trader.config import AssetSettings
from trader.portfolio.tracker import PortfolioTracker


@pytest.fixture
def tracker() -> PortfolioTracker:
    return PortfolioTracker(AssetSettings())


PAIR_PRICES = {"WETH": Decimal("2000"), "LINK": Decimal("10")}


class TestValuation:
    def test_base_and_native_prices_derived(self, tracker: PortfolioTracker) -> None:
        prices = tracker.usd_prices(PAIR_PRICES)
        assert prices["USDC"] == Decimal("1")
        assert prices["ETH"] == Decimal("2000")
        assert prices["LINK"] == Decimal("10")

    def test_refresh_values_all_holdings(self, tracker: PortfolioTracker) -> None:
        state = tracker.refresh(
            {"USDC": Decimal("100"), "ETH": Decimal("0.05"), "LINK": Decimal("2")},
            PAIR_PRICES,
        )
        assert state.total_value_usd == Decimal("220")

    def test_unpriced_assets_count_as_zero(self, tracker: PortfolioTracker) -> None:
        state = tracker.refresh({"USDC": Decimal("5"), "DOGE": Decimal("1000")}, PAIR_PRICES)
        assert state.total_value_usd == Decimal("5")

    def test_update_balances_keeps_prices(self, tracker: PortfolioTracker) -> None:
        tracker.refresh({"USDC": Decimal("100")}, PAIR_PRICES)
        state = tracker.update_balances({"USDC": Decimal("0"), "LINK": Decimal("10")})
        assert state.total_value_usd == Decimal("100")


class TestSnapshot:
    def test_snapshot_is_independent(self, tracker: PortfolioTracker) -> None:
        tracker.refresh({"USDC": Decimal("100")}, PAIR_PRICES)
        snapshot = tracker.snapshot()
        tracker.update_balances({"USDC": Decimal("1")})
        assert snapshot.balances["USDC"] == Decimal("100")

    def test_reanchor_peak_clears_halt(self, tracker: PortfolioTracker) -> None:
        state = tracker.refresh({"USDC": Decimal("800")}, PAIR_PRICES)
        state.peak_value_usd = Decimal("1000")
        state.current_drawdown_pct = Decimal("0.2")
        state.halted = True

        tracker.reanchor_peak()

        assert state.peak_value_usd == Decimal("800")
        assert state.current_drawdown_pct == Decimal("0")
        assert state.halted is False
