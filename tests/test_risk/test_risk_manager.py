"""Tests for RiskManager -- drawdown, cooldown, rate limit, and gas guards.

Every guard is evaluated on every check, and all violations are reported.
"""

from decimal import Decimal

import pytest

from trader.config import AssetSettings, RiskSettings
from trader.models import TradeKind, TradeRecord
from trader.risk.manager import RATE_LIMIT_WINDOW_SECONDS, RiskManager


NOW = 1_700_000_000.0


def _trade(block_height: int, time: float = NOW - 60) -> TradeRecord:
    return TradeRecord(
        time=time,
        kind=TradeKind.SWAP,
        from_asset="USDC",
        to_asset="WETH",
        amount_in=Decimal("100"),
        amount_out_estimate=Decimal("0.05"),
        tx_ref="paper_abc",
        block_height=block_height,
        rule="acquire",
    )


@pytest.fixture
def settings() -> RiskSettings:
    return RiskSettings(
        max_drawdown_pct=Decimal("0.15"),
        cooldown_blocks=10,
        max_trades_per_hour=3,
        max_gas_price_gwei=Decimal("50"),
        gas_reserve=Decimal("0.005"),
    )


@pytest.fixture
def risk_manager(settings: RiskSettings) -> RiskManager:
    return RiskManager(settings, AssetSettings())


@pytest.fixture
def healthy(usd_prices, portfolio_factory):
    return portfolio_factory({"USDC": Decimal("1000"), "ETH": Decimal("0.05")}, usd_prices)


class TestCheck:
    def test_passes_when_all_guards_clear(self, risk_manager: RiskManager, healthy) -> None:
        result = risk_manager.check(healthy, [], chain_tick=100, gas_price=Decimal("1"), now=NOW)
        assert result.ok is True
        assert result.issues == []

    def test_cooldown_blocks_until_elapsed(self, risk_manager: RiskManager, healthy) -> None:
        """Trade at T -> blocked at T+1..T+9, clear at T+10."""
        history = [_trade(block_height=100, time=NOW - 3000)]
        for tick in range(101, 110):
            result = risk_manager.check(
                healthy, history, chain_tick=tick, gas_price=Decimal("1"), now=NOW
            )
            assert not result.ok
            assert any("Cooldown" in issue for issue in result.issues)

        result = risk_manager.check(
            healthy, history, chain_tick=110, gas_price=Decimal("1"), now=NOW
        )
        assert result.ok

    def test_rate_limit(self, risk_manager: RiskManager, healthy) -> None:
        history = [_trade(block_height=b, time=NOW - 600) for b in (10, 30, 50)]
        result = risk_manager.check(
            healthy, history, chain_tick=200, gas_price=Decimal("1"), now=NOW
        )
        assert not result.ok
        assert any("Rate limit" in issue for issue in result.issues)

    def test_rate_limit_window_is_trailing(self, risk_manager: RiskManager, healthy) -> None:
        old = NOW - RATE_LIMIT_WINDOW_SECONDS - 1
        history = [_trade(block_height=b, time=old) for b in (10, 30, 50)]
        result = risk_manager.check(
            healthy, history, chain_tick=200, gas_price=Decimal("1"), now=NOW
        )
        assert result.ok

    def test_gas_ceiling(self, risk_manager: RiskManager, healthy) -> None:
        result = risk_manager.check(healthy, [], chain_tick=1, gas_price=Decimal("51"), now=NOW)
        assert not result.ok
        assert any("Gas price" in issue for issue in result.issues)

    def test_gas_reserve(self, risk_manager: RiskManager, usd_prices, portfolio_factory) -> None:
        portfolio = portfolio_factory(
            {"USDC": Decimal("1000"), "ETH": Decimal("0.001")}, usd_prices
        )
        result = risk_manager.check(portfolio, [], chain_tick=1, gas_price=Decimal("1"), now=NOW)
        assert not result.ok
        assert any("gas reserve" in issue for issue in result.issues)

    def test_all_issues_reported_in_order(
        self, risk_manager: RiskManager, usd_prices, portfolio_factory
    ) -> None:
        portfolio = portfolio_factory(
            {"USDC": Decimal("800"), "ETH": Decimal("0")},
            usd_prices,
            peak_value_usd=Decimal("1000"),
        )
        history = [_trade(block_height=b, time=NOW - 60) for b in (95, 97, 99)]
        result = risk_manager.check(
            portfolio, history, chain_tick=100, gas_price=Decimal("99"), now=NOW
        )
        assert not result.ok
        assert len(result.issues) == 5
        assert result.issues[0].startswith("Drawdown")
        assert result.issues[1].startswith("Cooldown")
        assert result.issues[2].startswith("Rate limit")
        assert result.issues[3].startswith("Gas price")
        assert "gas reserve" in result.issues[4]


class TestDrawdown:
    def test_peak_tracks_new_highs(self, risk_manager: RiskManager, healthy) -> None:
        healthy.peak_value_usd = Decimal("500")
        assert risk_manager.check_drawdown(healthy) is False
        assert healthy.peak_value_usd == healthy.total_value_usd
        assert healthy.current_drawdown_pct == Decimal("0")

    def test_breach_sets_sticky_halt(
        self, risk_manager: RiskManager, usd_prices, portfolio_factory
    ) -> None:
        portfolio = portfolio_factory(
            {"USDC": Decimal("800")}, usd_prices, peak_value_usd=Decimal("1000")
        )
        assert risk_manager.check_drawdown(portfolio) is True
        assert portfolio.halted is True
        assert portfolio.current_drawdown_pct == Decimal("0.2")

        # Recovery alone does not clear the halt
        portfolio.balances["USDC"] = Decimal("1000")
        portfolio.total_value_usd = Decimal("1000")
        assert risk_manager.check_drawdown(portfolio) is False
        assert portfolio.halted is True

        result = risk_manager.check(
            portfolio, [], chain_tick=1, gas_price=Decimal("1"), now=NOW
        )
        assert not result.ok
        assert "reset required" in result.issues[0]

    def test_drawdown_at_limit_is_allowed(
        self, risk_manager: RiskManager, usd_prices, portfolio_factory
    ) -> None:
        portfolio = portfolio_factory(
            {"USDC": Decimal("850")}, usd_prices, peak_value_usd=Decimal("1000")
        )
        assert risk_manager.check_drawdown(portfolio) is False
        assert portfolio.halted is False

    def test_zero_peak_means_zero_drawdown(
        self, risk_manager: RiskManager, portfolio_factory
    ) -> None:
        portfolio = portfolio_factory({}, {})
        assert risk_manager.check_drawdown(portfolio) is False
        assert portfolio.current_drawdown_pct == Decimal("0")

    def test_thresholds_read_live(
        self, risk_manager: RiskManager, settings: RiskSettings, usd_prices, portfolio_factory
    ) -> None:
        portfolio = portfolio_factory(
            {"USDC": Decimal("900")}, usd_prices, peak_value_usd=Decimal("1000")
        )
        assert risk_manager.check_drawdown(portfolio) is False
        settings.max_drawdown_pct = Decimal("0.05")
        assert risk_manager.check_drawdown(portfolio) is True
