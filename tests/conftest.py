"""Shared test fixtures for the signal trader."""

from decimal import Decimal

import pytest

from trader.config import (
    AppSettings,
    AssetSettings,
    ChainSettings,
    IndicatorSettings,
    PaperSettings,
    RiskSettings,
    SignalSettings,
    TradingSettings,
)
from trader.models import PortfolioState


@pytest.fixture
def app_settings() -> AppSettings:
    """AppSettings with production defaults and fixed seeds.

    Every group is constructed explicitly so tests that mutate thresholds
    never leak into each other.
    """
    return AppSettings(
        log_level="DEBUG",
        assets=AssetSettings(),
        indicators=IndicatorSettings(),
        signal=SignalSettings(),
        trading=TradingSettings(),
        risk=RiskSettings(),
        chain=ChainSettings(seed=7),
        paper=PaperSettings(seed=7),
    )


@pytest.fixture
def fast_settings() -> AppSettings:
    """AppSettings with short indicator periods so warm-up takes three ticks."""
    return AppSettings(
        log_level="DEBUG",
        assets=AssetSettings(),
        indicators=IndicatorSettings(
            price_history_size=50,
            sma_fast_period=2,
            sma_slow_period=3,
            ema_fast_period=2,
            ema_slow_period=3,
            macd_signal_period=2,
            rsi_period=2,
            bb_period=3,
        ),
        signal=SignalSettings(),
        trading=TradingSettings(poll_interval=0.01),
        risk=RiskSettings(),
        chain=ChainSettings(seed=7),
        paper=PaperSettings(seed=7),
    )


@pytest.fixture
def usd_prices() -> dict[str, Decimal]:
    return {
        "USDC": Decimal("1"),
        "ETH": Decimal("2000"),
        "WETH": Decimal("2000"),
        "LINK": Decimal("10"),
    }


def make_portfolio(
    balances: dict[str, Decimal], prices: dict[str, Decimal], **kwargs
) -> PortfolioState:
    """Build a valued PortfolioState with peak defaulting to the current value."""
    total = sum(
        (amount * prices.get(asset, Decimal("0")) for asset, amount in balances.items()),
        Decimal("0"),
    )
    state = PortfolioState(
        balances=dict(balances),
        prices_usd=dict(prices),
        total_value_usd=total,
        peak_value_usd=total,
    )
    for key, value in kwargs.items():
        setattr(state, key, value)
    return state


@pytest.fixture
def portfolio_factory():
    """Factory fixture wrapping make_portfolio."""
    return make_portfolio
