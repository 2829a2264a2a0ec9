"""Portfolio valuation for the trading account.

Keeps the single PortfolioState owned by the scheduler: latest balances,
USD prices, total value, and the peak/drawdown fields maintained by the
RiskManager. Price pairs are quoted in the base asset, which is valued at
1 USD; the native asset is valued at its wrapped counterpart's price.
"""

import copy
from decimal import Decimal

from trader.config import AssetSettings
from trader.logging import get_logger
from trader.models import PortfolioState

logger = get_logger(__name__)

_ONE = Decimal("1")


class PortfolioTracker:
    """Owns and values the PortfolioState.

    Args:
        asset_settings: Base, native and wrapped asset names.
    """

    def __init__(self, asset_settings: AssetSettings) -> None:
        self._assets = asset_settings
        self._state = PortfolioState()

    @property
    def state(self) -> PortfolioState:
        """The live state. Only the scheduler may mutate it."""
        return self._state

    def usd_prices(self, pair_prices: dict[str, Decimal]) -> dict[str, Decimal]:
        """Convert tracked-asset pair prices into a USD price per asset."""
        prices = dict(pair_prices)
        prices[self._assets.base_asset] = _ONE
        wrapped = prices.get(self._assets.wrapped_native_asset)
        if wrapped is not None:
            prices[self._assets.native_asset] = wrapped
        return prices

    def refresh(
        self, balances: dict[str, Decimal], pair_prices: dict[str, Decimal]
    ) -> PortfolioState:
        """Replace balances and prices, then recompute total value.

        Peak and drawdown are left to RiskManager.check_drawdown.
        """
        self._state.balances = dict(balances)
        self._state.prices_usd = self.usd_prices(pair_prices)
        self._state.total_value_usd = self.total_value(self._state)
        return self._state

    def update_balances(self, balances: dict[str, Decimal]) -> PortfolioState:
        """Replace balances only, keeping the last known prices."""
        self._state.balances = dict(balances)
        self._state.total_value_usd = self.total_value(self._state)
        return self._state

    @staticmethod
    def total_value(state: PortfolioState) -> Decimal:
        """Sum of all priced holdings in USD. Unpriced assets count as zero."""
        return sum(
            (state.value_usd(asset) for asset in state.balances),
            Decimal("0"),
        )

    def reanchor_peak(self) -> None:
        """Clear the halt flag and restart drawdown measurement from now."""
        self._state.peak_value_usd = self._state.total_value_usd
        self._state.current_drawdown_pct = Decimal("0")
        self._state.halted = False
        logger.info(
            "portfolio_peak_reanchored",
            peak_value_usd=str(self._state.peak_value_usd),
        )

    def snapshot(self) -> PortfolioState:
        """Deep copy safe to hand to readers."""
        return copy.deepcopy(self._state)
