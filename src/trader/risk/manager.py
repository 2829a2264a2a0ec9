"""Pre-trade risk guards.

Evaluates every guard independently, in a fixed order, and reports all
violations so operators see the full picture:
  1. Drawdown from peak (sets the sticky halt flag on breach)
  2. Cooldown in blocks since the last executed trade
  3. Trades per trailing hour
  4. Network fee ceiling
  5. Native gas reserve

Uses RiskSettings for all thresholds, read on every call so runtime config
updates apply to the next check.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from trader.config import AssetSettings, RiskSettings
from trader.logging import get_logger

if TYPE_CHECKING:
    from trader.models import PortfolioState, TradeRecord

logger = get_logger(__name__)

#: Trailing window for the trade rate limit.
RATE_LIMIT_WINDOW_SECONDS = 60 * 60

_PCT_QUANTIZE = Decimal("0.000001")


@dataclass
class RiskCheckResult:
    """Outcome of a risk check. ``issues`` keeps guard evaluation order."""

    ok: bool
    issues: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"ok": self.ok, "issues": list(self.issues)}


class RiskManager:
    """Evaluates drawdown, cooldown, rate-limit and gas guards.

    Args:
        settings: Risk thresholds.
        asset_settings: Used to find the native gas asset balance.
    """

    def __init__(self, settings: RiskSettings, asset_settings: AssetSettings) -> None:
        self._settings = settings
        self._assets = asset_settings

    def check_drawdown(self, portfolio: PortfolioState) -> bool:
        """Update peak and drawdown; set the sticky halt flag on breach.

        Returns:
            True if the drawdown limit is exceeded on this evaluation.
        """
        current = portfolio.total_value_usd
        if current > portfolio.peak_value_usd:
            portfolio.peak_value_usd = current

        peak = portfolio.peak_value_usd
        if peak <= 0:
            portfolio.current_drawdown_pct = Decimal("0")
            return False

        drawdown = ((peak - current) / peak).quantize(_PCT_QUANTIZE)
        portfolio.current_drawdown_pct = drawdown

        breached = drawdown > self._settings.max_drawdown_pct
        if breached and not portfolio.halted:
            portfolio.halted = True
            logger.critical(
                "drawdown_halt_triggered",
                drawdown_pct=str(drawdown),
                limit=str(self._settings.max_drawdown_pct),
                peak_value_usd=str(peak),
                current_value_usd=str(current),
            )
        return breached

    def check(
        self,
        portfolio: PortfolioState,
        trade_history: Sequence[TradeRecord],
        chain_tick: int,
        gas_price: Decimal,
        now: float,
    ) -> RiskCheckResult:
        """Run all guards and collect every violation.

        Args:
            portfolio: Current portfolio; peak/drawdown/halt fields are updated.
            trade_history: Executed trades, oldest first.
            chain_tick: Block height being processed.
            gas_price: Current network fee level (gwei).
            now: Current unix time for the trailing rate-limit window.

        Returns:
            RiskCheckResult with ok=True only when no guard fired and the
            portfolio is not halted.
        """
        s = self._settings
        issues: list[str] = []

        if self.check_drawdown(portfolio):
            issues.append(
                f"Drawdown {portfolio.current_drawdown_pct} exceeds max "
                f"{s.max_drawdown_pct}"
            )

        if trade_history:
            blocks_since = chain_tick - trade_history[-1].block_height
            if blocks_since < s.cooldown_blocks:
                issues.append(
                    f"Cooldown active: {blocks_since} of {s.cooldown_blocks} blocks "
                    f"since last trade"
                )

        recent = self.trades_in_window(trade_history, now)
        if recent >= s.max_trades_per_hour:
            issues.append(
                f"Rate limit reached: {recent} trades in the last hour "
                f"(max {s.max_trades_per_hour})"
            )

        if gas_price > s.max_gas_price_gwei:
            issues.append(
                f"Gas price {gas_price} gwei above ceiling {s.max_gas_price_gwei}"
            )

        native_balance = portfolio.balance(self._assets.native_asset)
        if native_balance < s.gas_reserve:
            issues.append(
                f"{self._assets.native_asset} balance {native_balance} below gas "
                f"reserve {s.gas_reserve}"
            )

        if portfolio.halted and not any(i.startswith("Drawdown") for i in issues):
            issues.insert(0, "Trading halted after drawdown breach; reset required")

        ok = not issues and not portfolio.halted
        if not ok:
            logger.warning("risk_check_failed", chain_tick=chain_tick, issues=issues)
        return RiskCheckResult(ok=ok, issues=issues)

    @staticmethod
    def trades_in_window(
        trade_history: Sequence[TradeRecord],
        now: float,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
    ) -> int:
        """Count trades executed within the trailing window ending at ``now``."""
        cutoff = now - window_seconds
        return sum(1 for record in trade_history if record.time > cutoff)
