"""Decision engine: evaluate the rule cascade and emit at most one instruction.

Stateless given its inputs. Settings are read on every call so runtime
config updates take effect on the next tick.
"""

from __future__ import annotations

from collections.abc import Sequence

from trader.config import AssetSettings, RiskSettings, TradingSettings
from trader.decision.rules import DEFAULT_RULES, DecisionContext, DecisionRule
from trader.logging import get_logger
from trader.models import PortfolioState, TradeInstruction
from trader.signals.models import Signal

logger = get_logger(__name__)


class DecisionEngine:
    """First-match-wins evaluation of an ordered rule list.

    Args:
        trading_settings: Sizing and threshold settings.
        asset_settings: Base/native/wrapped/tracked asset names.
        risk_settings: Gas reserve (native balance never spent).
        rules: Ordered rules; defaults to acquire, dispose, risk_off.
    """

    def __init__(
        self,
        trading_settings: TradingSettings,
        asset_settings: AssetSettings,
        risk_settings: RiskSettings,
        rules: Sequence[DecisionRule] = DEFAULT_RULES,
    ) -> None:
        self._trading = trading_settings
        self._assets = asset_settings
        self._risk = risk_settings
        self._rules = tuple(rules)

    @property
    def rule_names(self) -> list[str]:
        return [rule.name for rule in self._rules]

    def decide(
        self, signals: dict[str, Signal], portfolio: PortfolioState
    ) -> TradeInstruction | None:
        """Return the first instruction produced by the rule cascade, or None."""
        ctx = DecisionContext(
            signals=signals,
            portfolio=portfolio,
            trading=self._trading,
            assets=self._assets,
            risk=self._risk,
        )
        for rule in self._rules:
            instruction = rule.evaluate(ctx)
            if instruction is None:
                continue
            logger.info(
                "decision_emitted",
                rule=rule.name,
                kind=instruction.kind.value,
                from_asset=instruction.from_asset,
                to_asset=instruction.to_asset,
                amount_in=str(instruction.amount_in),
                min_amount_out=str(instruction.min_amount_out),
                signal=str(instruction.signal),
                wrap_first=instruction.wrap_first,
            )
            return instruction

        logger.debug(
            "no_decision",
            signals={asset: str(sig.composite) for asset, sig in signals.items()},
        )
        return None
