"""Trade decision cascade.

Provides the ordered rule set (acquire, dispose, risk-off) and the
DecisionEngine that evaluates it, emitting at most one TradeInstruction.
"""

from trader.decision.engine import DecisionEngine
from trader.decision.rules import (
    DEFAULT_RULES,
    DecisionContext,
    DecisionRule,
    evaluate_acquire,
    evaluate_dispose,
    evaluate_risk_off,
)

__all__ = [
    "DEFAULT_RULES",
    "DecisionContext",
    "DecisionEngine",
    "DecisionRule",
    "evaluate_acquire",
    "evaluate_dispose",
    "evaluate_risk_off",
]
