"""Composite signal aggregation.

Combines the individual sub-signal scores into a single weighted
directional score. Inputs are expected in [-1, 1]; the result is clamped to
[-1, 1] even if the configured weights do not sum to exactly 1.0.

CRITICAL: All computations use Decimal. Never use float for signal scores.
"""

from decimal import Decimal

from trader.signals.components import clamp


def compute_composite_score(
    components: dict[str, Decimal],
    weights: dict[str, Decimal],
) -> Decimal:
    """Compute a weighted composite score from sub-signal scores.

    Formula:
        score = sum(weights[name] * components[name] for name in weights)

    Components without a weight contribute nothing; weights without a
    component count the component as 0.

    Args:
        components: Sub-signal name -> score in [-1, 1].
        weights: Sub-signal name -> weight.

    Returns:
        Composite score clamped to [-1, 1] and quantized to 6 decimal places.
    """
    score = sum(
        (weight * components.get(name, Decimal("0")) for name, weight in weights.items()),
        Decimal("0"),
    )
    return clamp(score)
