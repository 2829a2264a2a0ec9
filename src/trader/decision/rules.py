"""Ordered decision rules.

Each rule is a named function from a DecisionContext to an optional
TradeInstruction. A rule "fires" only when its signal threshold matches AND
its sizing yields a trade of at least ``min_trade_usd``; otherwise the
cascade moves on. Rules are plain functions so each can be unit-tested in
isolation.

Rule order (first match wins):
  1. acquire  -- strongest bullish asset above +min_confluence
  2. dispose  -- weakest bearish asset below -min_confluence, into base
  3. risk_off -- every tracked asset below risk_off_threshold: trim the
                 largest holding into base

CRITICAL: All amounts use Decimal. Never use float.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal

from trader.config import AssetSettings, RiskSettings, TradingSettings
from trader.logging import get_logger
from trader.models import PortfolioState, TradeInstruction, TradeKind
from trader.signals.models import Signal

logger = get_logger(__name__)

#: Amount precision for emitted instructions (rounded down).
AMOUNT_QUANTIZE = Decimal("0.00000001")

_ZERO = Decimal("0")
_ONE = Decimal("1")


@dataclass(frozen=True)
class DecisionContext:
    """Everything a rule may read. Rules never mutate it."""

    signals: dict[str, Signal]
    portfolio: PortfolioState
    trading: TradingSettings
    assets: AssetSettings
    risk: RiskSettings

    def signal_of(self, asset: str) -> Decimal | None:
        signal = self.signals.get(asset)
        return signal.composite if signal is not None else None


@dataclass(frozen=True)
class DecisionRule:
    """A named step of the decision cascade."""

    name: str
    evaluate: Callable[[DecisionContext], TradeInstruction | None]


def round_amount(amount: Decimal) -> Decimal:
    """Round an amount down to instruction precision."""
    return amount.quantize(AMOUNT_QUANTIZE, rounding=ROUND_DOWN)


def trade_fraction(signal: Decimal, sizing_cap: Decimal) -> Decimal:
    """Fraction of the funding balance to trade: min(sizing_cap, |signal|)."""
    return min(sizing_cap, abs(signal))


def _build_instruction(
    ctx: DecisionContext,
    *,
    kind: TradeKind,
    from_asset: str,
    to_asset: str,
    amount_in: Decimal,
    price_from: Decimal,
    price_to: Decimal,
    rule: str,
    asset: str,
    signal: Decimal,
    wrap_first: bool = False,
) -> TradeInstruction | None:
    """Apply the dust floor and slippage bound; None if below min_trade_usd."""
    amount_in = round_amount(amount_in)
    if amount_in <= 0 or amount_in * price_from < ctx.trading.min_trade_usd:
        return None

    if kind == TradeKind.WRAP:
        expected_out = amount_in
        min_out = amount_in
    else:
        expected_out = round_amount(amount_in * price_from / price_to)
        min_out = round_amount(expected_out * (_ONE - ctx.trading.slippage_tolerance))

    return TradeInstruction(
        kind=kind,
        from_asset=from_asset,
        to_asset=to_asset,
        amount_in=amount_in,
        expected_amount_out=expected_out,
        min_amount_out=min_out,
        rule=rule,
        asset=asset,
        signal=signal,
        wrap_first=wrap_first,
    )


def _funding_sources(ctx: DecisionContext, target: str) -> list[tuple[str, Decimal, bool]]:
    """Spendable funding balances in priority order: (asset, amount, needs_wrap).

    Base asset first, then the wrapped native asset (unless it is the
    target), then the native asset above the gas reserve.
    """
    a = ctx.assets
    pf = ctx.portfolio
    sources: list[tuple[str, Decimal, bool]] = []

    base_balance = pf.balance(a.base_asset)
    if base_balance > 0:
        sources.append((a.base_asset, base_balance, False))

    if target != a.wrapped_native_asset:
        wrapped_balance = pf.balance(a.wrapped_native_asset)
        if wrapped_balance > 0:
            sources.append((a.wrapped_native_asset, wrapped_balance, False))

    native_spendable = pf.balance(a.native_asset) - ctx.risk.gas_reserve
    if native_spendable > 0:
        sources.append((a.native_asset, native_spendable, True))

    return sources


def _acquire_for(ctx: DecisionContext, target: str, signal: Decimal) -> TradeInstruction | None:
    a = ctx.assets
    pf = ctx.portfolio
    price_to = pf.price(target)
    if price_to is None or price_to <= 0:
        return None

    # Room left under the per-position cap, in USD
    headroom_usd = ctx.trading.max_position_pct * pf.total_value_usd - pf.value_usd(target)
    if headroom_usd <= 0:
        logger.debug(
            "acquire_skipped_position_cap",
            asset=target,
            position_usd=str(pf.value_usd(target)),
            total_usd=str(pf.total_value_usd),
        )
        return None

    fraction = trade_fraction(signal, ctx.trading.sizing_cap)
    for source, spendable, needs_wrap in _funding_sources(ctx, target):
        price_from = pf.price(source)
        if price_from is None or price_from <= 0:
            continue

        amount_in = spendable * fraction
        if amount_in * price_from > headroom_usd:
            amount_in = headroom_usd / price_from

        if needs_wrap and target == a.wrapped_native_asset:
            instruction = _build_instruction(
                ctx,
                kind=TradeKind.WRAP,
                from_asset=a.native_asset,
                to_asset=a.wrapped_native_asset,
                amount_in=amount_in,
                price_from=price_from,
                price_to=price_to,
                rule="acquire",
                asset=target,
                signal=signal,
            )
        else:
            instruction = _build_instruction(
                ctx,
                kind=TradeKind.SWAP,
                from_asset=a.wrapped_native_asset if needs_wrap else source,
                to_asset=target,
                amount_in=amount_in,
                price_from=price_from,
                price_to=price_to,
                rule="acquire",
                asset=target,
                signal=signal,
                wrap_first=needs_wrap,
            )
        if instruction is not None:
            return instruction
    return None


def evaluate_acquire(ctx: DecisionContext) -> TradeInstruction | None:
    """Buy the strongest asset whose signal exceeds +min_confluence.

    Candidates are ordered by signal, strongest first; equal signals keep
    the configured tracked-asset order.
    """
    threshold = ctx.trading.min_confluence
    candidates = [
        (asset, ctx.signal_of(asset))
        for asset in ctx.assets.tracked_assets
        if ctx.signal_of(asset) is not None and ctx.signal_of(asset) > threshold
    ]
    candidates.sort(key=lambda item: item[1], reverse=True)
    for asset, signal in candidates:
        instruction = _acquire_for(ctx, asset, signal)
        if instruction is not None:
            return instruction
    return None


def evaluate_dispose(ctx: DecisionContext) -> TradeInstruction | None:
    """Sell the weakest held asset whose signal is below -min_confluence into base."""
    a = ctx.assets
    pf = ctx.portfolio
    threshold = -ctx.trading.min_confluence
    candidates = [
        (asset, ctx.signal_of(asset))
        for asset in a.tracked_assets
        if asset != a.base_asset
        and ctx.signal_of(asset) is not None
        and ctx.signal_of(asset) < threshold
    ]
    candidates.sort(key=lambda item: item[1])

    base_price = pf.price(a.base_asset) or _ONE
    for asset, signal in candidates:
        price_from = pf.price(asset)
        if price_from is None or price_from <= 0:
            continue
        if pf.value_usd(asset) <= ctx.trading.min_holding_usd:
            continue
        amount_in = pf.balance(asset) * trade_fraction(signal, ctx.trading.sizing_cap)
        instruction = _build_instruction(
            ctx,
            kind=TradeKind.SWAP,
            from_asset=asset,
            to_asset=a.base_asset,
            amount_in=amount_in,
            price_from=price_from,
            price_to=base_price,
            rule="dispose",
            asset=asset,
            signal=signal,
        )
        if instruction is not None:
            return instruction
    return None


def evaluate_risk_off(ctx: DecisionContext) -> TradeInstruction | None:
    """Trim the largest tracked holding into base when every signal is weak.

    Fires only if all tracked assets have a signal below risk_off_threshold.
    Sells risk_off_fraction of the holding with the highest USD value.
    """
    a = ctx.assets
    pf = ctx.portfolio
    tracked = [asset for asset in a.tracked_assets if asset != a.base_asset]
    if not tracked:
        return None

    threshold = ctx.trading.risk_off_threshold
    for asset in tracked:
        signal = ctx.signal_of(asset)
        if signal is None or signal >= threshold:
            return None

    largest = max(tracked, key=pf.value_usd)
    price_from = pf.price(largest)
    if price_from is None or price_from <= 0 or pf.balance(largest) <= 0:
        return None

    return _build_instruction(
        ctx,
        kind=TradeKind.SWAP,
        from_asset=largest,
        to_asset=a.base_asset,
        amount_in=pf.balance(largest) * ctx.trading.risk_off_fraction,
        price_from=price_from,
        price_to=pf.price(a.base_asset) or _ONE,
        rule="risk_off",
        asset=largest,
        signal=ctx.signal_of(largest),
    )


DEFAULT_RULES: tuple[DecisionRule, ...] = (
    DecisionRule(name="acquire", evaluate=evaluate_acquire),
    DecisionRule(name="dispose", evaluate=evaluate_dispose),
    DecisionRule(name="risk_off", evaluate=evaluate_risk_off),
)
