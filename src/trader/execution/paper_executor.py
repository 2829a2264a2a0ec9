"""Paper trading wallet and executor with simulated fills.

The PaperWallet holds virtual balances and serves them as the account's
BalanceSource. The PaperExecutor prices swaps from the shared PriceCache,
applies the pool fee and simulated slippage, charges a flat gas cost in the
native asset, and enforces the instruction's minimum output. Balances are
only mutated after every check has passed, so a failed execution leaves
the wallet untouched.
"""

from __future__ import annotations

import time
from decimal import ROUND_DOWN, Decimal
from uuid import uuid4

from trader.config import AssetSettings, PaperSettings
from trader.exceptions import ExecutionFailedError, SlippageExceeded
from trader.execution.executor import OrderExecutor
from trader.logging import get_logger
from trader.models import ExecutionResult, TradeInstruction, TradeKind
from trader.sources.base import BalanceSource
from trader.sources.price_cache import PriceCache

logger = get_logger(__name__)

_AMOUNT_QUANTIZE = Decimal("0.00000001")

#: Flat simulated gas cost per transaction, in native units.
PAPER_GAS_COST = Decimal("0.00002")

# Maximum price age in seconds before considered stale
_MAX_PRICE_AGE_SECONDS = 120.0


class PaperWallet(BalanceSource):
    """Virtual balances for a single paper account."""

    def __init__(self, initial_balances: dict[str, Decimal] | None = None) -> None:
        self._balances: dict[str, Decimal] = dict(initial_balances or {})

    async def get_balances(self, account: str) -> dict[str, Decimal]:
        return dict(self._balances)

    def balance(self, asset: str) -> Decimal:
        return self._balances.get(asset, Decimal("0"))

    def apply(self, deltas: dict[str, Decimal]) -> None:
        """Apply balance changes atomically (all or nothing).

        Raises:
            ExecutionFailedError: If any balance would go negative.
        """
        updated = dict(self._balances)
        for asset, delta in deltas.items():
            updated[asset] = updated.get(asset, Decimal("0")) + delta
            if updated[asset] < 0:
                raise ExecutionFailedError(
                    f"Insufficient {asset}: short by {-updated[asset]}"
                )
        self._balances = updated


class PaperExecutor(OrderExecutor):
    """Simulated wrap/swap executor for paper trading.

    Args:
        wallet: Virtual balances to debit and credit.
        price_cache: Latest USD price per asset, written by the scheduler.
        paper_settings: Pool fee and simulated slippage.
        asset_settings: Native asset (pays gas).
    """

    def __init__(
        self,
        wallet: PaperWallet,
        price_cache: PriceCache,
        paper_settings: PaperSettings,
        asset_settings: AssetSettings,
        gas_cost: Decimal = PAPER_GAS_COST,
    ) -> None:
        self._wallet = wallet
        self._price_cache = price_cache
        self._settings = paper_settings
        self._assets = asset_settings
        self._gas_cost = gas_cost

    async def execute(self, instruction: TradeInstruction) -> ExecutionResult:
        """Simulate execution of a wrap or swap.

        1. Wrap: 1:1 native -> wrapped.
        2. Swap: price via PriceCache (stale/missing raises ExecutionFailedError),
           apply pool fee and slippage, reject fills below min_amount_out.
        3. Charge gas per transaction (two when a wrap pre-step is needed).
        4. Apply all balance changes atomically.

        Raises:
            ExecutionFailedError: Missing price, insufficient balance.
            SlippageExceeded: Fill below the instruction's minimum output.
        """
        native = self._assets.native_asset
        deltas: dict[str, Decimal] = {}

        def add(asset: str, amount: Decimal) -> None:
            deltas[asset] = deltas.get(asset, Decimal("0")) + amount

        if instruction.kind == TradeKind.WRAP:
            amount_out = instruction.amount_in
            add(instruction.from_asset, -instruction.amount_in)
            add(instruction.to_asset, amount_out)
            add(native, -self._gas_cost)
        else:
            if instruction.wrap_first:
                add(native, -instruction.amount_in)
                add(instruction.from_asset, instruction.amount_in)
                add(native, -self._gas_cost)

            amount_out = await self._quote(instruction)
            if amount_out < instruction.min_amount_out:
                logger.warning(
                    "paper_swap_slippage_exceeded",
                    from_asset=instruction.from_asset,
                    to_asset=instruction.to_asset,
                    amount_out=str(amount_out),
                    min_amount_out=str(instruction.min_amount_out),
                )
                raise SlippageExceeded(
                    f"Output {amount_out} {instruction.to_asset} below minimum "
                    f"{instruction.min_amount_out}"
                )
            add(instruction.from_asset, -instruction.amount_in)
            add(instruction.to_asset, amount_out)
            add(native, -self._gas_cost)

        self._wallet.apply(deltas)

        reference = f"paper_{uuid4().hex[:12]}"
        logger.info(
            "paper_order_filled",
            reference=reference,
            kind=instruction.kind.value,
            from_asset=instruction.from_asset,
            to_asset=instruction.to_asset,
            amount_in=str(instruction.amount_in),
            amount_out=str(amount_out),
            wrap_first=instruction.wrap_first,
        )
        return ExecutionResult(
            success=True,
            amount_out=amount_out,
            reference=reference,
            timestamp=time.time(),
        )

    async def _quote(self, instruction: TradeInstruction) -> Decimal:
        """Simulated swap output after pool fee and slippage."""
        price_from = await self._fresh_price(instruction.from_asset)
        price_to = await self._fresh_price(instruction.to_asset)
        gross = instruction.amount_in * price_from / price_to
        net = gross * (Decimal("1") - self._settings.pool_fee) * (
            Decimal("1") - self._settings.slippage
        )
        return net.quantize(_AMOUNT_QUANTIZE, rounding=ROUND_DOWN)

    async def _fresh_price(self, asset: str) -> Decimal:
        price = await self._price_cache.get_price(asset)
        if price is None or price <= 0:
            raise ExecutionFailedError(f"No price available for {asset}")
        if await self._price_cache.is_stale(asset, max_age_seconds=_MAX_PRICE_AGE_SECONDS):
            raise ExecutionFailedError(
                f"Price for {asset} is stale (>{_MAX_PRICE_AGE_SECONDS}s old)"
            )
        return price
