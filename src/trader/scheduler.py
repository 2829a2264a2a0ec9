"""Tick scheduler -- wires all components and runs the main loop.

One iteration per newly observed block height. Each tick:
  1. FETCH: block height (no-op if already processed), fee level, one price
     per tracked asset, account balances
  2. APPLY: pending runtime config overrides (if set by the dashboard)
  3. INDICATORS: append one sample per asset, recompute signals
  4. PORTFOLIO: refresh balances/prices, update peak and drawdown
     (a breach halts trading)
  5. DECIDE: if RUNNING and warmed up, risk check then decision cascade
  6. EXECUTE: hand the instruction to the OrderExecutor, record the trade
     only on confirmed success

All I/O for step 1 happens before any state is mutated, so a
SourceUnavailableError leaves indicators, portfolio and trade history
exactly as after the previous tick. The height is only marked processed
once the tick's state has been committed.

Ticks never overlap (cycle lock). Readers use snapshot(), which deep-copies
all cross-field state.
"""

from __future__ import annotations

import asyncio
import copy
import time
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from trader.config import AppSettings, RuntimeConfig
from trader.decision.engine import DecisionEngine
from trader.exceptions import ExecutionFailedError, SourceUnavailableError
from trader.execution.executor import OrderExecutor
from trader.indicators.engine import IndicatorEngine
from trader.indicators.models import IndicatorState
from trader.logging import bind_tick_context, clear_tick_context, get_logger
from trader.models import (
    BotStatus,
    PortfolioState,
    PriceSample,
    TradeInstruction,
    TradeKind,
    TradeRecord,
)
from trader.portfolio.tracker import PortfolioTracker
from trader.risk.lifecycle import BotLifecycle
from trader.risk.manager import RiskCheckResult, RiskManager
from trader.signals.generator import SignalGenerator
from trader.signals.models import Signal
from trader.sources.base import BalanceSource, BlockSource, FeeOracle, PriceSource
from trader.sources.price_cache import PriceCache

logger = get_logger(__name__)

#: Back-off after an unexpected loop error, in seconds.
_ERROR_BACKOFF_SECONDS = 10.0


@dataclass(frozen=True)
class StateSnapshot:
    """Point-in-time copy of everything the presentation layer may show."""

    status: BotStatus
    halt_reason: str | None
    last_processed_height: int | None
    gas_price_gwei: Decimal | None
    warmed_up: bool
    portfolio: PortfolioState
    indicators: dict[str, IndicatorState]
    signals: dict[str, Signal]
    trade_history: tuple[TradeRecord, ...]
    last_decision: TradeInstruction | None
    last_risk_check: RiskCheckResult | None
    config: dict[str, Any]
    taken_at: float = field(default_factory=time.time)

    def to_dict(self) -> dict:
        """Serialize to JSON-safe dict with Decimal values as strings."""
        return {
            "status": self.status.value,
            "halt_reason": self.halt_reason,
            "last_processed_height": self.last_processed_height,
            "gas_price_gwei": (
                str(self.gas_price_gwei) if self.gas_price_gwei is not None else None
            ),
            "warmed_up": self.warmed_up,
            "portfolio": self.portfolio.to_dict(),
            "indicators": {a: s.to_dict() for a, s in self.indicators.items()},
            "signals": {a: s.to_dict() for a, s in self.signals.items()},
            "trade_history": [r.to_dict() for r in self.trade_history],
            "last_decision": (
                self.last_decision.to_dict() if self.last_decision is not None else None
            ),
            "last_risk_check": (
                self.last_risk_check.to_dict() if self.last_risk_check is not None else None
            ),
            "config": {k: str(v) for k, v in self.config.items()},
            "taken_at": self.taken_at,
        }


class Scheduler:
    """Single-writer owner of all trading state, driven by block height.

    Args:
        settings: Application-wide settings (read live on every tick).
        block_source: Chain height provider.
        price_source: One price per tracked pair.
        balance_source: Account balances.
        fee_oracle: Current network fee level.
        executor: Executes emitted instructions.
        price_cache: Shared cache of the tick's USD prices (for executors).
        clock: Time source for sample timestamps and the rate-limit window.
    """

    def __init__(
        self,
        settings: AppSettings,
        block_source: BlockSource,
        price_source: PriceSource,
        balance_source: BalanceSource,
        fee_oracle: FeeOracle,
        executor: OrderExecutor,
        price_cache: PriceCache | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings
        self._block_source = block_source
        self._price_source = price_source
        self._balance_source = balance_source
        self._fee_oracle = fee_oracle
        self._executor = executor
        self._price_cache = price_cache if price_cache is not None else PriceCache(clock)
        self._clock = clock

        self._indicators = IndicatorEngine(settings.indicators)
        for asset in settings.assets.tracked_assets:
            self._indicators.register(asset)
        self._signal_generator = SignalGenerator(
            self._indicators, settings.signal, settings.indicators
        )
        self._risk_manager = RiskManager(settings.risk, settings.assets)
        self._decision_engine = DecisionEngine(
            settings.trading, settings.assets, settings.risk
        )
        self._portfolio = PortfolioTracker(settings.assets)
        self._lifecycle = BotLifecycle(on_reset=self._portfolio.reanchor_peak)

        self._trade_history: deque[TradeRecord] = deque(
            maxlen=settings.trading.trade_history_size
        )
        self._signals: dict[str, Signal] = {}
        self._last_processed_height: int | None = None
        self._last_fee: Decimal | None = None
        self._last_decision: TradeInstruction | None = None
        self._last_risk_check: RiskCheckResult | None = None
        self._pending_config: RuntimeConfig | None = None

        self._cycle_lock = asyncio.Lock()
        self._looping = False

    # ------------------------------------------------------------------
    # Tick processing
    # ------------------------------------------------------------------

    async def process_tick(self) -> bool:
        """Process the current block height if it has not been seen yet.

        Returns:
            True if a new tick was fully committed, False for a duplicate
            height or a tick aborted by a source failure.
        """
        async with self._cycle_lock:
            try:
                height = await self._block_source.get_block_number()
            except SourceUnavailableError as e:
                logger.warning("block_height_unavailable", error=str(e))
                return False

            if self._last_processed_height is not None and height <= self._last_processed_height:
                return False

            bind_tick_context(height)
            try:
                return await self._process_height(height)
            finally:
                clear_tick_context()

    async def _process_height(self, height: int) -> bool:
        now = self._clock()
        assets = self._settings.assets
        tracked = list(assets.tracked_assets)

        # 1. FETCH: all I/O before any mutation
        try:
            fee = await self._fee_oracle.get_fee_level()
            pair_prices: dict[str, Decimal] = {}
            for asset in tracked:
                price = await self._price_source.get_price(assets.pair_for(asset))
                if price <= 0:
                    raise SourceUnavailableError(f"Non-positive price {price} for {asset}")
                pair_prices[asset] = price
            balances = await self._balance_source.get_balances(assets.account)
        except SourceUnavailableError as e:
            logger.warning("tick_source_unavailable", error=str(e))
            return False

        # All assets are validated before any is updated
        for asset in tracked:
            last = self._indicators.state(asset)
            if last is not None and now <= last.timestamp:
                logger.warning(
                    "tick_sample_rejected", asset=asset, timestamp=now, last_timestamp=last.timestamp
                )
                return False

        # 2. APPLY: runtime config overrides from dashboard
        self._apply_runtime_config()

        # 3. INDICATORS + SIGNALS
        for asset in tracked:
            self._indicators.update(asset, PriceSample(timestamp=now, price=pair_prices[asset]))
        self._signals = self._signal_generator.generate_all(tracked)

        # 4. PORTFOLIO + DRAWDOWN
        portfolio = self._portfolio.refresh(balances, pair_prices)
        self._last_fee = fee
        self._risk_manager.check_drawdown(portfolio)
        if portfolio.halted and self._lifecycle.is_running:
            self._lifecycle.halt(
                f"drawdown {portfolio.current_drawdown_pct} exceeded "
                f"{self._settings.risk.max_drawdown_pct}"
            )

        self._last_processed_height = height
        self._last_decision = None

        logger.info(
            "tick_processed",
            status=self._lifecycle.status.value,
            gas_price_gwei=str(fee),
            total_value_usd=str(portfolio.total_value_usd),
            drawdown_pct=str(portfolio.current_drawdown_pct),
            signals={a: str(s.composite) for a, s in self._signals.items()},
        )

        await self._price_cache.update_prices(dict(portfolio.prices_usd), now)

        # 5. DECIDE
        if not self._lifecycle.is_running:
            return True
        if not self.warmed_up:
            logger.debug(
                "warming_up",
                samples={a: self._indicators.sample_count(a) for a in tracked},
                required=self._settings.indicators.sma_slow_period,
            )
            return True

        risk = self._risk_manager.check(
            portfolio,
            list(self._trade_history),
            chain_tick=height,
            gas_price=fee,
            now=now,
        )
        self._last_risk_check = risk
        if not risk.ok:
            return True

        instruction = self._decision_engine.decide(self._signals, portfolio)
        self._last_decision = instruction

        # 6. EXECUTE
        if instruction is not None:
            await self._dispatch(instruction, height, now)
        return True

    async def _dispatch(self, instruction: TradeInstruction, height: int, now: float) -> None:
        """Execute an instruction; record it only on confirmed success."""
        try:
            result = await self._executor.execute(instruction)
        except ExecutionFailedError as e:
            logger.error(
                "order_execution_failed",
                reason=e.reason,
                rule=instruction.rule,
                from_asset=instruction.from_asset,
                to_asset=instruction.to_asset,
                amount_in=str(instruction.amount_in),
            )
            return

        if not result.success:
            logger.error(
                "order_execution_unconfirmed",
                reference=result.reference,
                rule=instruction.rule,
            )
            return

        balances: dict[str, Decimal] | None = None
        try:
            balances = await self._balance_source.get_balances(self._settings.assets.account)
        except SourceUnavailableError as e:
            logger.warning("post_trade_balance_refresh_failed", error=str(e))

        record = TradeRecord(
            time=now,
            kind=TradeKind.SWAP if instruction.wrap_first else instruction.kind,
            from_asset=(
                self._settings.assets.native_asset
                if instruction.wrap_first
                else instruction.from_asset
            ),
            to_asset=instruction.to_asset,
            amount_in=instruction.amount_in,
            amount_out_estimate=result.amount_out,
            tx_ref=result.reference,
            block_height=result.block_height if result.block_height is not None else height,
            rule=instruction.rule,
        )
        self._trade_history.append(record)
        if balances is not None:
            self._portfolio.update_balances(balances)

        logger.info(
            "trade_recorded",
            tx_ref=record.tx_ref,
            kind=record.kind.value,
            from_asset=record.from_asset,
            to_asset=record.to_asset,
            amount_in=str(record.amount_in),
            amount_out=str(record.amount_out_estimate),
            rule=record.rule,
        )

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Poll for new blocks until shutdown() or close() is called.

        Each iteration processes at most one tick, then sleeps for the
        configured poll interval.
        """
        self._looping = True
        logger.info(
            "scheduler_loop_started",
            tracked_assets=list(self._settings.assets.tracked_assets),
            poll_interval=self._settings.trading.poll_interval,
        )
        try:
            while self._looping:
                try:
                    await self.process_tick()
                    await asyncio.sleep(self._settings.trading.poll_interval)
                except asyncio.CancelledError:
                    break
                except Exception as e:
                    logger.error("scheduler_tick_error", error=str(e), exc_info=True)
                    await asyncio.sleep(_ERROR_BACKOFF_SECONDS)
        finally:
            self._looping = False
            logger.info("scheduler_loop_stopped")

    def shutdown(self) -> None:
        """Ask the run loop to exit after the current iteration."""
        self._looping = False

    async def close(self) -> None:
        """Stop the run loop and release collaborator resources (e.g. the ccxt session)."""
        self.shutdown()
        await self._price_source.close()

    # ------------------------------------------------------------------
    # Control actions
    # ------------------------------------------------------------------

    def start(self) -> None:
        """STOPPED -> RUNNING."""
        self._lifecycle.start()

    def stop(self) -> None:
        """RUNNING/HALTED -> STOPPED."""
        self._lifecycle.stop()

    def reset_halt(self) -> None:
        """Clear the drawdown halt, re-anchoring the portfolio peak to its current value.

        HALTED moves to RUNNING. A breach recorded while STOPPED only clears the
        portfolio flag; the bot stays STOPPED until start().

        Raises:
            InvalidTransitionError: Neither the lifecycle nor the portfolio is halted.
        """
        if self._lifecycle.is_halted or not self._portfolio.state.halted:
            self._lifecycle.reset()
            return
        self._portfolio.reanchor_peak()
        logger.info("stopped_halt_cleared", status=self._lifecycle.status.value)

    def update_config(self, values: Mapping[str, Any]) -> RuntimeConfig:
        """Queue a partial config update, applied at the start of the next tick.

        Raises:
            ValueError: Unknown field or invalid value.
        """
        rc = RuntimeConfig.from_mapping(values)
        if rc.is_empty():
            return rc
        if self._pending_config is None:
            self._pending_config = rc
        else:
            self._pending_config = self._pending_config.merge(rc)
        logger.info("runtime_config_queued", config=str(rc))
        return rc

    def _apply_runtime_config(self) -> None:
        """Apply queued overrides so this tick reads the new values."""
        rc = self._pending_config
        if rc is None:
            return
        self._pending_config = None
        applied = self._settings.apply_runtime_config(rc)
        if applied:
            logger.info("runtime_config_applied", fields=applied)

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def status(self) -> BotStatus:
        return self._lifecycle.status

    @property
    def last_processed_height(self) -> int | None:
        return self._last_processed_height

    @property
    def warmed_up(self) -> bool:
        """Every tracked asset has at least sma_slow_period samples."""
        return all(
            self._indicators.is_warm(asset)
            for asset in self._settings.assets.tracked_assets
        )

    @property
    def settings(self) -> AppSettings:
        return self._settings

    @property
    def indicators(self) -> IndicatorEngine:
        return self._indicators

    @property
    def trade_history(self) -> list[TradeRecord]:
        return list(self._trade_history)

    def snapshot(self) -> StateSnapshot:
        """Deep-copied view of all state; never shares live references."""
        return StateSnapshot(
            status=self._lifecycle.status,
            halt_reason=self._lifecycle.halt_reason,
            last_processed_height=self._last_processed_height,
            gas_price_gwei=self._last_fee,
            warmed_up=self.warmed_up,
            portfolio=self._portfolio.snapshot(),
            indicators=self._indicators.states(),
            signals=copy.deepcopy(self._signals),
            trade_history=tuple(self._trade_history),
            last_decision=self._last_decision,
            last_risk_check=copy.deepcopy(self._last_risk_check),
            config=self._settings.runtime_values(),
            taken_at=self._clock(),
        )
