"""Signal generator turning indicator snapshots into composite signals.

For each asset:
1. Check warm-up (at least sma_slow_period samples) -- neutral signal otherwise
2. Compute the five sub-signals from the latest IndicatorState
3. Aggregate into a composite score with the configured weights
4. Log the breakdown at DEBUG level

Deterministic: the same IndicatorState always yields the same Signal.

CRITICAL: All computations use Decimal. Never use float for signal scores.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING

from trader.config import IndicatorSettings, SignalSettings
from trader.logging import get_logger
from trader.signals.components import (
    bollinger_signal,
    macd_signal,
    rsi_signal,
    sma_crossover_signal,
    trend_signal,
)
from trader.signals.composite import compute_composite_score
from trader.signals.models import Signal, SignalComponent

if TYPE_CHECKING:
    from trader.indicators.engine import IndicatorEngine
    from trader.indicators.models import IndicatorState

logger = get_logger(__name__)


class SignalGenerator:
    """Maps per-asset indicator state into bounded composite signals.

    Args:
        engine: Indicator engine holding the per-asset states.
        signal_settings: Weights, scales and RSI zones.
        indicator_settings: Used for the warm-up requirement (slow SMA period).
    """

    def __init__(
        self,
        engine: IndicatorEngine,
        signal_settings: SignalSettings,
        indicator_settings: IndicatorSettings,
    ) -> None:
        self._engine = engine
        self._settings = signal_settings
        self._indicator_settings = indicator_settings

    def generate(self, asset: str) -> Signal:
        """Compute the current signal for one asset.

        Returns a neutral signal (composite 0, all components 0) until the
        asset has at least sma_slow_period samples.
        """
        state = self._engine.state(asset)
        required = self._indicator_settings.sma_slow_period
        if state is None or self._engine.sample_count(asset) < required:
            return Signal.neutral(asset)

        signal = self.from_state(state)
        logger.debug(
            "signal_computed",
            asset=asset,
            composite=str(signal.composite),
            **{name: str(value) for name, value in signal.components.items()},
        )
        return signal

    def generate_all(self, assets: list[str]) -> dict[str, Signal]:
        return {asset: self.generate(asset) for asset in assets}

    def from_state(self, state: IndicatorState) -> Signal:
        """Compute a signal directly from an indicator snapshot (no warm-up check)."""
        s = self._settings
        components: dict[str, Decimal] = {
            SignalComponent.SMA_CROSSOVER.value: sma_crossover_signal(
                state.sma_fast, state.sma_slow, scale=s.crossover_scale
            ),
            SignalComponent.RSI.value: rsi_signal(
                state.rsi, oversold=s.rsi_oversold, overbought=s.rsi_overbought
            ),
            SignalComponent.MACD.value: macd_signal(
                state.macd_hist, state.bb_middle, scale=s.macd_scale
            ),
            SignalComponent.BOLLINGER.value: bollinger_signal(state.bb_percent_b),
            SignalComponent.TREND.value: trend_signal(
                state.price, state.sma_slow, scale=s.trend_scale
            ),
        }
        composite = compute_composite_score(components, self._build_weights())
        return Signal(asset=state.asset, composite=composite, components=components)

    def _build_weights(self) -> dict[str, Decimal]:
        """Build weights dict from settings."""
        return {
            SignalComponent.SMA_CROSSOVER.value: self._settings.weight_sma,
            SignalComponent.RSI.value: self._settings.weight_rsi,
            SignalComponent.MACD.value: self._settings.weight_macd,
            SignalComponent.BOLLINGER.value: self._settings.weight_bollinger,
            SignalComponent.TREND.value: self._settings.weight_trend,
        }
