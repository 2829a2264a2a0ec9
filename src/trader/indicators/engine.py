"""Indicator engine maintaining rolling price history and smoothing accumulators.

For every tracked asset the engine keeps:
  - a bounded, time-ascending price history (oldest evicted first)
  - EMA fast/slow accumulators and the MACD signal-line EMA
  - Wilder RSI average gain/loss accumulators

Accumulators depend on the full sample history, not just the rolling
window, and are never reset while the process lives. Feeding the same
ordered samples to a fresh engine always reproduces the same states.

CRITICAL: All computations use Decimal. Never use float.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from decimal import Decimal

from trader.config import IndicatorSettings
from trader.exceptions import StaleSampleError
from trader.indicators.bollinger import compute_bollinger
from trader.indicators.models import IndicatorState
from trader.indicators.moving_average import INDICATOR_QUANTIZE, compute_sma, ema_step
from trader.indicators.rsi import RSIState, update_rsi
from trader.logging import get_logger
from trader.models import PriceSample

logger = get_logger(__name__)


@dataclass
class _AssetTrack:
    """Mutable per-asset history and accumulators."""

    history: deque[PriceSample]
    rsi: RSIState
    ema_fast: Decimal | None = None
    ema_slow: Decimal | None = None
    macd_signal: Decimal | None = None
    samples_seen: int = 0
    state: IndicatorState | None = field(default=None)


class IndicatorEngine:
    """Per-asset indicator computation over a streaming price series.

    Args:
        settings: Indicator periods and history capacity. Periods are read
            on every update; the history capacity is fixed when an asset is
            first seen.
    """

    def __init__(self, settings: IndicatorSettings) -> None:
        self._settings = settings
        self._tracks: dict[str, _AssetTrack] = {}

    def register(self, asset: str) -> None:
        """Start tracking an asset before its first sample arrives."""
        self._track(asset)

    def update(self, asset: str, sample: PriceSample) -> IndicatorState:
        """Append a sample to the asset's history and recompute its indicators.

        Args:
            asset: Tracked asset symbol.
            sample: New observation, strictly newer than the previous one.

        Returns:
            The asset's IndicatorState after this sample.

        Raises:
            ValueError: If the price is not positive.
            StaleSampleError: If the sample is not newer than the last one.
        """
        if sample.price <= 0:
            raise ValueError(f"Price for {asset} must be positive, got {sample.price}")

        track = self._track(asset)
        if track.history and sample.timestamp <= track.history[-1].timestamp:
            raise StaleSampleError(
                f"Sample for {asset} at {sample.timestamp} is not newer than "
                f"{track.history[-1].timestamp}"
            )

        s = self._settings
        track.history.append(sample)
        track.samples_seen += 1
        price = sample.price
        prices = [p.price for p in track.history]

        sma_fast = compute_sma(prices, s.sma_fast_period)
        sma_slow = compute_sma(prices, s.sma_slow_period)

        track.ema_fast = ema_step(track.ema_fast, price, s.ema_fast_period)
        track.ema_slow = ema_step(track.ema_slow, price, s.ema_slow_period)
        macd = track.ema_fast - track.ema_slow
        track.macd_signal = ema_step(track.macd_signal, macd, s.macd_signal_period)

        rsi = update_rsi(track.rsi, price)
        bands = compute_bollinger(prices, s.bb_period, s.bb_std_dev)

        fallback = price.quantize(INDICATOR_QUANTIZE)
        state = IndicatorState(
            asset=asset,
            price=price,
            timestamp=sample.timestamp,
            sample_count=len(track.history),
            sma_fast=sma_fast if sma_fast is not None else fallback,
            sma_slow=sma_slow if sma_slow is not None else fallback,
            ema_fast=track.ema_fast,
            ema_slow=track.ema_slow,
            macd=macd,
            macd_signal=track.macd_signal,
            macd_hist=macd - track.macd_signal,
            rsi=rsi,
            bb_upper=bands.upper,
            bb_middle=bands.middle,
            bb_lower=bands.lower,
            bb_percent_b=bands.percent_b,
        )
        track.state = state
        return state

    def state(self, asset: str) -> IndicatorState | None:
        """Latest IndicatorState for an asset, or None before its first sample."""
        track = self._tracks.get(asset)
        return track.state if track is not None else None

    def states(self) -> dict[str, IndicatorState]:
        return {
            asset: track.state
            for asset, track in self._tracks.items()
            if track.state is not None
        }

    def history(self, asset: str) -> list[PriceSample]:
        """Copy of the asset's retained price history (oldest first)."""
        track = self._tracks.get(asset)
        return list(track.history) if track is not None else []

    def sample_count(self, asset: str) -> int:
        """Number of samples currently retained for an asset."""
        track = self._tracks.get(asset)
        return len(track.history) if track is not None else 0

    def last_price(self, asset: str) -> Decimal | None:
        track = self._tracks.get(asset)
        if track is None or not track.history:
            return None
        return track.history[-1].price

    def is_warm(self, asset: str, min_samples: int | None = None) -> bool:
        """Whether the asset has enough samples for a slow-SMA based signal."""
        required = min_samples if min_samples is not None else self._settings.sma_slow_period
        return self.sample_count(asset) >= required

    @property
    def assets(self) -> list[str]:
        return list(self._tracks)

    def _track(self, asset: str) -> _AssetTrack:
        track = self._tracks.get(asset)
        if track is None:
            track = _AssetTrack(
                history=deque(maxlen=self._settings.price_history_size),
                rsi=RSIState(period=self._settings.rsi_period),
            )
            self._tracks[asset] = track
            logger.debug(
                "indicator_track_created",
                asset=asset,
                capacity=self._settings.price_history_size,
            )
        return track
