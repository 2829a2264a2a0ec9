"""Configuration system using pydantic-settings with environment variable loading."""

from collections.abc import Mapping
from dataclasses import dataclass, fields
from decimal import Decimal, InvalidOperation
from typing import Any, Literal

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

#: Allowed distance of the composite weight sum from 1.
WEIGHT_SUM_TOLERANCE = Decimal("0.01")


class AssetSettings(BaseSettings):
    """Which assets the bot tracks, funds from, and settles into."""

    model_config = SettingsConfigDict(env_prefix="ASSETS_")

    base_asset: str = "USDC"  # stable settlement asset
    native_asset: str = "ETH"  # pays gas, only spent above the reserve
    wrapped_native_asset: str = "WETH"
    tracked_assets: list[str] = ["WETH", "LINK"]
    pair_ids: dict[str, str] = {"WETH": "WETH/USDC", "LINK": "LINK/USDC"}
    account: str = "0x0000000000000000000000000000000000000000"

    def pair_for(self, asset: str) -> str:
        """Return the price pair id for an asset, defaulting to ASSET/BASE."""
        return self.pair_ids.get(asset, f"{asset}/{self.base_asset}")


class IndicatorSettings(BaseSettings):
    """Indicator periods and rolling window sizes."""

    model_config = SettingsConfigDict(env_prefix="INDICATOR_")

    price_history_size: int = 500
    sma_fast_period: int = 10
    sma_slow_period: int = 30
    ema_fast_period: int = 12
    ema_slow_period: int = 26
    macd_signal_period: int = 9
    rsi_period: int = 14
    bb_period: int = 20
    bb_std_dev: Decimal = Decimal("2")


class SignalSettings(BaseSettings):
    """Sub-signal scaling and composite weight allocation.

    All fields configurable via SIGNAL_ environment variable prefix.
    """

    model_config = SettingsConfigDict(env_prefix="SIGNAL_")

    # Scaling: relative gap that saturates a sub-signal is 1/scale
    crossover_scale: Decimal = Decimal("20")  # 5% SMA gap saturates
    trend_scale: Decimal = Decimal("10")  # 10% above slow SMA saturates
    macd_scale: Decimal = Decimal("100")  # histogram at 1% of price saturates

    # RSI zones
    rsi_oversold: Decimal = Decimal("30")
    rsi_overbought: Decimal = Decimal("70")

    # Composite weights, validated to sum to 1 (within WEIGHT_SUM_TOLERANCE)
    weight_sma: Decimal = Decimal("0.25")
    weight_rsi: Decimal = Decimal("0.20")
    weight_macd: Decimal = Decimal("0.20")
    weight_bollinger: Decimal = Decimal("0.20")
    weight_trend: Decimal = Decimal("0.15")

    @model_validator(mode="after")
    def weights_sum_to_one(self) -> "SignalSettings":
        """Weights must be non-negative and sum to 1."""
        weights = self.weights()
        if any(w < 0 for w in weights.values()):
            raise ValueError(f"Signal weights must be >= 0, got {weights}")
        total = sum(weights.values(), Decimal("0"))
        if abs(total - Decimal("1")) > WEIGHT_SUM_TOLERANCE:
            raise ValueError(f"Signal weights must sum to 1, got {total}")
        return self

    def weights(self) -> dict[str, Decimal]:
        return {
            "sma": self.weight_sma,
            "rsi": self.weight_rsi,
            "macd": self.weight_macd,
            "bollinger": self.weight_bollinger,
            "trend": self.weight_trend,
        }


class TradingSettings(BaseSettings):
    """Trade sizing and decision thresholds."""

    model_config = SettingsConfigDict(env_prefix="TRADING_")

    mode: Literal["paper"] = "paper"
    price_source: Literal["simulated", "ccxt"] = "simulated"
    sizing_cap: Decimal = Decimal("0.5")  # max fraction of funding balance per trade
    max_position_pct: Decimal = Decimal("0.6")  # of total portfolio value
    min_trade_usd: Decimal = Decimal("1")
    min_holding_usd: Decimal = Decimal("1")
    slippage_tolerance: Decimal = Decimal("0.01")  # 1%
    min_confluence: Decimal = Decimal("0.3")
    risk_off_threshold: Decimal = Decimal("-0.2")
    risk_off_fraction: Decimal = Decimal("0.3")
    trade_history_size: int = 100
    poll_interval: float = 2.0  # seconds between block height polls
    auto_start: bool = True  # enter RUNNING at launch instead of waiting for /actions/start


class RiskSettings(BaseSettings):
    """Guard thresholds evaluated before every decision."""

    model_config = SettingsConfigDict(env_prefix="RISK_")

    max_drawdown_pct: Decimal = Decimal("0.15")
    cooldown_blocks: int = 10
    max_trades_per_hour: int = 6
    max_gas_price_gwei: Decimal = Decimal("50")
    gas_reserve: Decimal = Decimal("0.005")  # native units kept for fees


class ChainSettings(BaseSettings):
    """Simulated chain parameters (block cadence and fee level)."""

    model_config = SettingsConfigDict(env_prefix="CHAIN_")

    network: str = "base-sepolia"
    block_time: float = 2.0
    start_height: int = 1
    base_fee_gwei: Decimal = Decimal("0.05")
    fee_volatility: Decimal = Decimal("0.1")
    seed: int | None = None


class PaperSettings(BaseSettings):
    """Virtual wallet and simulated market for paper mode."""

    model_config = SettingsConfigDict(env_prefix="PAPER_")

    initial_balances: dict[str, Decimal] = {
        "ETH": Decimal("0.05"),
        "WETH": Decimal("0"),
        "USDC": Decimal("1000"),
        "LINK": Decimal("0"),
    }
    start_prices: dict[str, Decimal] = {
        "WETH/USDC": Decimal("3000"),
        "LINK/USDC": Decimal("15"),
    }
    volatility: float = 0.004  # per-tick log-return sigma
    drift: float = 0.0
    pool_fee: Decimal = Decimal("0.003")  # 0.3% pool tier
    slippage: Decimal = Decimal("0.001")
    seed: int | None = None


class ExchangeSettings(BaseSettings):
    """ccxt price feed configuration (public endpoints only)."""

    model_config = SettingsConfigDict(env_prefix="EXCHANGE_")

    exchange_id: str = "binance"
    symbols: dict[str, str] = {"WETH/USDC": "ETH/USDC", "LINK/USDC": "LINK/USDC"}
    timeout_ms: int = 10000


class DashboardSettings(BaseSettings):
    """Dashboard server configuration."""

    model_config = SettingsConfigDict(env_prefix="DASHBOARD_")

    host: str = "0.0.0.0"
    port: int = 3000
    enabled: bool = True
    update_interval: int = 5  # seconds between WebSocket pushes


@dataclass
class RuntimeConfig:
    """Mutable runtime config overlay. Non-None fields override BaseSettings values.

    Used by the dashboard to update thresholds without restarting.
    Changes are applied at the start of each scheduler tick.
    """

    sizing_cap: Decimal | None = None
    max_position_pct: Decimal | None = None
    min_trade_usd: Decimal | None = None
    min_holding_usd: Decimal | None = None
    slippage_tolerance: Decimal | None = None
    min_confluence: Decimal | None = None
    risk_off_threshold: Decimal | None = None
    risk_off_fraction: Decimal | None = None
    max_drawdown_pct: Decimal | None = None
    cooldown_blocks: int | None = None
    max_trades_per_hour: int | None = None
    max_gas_price_gwei: Decimal | None = None
    gas_reserve: Decimal | None = None

    @classmethod
    def field_names(cls) -> list[str]:
        return [f.name for f in fields(cls)]

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> "RuntimeConfig":
        """Build an overlay from loosely typed values (form or JSON input).

        Empty strings and None are skipped so each field is independently
        overridable.

        Raises:
            ValueError: Unknown field, unparseable value, or value out of range.
        """
        rc = cls()
        known = set(cls.field_names())
        for name, raw in values.items():
            if name not in known:
                raise ValueError(f"Unknown config field: {name}")
            if raw is None or (isinstance(raw, str) and not raw.strip()):
                continue
            text = str(raw).strip()
            if name in _INT_FIELDS:
                try:
                    value: Decimal | int = int(text)
                except ValueError as e:
                    raise ValueError(f"{name} must be an integer, got {text!r}") from e
                if value < 0:
                    raise ValueError(f"{name} must be >= 0")
            else:
                try:
                    value = Decimal(text)
                except InvalidOperation as e:
                    raise ValueError(f"{name} must be a number, got {text!r}") from e
                if not value.is_finite():
                    raise ValueError(f"{name} must be finite")
                if name in _FRACTION_FIELDS and not Decimal("0") <= value <= Decimal("1"):
                    raise ValueError(f"{name} must be between 0 and 1")
                if name in _NON_NEGATIVE_FIELDS and value < 0:
                    raise ValueError(f"{name} must be >= 0")
            setattr(rc, name, value)
        return rc

    def merge(self, other: "RuntimeConfig") -> "RuntimeConfig":
        """Return a new overlay where other's non-None fields win."""
        merged = RuntimeConfig()
        for name in self.field_names():
            value = getattr(other, name)
            setattr(merged, name, value if value is not None else getattr(self, name))
        return merged

    def is_empty(self) -> bool:
        return all(getattr(self, name) is None for name in self.field_names())


_INT_FIELDS = {"cooldown_blocks", "max_trades_per_hour"}
_FRACTION_FIELDS = {
    "sizing_cap",
    "max_position_pct",
    "slippage_tolerance",
    "risk_off_fraction",
    "max_drawdown_pct",
}
_NON_NEGATIVE_FIELDS = {
    "min_trade_usd",
    "min_holding_usd",
    "min_confluence",
    "max_gas_price_gwei",
    "gas_reserve",
}

#: RuntimeConfig field -> settings group attribute on AppSettings.
RUNTIME_FIELD_GROUPS: dict[str, str] = {
    "sizing_cap": "trading",
    "max_position_pct": "trading",
    "min_trade_usd": "trading",
    "min_holding_usd": "trading",
    "slippage_tolerance": "trading",
    "min_confluence": "trading",
    "risk_off_threshold": "trading",
    "risk_off_fraction": "trading",
    "max_drawdown_pct": "risk",
    "cooldown_blocks": "risk",
    "max_trades_per_hour": "risk",
    "max_gas_price_gwei": "risk",
    "gas_reserve": "risk",
}


class AppSettings(BaseSettings):
    """Root application settings, composing all sub-settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"
    assets: AssetSettings = AssetSettings()
    indicators: IndicatorSettings = IndicatorSettings()
    signal: SignalSettings = SignalSettings()
    trading: TradingSettings = TradingSettings()
    risk: RiskSettings = RiskSettings()
    chain: ChainSettings = ChainSettings()
    paper: PaperSettings = PaperSettings()
    exchange: ExchangeSettings = ExchangeSettings()
    dashboard: DashboardSettings = DashboardSettings()

    def apply_runtime_config(self, rc: RuntimeConfig) -> list[str]:
        """Copy non-None overlay fields onto the owning settings group.

        Returns:
            Names of the fields that were applied.
        """
        applied: list[str] = []
        for name, group in RUNTIME_FIELD_GROUPS.items():
            value = getattr(rc, name)
            if value is None:
                continue
            setattr(getattr(self, group), name, value)
            applied.append(name)
        return applied

    def runtime_values(self) -> dict[str, Decimal | int]:
        """Current value of every runtime-tunable threshold."""
        return {
            name: getattr(getattr(self, group), name)
            for name, group in RUNTIME_FIELD_GROUPS.items()
        }
