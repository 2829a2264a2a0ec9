"""Exchange-sourced prices via ccxt async (public endpoints only).

Maps each tracked pair id (e.g. "WETH/USDC") onto an exchange symbol
(e.g. "ETH/USDC") and returns the ticker's last price.
"""

from decimal import Decimal, InvalidOperation

import ccxt.async_support as ccxt_async

from trader.config import ExchangeSettings
from trader.exceptions import SourceUnavailableError
from trader.logging import get_logger
from trader.sources.base import PriceSource

logger = get_logger(__name__)


class CcxtPriceSource(PriceSource):
    """Price source backed by a ccxt exchange's public ticker endpoint."""

    def __init__(self, settings: ExchangeSettings, exchange=None) -> None:
        self._settings = settings
        if exchange is None:
            exchange_cls = getattr(ccxt_async, settings.exchange_id)
            exchange = exchange_cls(
                {"enableRateLimit": True, "timeout": settings.timeout_ms}
            )
        self._exchange = exchange

    def symbol_for(self, pair_id: str) -> str:
        return self._settings.symbols.get(pair_id, pair_id)

    async def get_price(self, pair_id: str) -> Decimal:
        symbol = self.symbol_for(pair_id)
        try:
            ticker = await self._exchange.fetch_ticker(symbol)
        except ccxt_async.BaseError as e:
            logger.warning("ccxt_ticker_failed", pair_id=pair_id, symbol=symbol, error=str(e))
            raise SourceUnavailableError(f"Ticker fetch failed for {symbol}: {e}") from e

        last = ticker.get("last") or ticker.get("close")
        try:
            price = Decimal(str(last))
        except (InvalidOperation, TypeError) as e:
            raise SourceUnavailableError(f"No usable price for {symbol}: {last!r}") from e
        if not price.is_finite() or price <= 0:
            raise SourceUnavailableError(f"Non-positive price for {symbol}: {price}")
        return price

    async def close(self) -> None:
        """Clean up the ccxt session (CRITICAL for ccxt async)."""
        await self._exchange.close()
