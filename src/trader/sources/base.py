"""Abstract collaborator interfaces for chain and market data.

The scheduler depends only on these interfaces, keeping RPC transport,
wallet and exchange specifics in the concrete implementations. Every
fetch raises SourceUnavailableError on a transient failure.
"""

from abc import ABC, abstractmethod
from decimal import Decimal


class BlockSource(ABC):
    """Reports the latest observed block height."""

    @abstractmethod
    async def get_block_number(self) -> int:
        """Return the current chain height."""
        ...


class PriceSource(ABC):
    """Supplies one price per tracked pair per tick."""

    @abstractmethod
    async def get_price(self, pair_id: str) -> Decimal:
        """Return the latest positive price for a pair (e.g. "WETH/USDC")."""
        ...

    async def close(self) -> None:
        """Release network resources, if any."""


class BalanceSource(ABC):
    """Reports account balances."""

    @abstractmethod
    async def get_balances(self, account: str) -> dict[str, Decimal]:
        """Return asset -> quantity for the account."""
        ...


class FeeOracle(ABC):
    """Reports the current network fee level."""

    @abstractmethod
    async def get_fee_level(self) -> Decimal:
        """Return the current gas price in gwei."""
        ...
