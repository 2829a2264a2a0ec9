"""Abstract order executor interface.

Defines the contract for trade execution. The scheduler depends only on
this interface, so the decision path is identical whatever the executor
(paper wallet or an on-chain adapter).
"""

from abc import ABC, abstractmethod

from trader.models import ExecutionResult, TradeInstruction


class OrderExecutor(ABC):
    """Abstract base class for order executors.

    Implementations must enforce ``instruction.min_amount_out``: a fill that
    would return less must fail rather than execute. The caller never
    retries a failed execution within the same tick.
    """

    @abstractmethod
    async def execute(self, instruction: TradeInstruction) -> ExecutionResult:
        """Execute a wrap or swap and return the confirmed result.

        Args:
            instruction: What to trade and the minimum acceptable output.

        Returns:
            ExecutionResult with the amount received and a transaction reference.

        Raises:
            ExecutionFailedError: If submission or confirmation fails.
        """
        ...
