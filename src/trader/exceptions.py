"""Custom exceptions for the signal trader.

Collaborator, indicator and lifecycle exceptions live here to avoid
circular imports between modules. Risk guard violations are not
exceptions: they are reported through RiskCheckResult.
"""


class TraderError(Exception):
    """Base exception for all trader errors."""


class SourceUnavailableError(TraderError):
    """Raised when a block, price, balance or fee fetch fails transiently."""


class ExecutionFailedError(TraderError):
    """Raised when an order cannot be submitted or confirmed.

    Args:
        reason: Human-readable failure reason.
    """

    def __init__(self, reason: str) -> None:
        super().__init__(reason)
        self.reason = reason


class SlippageExceeded(ExecutionFailedError):
    """Raised when a fill would return less than the instruction's minimum output."""


class StaleSampleError(TraderError):
    """Raised when a price sample is not newer than the last one for its asset."""


class InvalidTransitionError(TraderError):
    """Raised when a lifecycle transition is not allowed from the current state."""
