"""Process lifecycle state machine: STOPPED, RUNNING, HALTED.

Transitions:
  STOPPED -> RUNNING   start()
  RUNNING -> HALTED    halt()   (drawdown breach, automatic)
  HALTED  -> RUNNING   reset()  (operator only; re-anchors the portfolio peak)
  RUNNING -> STOPPED   stop()
  HALTED  -> STOPPED   stop()

HALTED is sticky: nothing but an explicit reset leaves it for RUNNING, even
if the drawdown that caused it has since recovered. Only RUNNING allows
decisions to be emitted.
"""

from __future__ import annotations

from collections.abc import Callable

from trader.exceptions import InvalidTransitionError
from trader.logging import get_logger
from trader.models import BotStatus

logger = get_logger(__name__)

_ALLOWED: dict[tuple[BotStatus, BotStatus], str] = {
    (BotStatus.STOPPED, BotStatus.RUNNING): "start",
    (BotStatus.RUNNING, BotStatus.HALTED): "halt",
    (BotStatus.HALTED, BotStatus.RUNNING): "reset",
    (BotStatus.RUNNING, BotStatus.STOPPED): "stop",
    (BotStatus.HALTED, BotStatus.STOPPED): "stop",
}


class BotLifecycle:
    """Explicit finite-state machine guarding decision emission.

    Args:
        on_reset: Called when a halt is cleared, before the state returns to
            RUNNING. The scheduler uses it to re-anchor the portfolio peak.
        initial: Starting state (STOPPED unless restoring).
    """

    def __init__(
        self,
        on_reset: Callable[[], None] | None = None,
        initial: BotStatus = BotStatus.STOPPED,
    ) -> None:
        self._status = initial
        self._on_reset = on_reset
        self._halt_reason: str | None = None

    @property
    def status(self) -> BotStatus:
        return self._status

    @property
    def is_running(self) -> bool:
        return self._status == BotStatus.RUNNING

    @property
    def is_halted(self) -> bool:
        return self._status == BotStatus.HALTED

    @property
    def halt_reason(self) -> str | None:
        return self._halt_reason

    def start(self) -> None:
        self._transition(BotStatus.RUNNING, "start")

    def stop(self) -> None:
        self._transition(BotStatus.STOPPED, "stop")
        self._halt_reason = None

    def halt(self, reason: str) -> None:
        """Enter HALTED. A second halt while already halted is a no-op."""
        if self._status == BotStatus.HALTED:
            logger.warning("halt_already_active", reason=self._halt_reason)
            return
        self._transition(BotStatus.HALTED, "halt")
        self._halt_reason = reason
        logger.critical("trading_halted", reason=reason)

    def reset(self) -> None:
        """Clear a halt and resume trading."""
        if self._status != BotStatus.HALTED:
            raise InvalidTransitionError(
                f"Cannot reset from {self._status.value}: not halted"
            )
        if self._on_reset is not None:
            self._on_reset()
        self._transition(BotStatus.RUNNING, "reset")
        self._halt_reason = None

    def _transition(self, target: BotStatus, action: str) -> None:
        current = self._status
        if _ALLOWED.get((current, target)) != action:
            raise InvalidTransitionError(
                f"Cannot {action} from {current.value}"
            )
        self._status = target
        logger.info(
            "lifecycle_transition",
            action=action,
            from_status=current.value,
            to_status=target.value,
        )
