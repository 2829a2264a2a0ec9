"""Tests for the STOPPED / RUNNING / HALTED lifecycle state machine."""

from unittest.mock import MagicMock

import pytest

from trader.exceptions import InvalidTransitionError
from trader.models import BotStatus
from trader.risk.lifecycle import BotLifecycle


@pytest.fixture
def on_reset() -> MagicMock:
    return MagicMock()


@pytest.fixture
def lifecycle(on_reset: MagicMock) -> BotLifecycle:
    return BotLifecycle(on_reset=on_reset)


class TestTransitions:
    def test_starts_stopped(self, lifecycle: BotLifecycle) -> None:
        assert lifecycle.status == BotStatus.STOPPED
        assert not lifecycle.is_running

    def test_start_and_stop(self, lifecycle: BotLifecycle) -> None:
        lifecycle.start()
        assert lifecycle.is_running
        lifecycle.stop()
        assert lifecycle.status == BotStatus.STOPPED

    def test_double_start_rejected(self, lifecycle: BotLifecycle) -> None:
        lifecycle.start()
        with pytest.raises(InvalidTransitionError):
            lifecycle.start()

    def test_stop_when_stopped_rejected(self, lifecycle: BotLifecycle) -> None:
        with pytest.raises(InvalidTransitionError):
            lifecycle.stop()

    def test_halt_requires_running(self, lifecycle: BotLifecycle) -> None:
        with pytest.raises(InvalidTransitionError):
            lifecycle.halt("drawdown")


class TestHalt:
    def test_halt_is_sticky(self, lifecycle: BotLifecycle) -> None:
        lifecycle.start()
        lifecycle.halt("drawdown 0.2 exceeded 0.15")
        assert lifecycle.is_halted
        assert lifecycle.halt_reason == "drawdown 0.2 exceeded 0.15"

        with pytest.raises(InvalidTransitionError):
            lifecycle.start()
        assert lifecycle.is_halted

    def test_second_halt_is_noop(self, lifecycle: BotLifecycle) -> None:
        lifecycle.start()
        lifecycle.halt("first")
        lifecycle.halt("second")
        assert lifecycle.halt_reason == "first"

    def test_reset_calls_hook_and_resumes(
        self, lifecycle: BotLifecycle, on_reset: MagicMock
    ) -> None:
        lifecycle.start()
        lifecycle.halt("drawdown")
        lifecycle.reset()
        on_reset.assert_called_once()
        assert lifecycle.is_running
        assert lifecycle.halt_reason is None

    def test_reset_when_not_halted_rejected(
        self, lifecycle: BotLifecycle, on_reset: MagicMock
    ) -> None:
        lifecycle.start()
        with pytest.raises(InvalidTransitionError):
            lifecycle.reset()
        on_reset.assert_not_called()

    def test_stop_from_halted(self, lifecycle: BotLifecycle) -> None:
        lifecycle.start()
        lifecycle.halt("drawdown")
        lifecycle.stop()
        assert lifecycle.status == BotStatus.STOPPED
        assert lifecycle.halt_reason is None
