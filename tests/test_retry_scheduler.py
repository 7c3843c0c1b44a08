#!/usr/bin/env python3
"""Tests for the single-slot retry scheduler."""
from unittest.mock import MagicMock

import pytest

from conftest_transport import FakeTransport
from wsnail.backoff import BackoffPolicy
from wsnail.retry_scheduler import Exhausted, RetryScheduler
from wsnail.retry_state import RetryState


@pytest.fixture
def action() -> MagicMock:
    """Connect action invoked when the timer fires."""
    return MagicMock()


def make_scheduler(
    transport: FakeTransport, action: MagicMock, **policy_kwargs
) -> RetryScheduler:
    """Create a scheduler with a fresh RetryState."""
    return RetryScheduler(transport, BackoffPolicy(**policy_kwargs), RetryState(), action)


def test_arm_first_attempt_is_immediate(transport: FakeTransport, action: MagicMock) -> None:
    """Test the first attempt is armed with zero delay."""
    scheduler = make_scheduler(transport, action)
    scheduler.arm_first_attempt()

    assert transport.pending().delay == 0.0
    assert scheduler.state.attempt_count == 0
    action.assert_not_called()


def test_timer_fire_clears_slot_then_runs_action(
    transport: FakeTransport, action: MagicMock
) -> None:
    """Test the slot is empty by the time the action runs."""
    scheduler = make_scheduler(transport, action)
    slot: list = []
    action.side_effect = lambda: slot.append(scheduler.state.pending_timer)

    scheduler.arm_first_attempt()
    transport.fire_pending()

    action.assert_called_once_with()
    assert slot == [None]


def test_arm_retry_uses_policy_delay_and_counts(
    transport: FakeTransport, action: MagicMock
) -> None:
    """Test each retry takes the next table delay and increments the count."""
    scheduler = make_scheduler(transport, action, retry_ms=(100, 200, 300))
    delays = []
    for _ in range(3):
        delays.append(scheduler.arm_retry())
        transport.fire_pending()

    assert delays == [0.1, 0.2, 0.3]
    assert [t.delay for t in transport.timers] == [0.1, 0.2, 0.3]
    assert scheduler.state.attempt_count == 3


def test_arm_retry_raises_exhausted(transport: FakeTransport, action: MagicMock) -> None:
    """Test Exhausted once the concealment budget is spent."""
    scheduler = make_scheduler(transport, action, retry_ms=(100,), conceal_count=1)
    scheduler.arm_retry()
    transport.fire_pending()

    with pytest.raises(Exhausted) as exc_info:
        scheduler.arm_retry()

    assert exc_info.value.attempt_count == 1
    assert "exhausted" in str(exc_info.value)
    assert transport.pending() is None
    assert scheduler.state.attempt_count == 1


def test_arming_twice_keeps_single_timer(transport: FakeTransport, action: MagicMock) -> None:
    """Test re-arming cancels the previous timer instead of stacking."""
    scheduler = make_scheduler(transport, action)
    scheduler.arm_first_attempt()
    first = transport.pending()
    scheduler.arm_retry()

    assert first.cancelled()
    assert transport.pending() is scheduler.state.pending_timer
    assert transport.pending().delay == 1.0


def test_cancel_clears_pending_timer(transport: FakeTransport, action: MagicMock) -> None:
    """Test cancel leaves no armed timer."""
    scheduler = make_scheduler(transport, action)
    scheduler.arm_first_attempt()
    timer = transport.pending()
    scheduler.cancel()

    assert timer.cancelled()
    assert scheduler.state.pending_timer is None
    assert transport.pending() is None


def test_cancel_without_timer_is_noop(transport: FakeTransport, action: MagicMock) -> None:
    """Test cancel with an empty slot does nothing."""
    scheduler = make_scheduler(transport, action)
    scheduler.cancel()
    assert scheduler.state.pending_timer is None
