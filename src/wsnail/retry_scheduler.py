#!/usr/bin/env python3
"""Timer slot for the next connection attempt.

The scheduler owns exactly one pending timer. It is armed once at startup
for an immediate first attempt, and after every failure with a delay taken
from the backoff policy until the policy gives up.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wsnail.backoff import BackoffPolicy
    from wsnail.retry_state import RetryState
    from wsnail.transport import Transport

logger = logging.getLogger(__name__)


class Exhausted(Exception):
    """
    Exception raised when the backoff policy gives up.

    Attributes:
        attempt_count: Failed attempts retried before giving up.
    """

    def __init__(self, attempt_count: int) -> None:
        super().__init__(f"connection attempts exhausted after {attempt_count} retries")
        self.attempt_count = attempt_count


class RetryScheduler:
    """Arms the single one-shot timer that triggers connection attempts."""

    def __init__(
        self,
        transport: Transport,
        policy: BackoffPolicy,
        state: RetryState,
        action: Callable[[], None],
    ) -> None:
        """
        Args:
            transport: Provides the one-shot timer primitive.
            policy: Backoff policy consulted for delays and give-up.
            state: Attempt counter and timer slot, mutated in place.
            action: Connect routine invoked when the timer fires.
        """
        self.transport = transport
        self.policy = policy
        self.state = state
        self.action = action

    def arm_first_attempt(self) -> None:
        """Schedule the first connection attempt to happen immediately."""
        self._arm(0.0)

    def arm_retry(self) -> float:
        """
        Schedule the next attempt after a failure.

        Returns:
            The delay in seconds before the next attempt.

        Raises:
            Exhausted: If the policy gives up at the current attempt count.
        """
        attempt_count = self.state.attempt_count
        if self.policy.should_give_up(attempt_count):
            raise Exhausted(attempt_count)
        delay = self.policy.next_delay(attempt_count)
        self._arm(delay)
        self.state.record_failure()
        logger.debug(
            "Retry %d scheduled in %.3fs", self.state.attempt_count, delay
        )
        return delay

    def cancel(self) -> None:
        """Cancel the pending timer, if any."""
        if self.state.pending_timer is not None:
            self.state.pending_timer.cancel()
            self.state.pending_timer = None

    def _arm(self, delay: float) -> None:
        """Arm the timer slot, replacing a timer that has not fired yet."""
        if self.state.timer_armed:
            logger.debug("Replacing pending connection timer")
            self.cancel()
        self.state.pending_timer = self.transport.schedule(delay, self._fire)

    def _fire(self) -> None:
        """Clear the slot and run the connect action."""
        self.state.pending_timer = None
        self.action()
