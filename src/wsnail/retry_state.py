#!/usr/bin/env python3
"""
Retry bookkeeping for the connection controller.

RetryState is threaded explicitly through the retry scheduler instead of
being captured by timer callbacks. It holds the number of failed attempts
and the single timer slot for the next attempt.
"""
from __future__ import annotations

import asyncio
from dataclasses import dataclass

from wsnail.client_constants import MAX_ATTEMPT_COUNT


@dataclass
class RetryState:
    """
    Attempt counter and timer slot.

    Attributes:
        attempt_count: Failed attempts in the current cycle, saturating at
            MAX_ATTEMPT_COUNT.
        pending_timer: Timer for the next connection attempt, or None.
    """

    attempt_count: int = 0
    pending_timer: asyncio.TimerHandle | None = None

    @property
    def timer_armed(self) -> bool:
        """True if a timer is armed and has neither fired nor been cancelled."""
        return self.pending_timer is not None and not self.pending_timer.cancelled()

    def record_failure(self) -> None:
        """Count one more failed attempt."""
        if self.attempt_count < MAX_ATTEMPT_COUNT:
            self.attempt_count += 1

    def reset(self) -> None:
        """Start a fresh retry cycle."""
        self.attempt_count = 0
