#!/usr/bin/env python3
"""
Table-driven backoff policy for reconnection.

The policy maps the number of failed attempts so far to the delay before
the next attempt, and decides when to stop concealing failures and give
up. The rules are implemented as tenacity wait and stop strategies so the
same policy object can drive a tenacity Retrying loop as well as the
timer-based retry scheduler.

Rules:
- The delay for attempt count k is retry_ms[min(k, len - 1)], perturbed by
  up to +/- jitter_percent of itself.
- Failures are concealed (retried) while k < conceal_count. The next
  failure gives up.
- If conceal_count is larger than the delay table, the policy never gives
  up and keeps reusing the last delay.
"""
from __future__ import annotations

import random
from dataclasses import dataclass

from tenacity import RetryCallState
from tenacity.stop import stop_base
from tenacity.wait import wait_base

from wsnail.client_constants import (
    BACKOFF_MS,
    CONCEAL_COUNT,
    IDLE_HANGUP_SECONDS,
    IDLE_PING_SECONDS,
    JITTER_PERCENT,
)


class wait_table(wait_base):
    """Wait strategy indexing a delay table by attempt number, with jitter."""

    def __init__(self, retry_ms: tuple[int, ...], jitter_percent: int = 0) -> None:
        self.retry_ms = retry_ms
        self.jitter_percent = jitter_percent

    def __call__(self, retry_state: RetryCallState) -> float:
        """Return the delay in seconds after failure number attempt_number."""
        index = min(retry_state.attempt_number - 1, len(self.retry_ms) - 1)
        base = self.retry_ms[max(index, 0)] / 1000.0
        if not self.jitter_percent:
            return base
        spread = base * self.jitter_percent / 100.0
        return base + random.uniform(-spread, spread)


class stop_after_concealed(stop_base):
    """Stop strategy that gives up once the concealment budget is spent."""

    def __init__(self, conceal_count: int, infinite: bool = False) -> None:
        self.conceal_count = conceal_count
        self.infinite = infinite

    def __call__(self, retry_state: RetryCallState) -> bool:
        """Return True if failure number attempt_number must not be retried."""
        if self.infinite:
            return False
        return retry_state.attempt_number > self.conceal_count


def _call_state(attempt_count: int) -> RetryCallState:
    """Build a tenacity call state for the failure after attempt_count others."""
    state = RetryCallState(retry_object=None, fn=None, args=(), kwargs={})
    state.attempt_number = attempt_count + 1
    return state


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Retry and idle policy for the nailed-up connection.

    Attributes:
        retry_ms: Ordered delays in milliseconds, all positive.
        conceal_count: Consecutive failures retried before giving up.
        jitter_percent: Random perturbation of each delay (0 disables).
        idle_ping_seconds: Ping interval for a quiet connection.
        idle_hangup_seconds: Time to wait for a ping answer before hanging up.
    """

    retry_ms: tuple[int, ...] = BACKOFF_MS
    conceal_count: int = CONCEAL_COUNT
    jitter_percent: int = JITTER_PERCENT
    idle_ping_seconds: int = IDLE_PING_SECONDS
    idle_hangup_seconds: int = IDLE_HANGUP_SECONDS

    def __post_init__(self) -> None:
        """Validate the policy and freeze the delay table as a tuple."""
        object.__setattr__(self, "retry_ms", tuple(self.retry_ms))
        if not self.retry_ms:
            raise ValueError("Backoff table must not be empty")
        if any(ms <= 0 for ms in self.retry_ms):
            raise ValueError(f"Backoff delays must be positive: {self.retry_ms}")
        if self.conceal_count < 0:
            raise ValueError(f"Conceal count must not be negative: {self.conceal_count}")
        if not 0 <= self.jitter_percent <= 100:
            raise ValueError(f"Jitter percent must be 0..100: {self.jitter_percent}")
        if self.idle_ping_seconds <= 0 or self.idle_hangup_seconds <= 0:
            raise ValueError("Idle ping and hangup intervals must be positive")

    @property
    def infinite(self) -> bool:
        """True if the policy retries forever at the last table delay."""
        return self.conceal_count > len(self.retry_ms)

    @property
    def wait(self) -> wait_table:
        """Tenacity wait strategy for this policy."""
        return wait_table(self.retry_ms, self.jitter_percent)

    @property
    def stop(self) -> stop_after_concealed:
        """Tenacity stop strategy for this policy."""
        return stop_after_concealed(self.conceal_count, self.infinite)

    def next_delay(self, attempt_count: int) -> float:
        """
        Compute the delay before the next attempt.

        Args:
            attempt_count: Failed attempts so far.

        Returns:
            Delay in seconds.
        """
        return self.wait(_call_state(attempt_count))

    def should_give_up(self, attempt_count: int) -> bool:
        """
        Decide whether another failure may still be concealed.

        Args:
            attempt_count: Failed attempts already retried.

        Returns:
            True if no further attempt should be scheduled.
        """
        return self.stop(_call_state(attempt_count))
