#!/usr/bin/env python3
"""Constants for client retry, liveness and service configuration.

These constants are the defaults for the backoff policy used to keep the
WebSocket connection nailed up, and for the event loop driver.
"""

# Delay table for reconnection attempts in milliseconds.
# Attempts beyond the end of the table reuse the last entry.
BACKOFF_MS: tuple[int, ...] = (1000, 2000, 3000, 4000, 5000)

# Number of consecutive failures retried silently before giving up.
# A value larger than len(BACKOFF_MS) retries forever.
CONCEAL_COUNT: int = len(BACKOFF_MS)

# Random perturbation applied to each delay, in percent of the delay.
JITTER_PERCENT: int = 0

# Send a ping after this many seconds without traffic.
IDLE_PING_SECONDS: int = 400

# Hang up when a ping is not answered within this many seconds.
IDLE_HANGUP_SECONDS: int = 400

# Upper bound in seconds for a single event loop service call.
SERVICE_BUDGET: float = 1.0

# Largest value the attempt counter can hold (uint16).
MAX_ATTEMPT_COUNT: int = 0xFFFF
