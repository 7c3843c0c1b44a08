#!/usr/bin/env python3
"""Transport boundary used by the connection controller.

The controller never touches sockets directly. It needs four capabilities
from a transport: start a connection attempt, deliver events about it,
arm one-shot timers, and be serviced by the event loop driver. This module
defines the flags, errors and handle types shared by every transport.
"""

from __future__ import annotations

import asyncio
import enum
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from wsnail.backoff import BackoffPolicy
    from wsnail.endpoint import Endpoint
    from wsnail.transport_events import TransportEvent

    EventHandler = Callable[[TransportEvent], None]


class SecurityFlags(enum.Flag):
    """Per-connection security options."""

    NONE = 0
    USE_SSL = enum.auto()
    PRIORITIZE_READS = enum.auto()


class ImmediateFailure(ConnectionError):
    """The transport could not even begin a connection attempt."""

    pass


class FatalTransportError(RuntimeError):
    """The transport cannot be created or serviced any more."""

    pass


@dataclass
class ConnectionHandle:
    """
    Handle to the one live connection attempt.

    Attributes:
        endpoint: Target of the attempt.
        flags: Security flags the attempt was started with.
        task: Task running the attempt, or None for transports without one.
    """

    endpoint: Endpoint
    flags: SecurityFlags
    task: asyncio.Task | None = None

    @property
    def done(self) -> bool:
        """True once the attempt reached a terminal state."""
        return self.task is None or self.task.done()

    def cancel(self) -> None:
        """Abort the attempt if it is still running."""
        if self.task is not None and not self.task.done():
            self.task.cancel()


class Transport(Protocol):
    """Capabilities the controller and driver consume."""

    def set_handler(self, handler: EventHandler) -> None:
        """Register the single handler receiving all transport events."""

    def connect(
        self, endpoint: Endpoint, flags: SecurityFlags, policy: BackoffPolicy
    ) -> ConnectionHandle:
        """Start a connection attempt; raise ImmediateFailure if impossible."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        """Arm a one-shot callback delay seconds from now."""

    async def service(self, budget: float) -> int:
        """Run pending work for at most budget seconds; negative is fatal."""

    def wake(self) -> None:
        """Make a running service() call return early."""

    async def close(self) -> None:
        """Tear down the live connection and release resources."""
