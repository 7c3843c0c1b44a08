#!/usr/bin/env python3
"""Connection lifecycle controller.

The controller is the state machine that keeps one WebSocket connection
nailed up. It starts connection attempts when the retry timer fires,
reacts to transport events, and routes every failure through the backoff
policy until the policy gives up.

Valid transitions:
    IDLE -> CONNECTING        (retry timer fires)
    CONNECTING -> OPEN        (Established)
    CONNECTING -> IDLE        (ConnectionFailed, Closed, immediate failure)
    OPEN -> OPEN              (MessageReceived)
    OPEN -> IDLE              (Closed, ConnectionFailed)
    any -> CLOSING            (shutdown after interrupt)
    any -> TERMINATED         (retry budget exhausted)
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum, auto
from typing import TYPE_CHECKING

from wsnail.output import StdoutSink
from wsnail.retry_scheduler import Exhausted, RetryScheduler
from wsnail.retry_state import RetryState
from wsnail.transport import ImmediateFailure, SecurityFlags
from wsnail.transport_events import EventKind

if TYPE_CHECKING:
    from wsnail.backoff import BackoffPolicy
    from wsnail.endpoint import Endpoint
    from wsnail.transport import ConnectionHandle, Transport
    from wsnail.transport_events import (
        Closed,
        ConnectionFailed,
        Established,
        MessageReceived,
        Other,
        TransportEvent,
    )

logger = logging.getLogger(__name__)


class ConnectionState(Enum):
    """Connection controller states."""

    IDLE = auto()
    CONNECTING = auto()
    OPEN = auto()
    CLOSING = auto()
    TERMINATED = auto()


@dataclass
class ProcessState:
    """
    Process-wide client state.

    Attributes:
        interrupted: Set by SIGINT or by retry exhaustion; observed by the
            event loop driver at the top of each iteration.
        exhausted: True if the retry budget ran out.
        connection: Handle of the live connection attempt, or None.
    """

    interrupted: bool = False
    exhausted: bool = False
    connection: ConnectionHandle | None = None


class ConnectionController:
    """State machine deciding when to connect, retry, and give up."""

    def __init__(
        self,
        transport: Transport,
        endpoint: Endpoint,
        policy: BackoffPolicy,
        sink: Callable[[bytes], None] | None = None,
        *,
        force_tls: bool = True,
        reset_on_success: bool = True,
    ) -> None:
        """
        Args:
            transport: Transport to drive; the controller registers itself
                as its event handler.
            endpoint: Normalized connection target.
            policy: Backoff policy for retries and idle liveness.
            sink: Receives each message payload; defaults to StdoutSink.
            force_tls: Always request TLS, whatever the URI scheme says.
            reset_on_success: Start a fresh retry cycle once a connection
                is established.
        """
        self.transport = transport
        self.endpoint = endpoint
        self.policy = policy
        self.sink = sink if sink is not None else StdoutSink()
        self.force_tls = force_tls
        self.reset_on_success = reset_on_success
        self.state = ConnectionState.IDLE
        self.process = ProcessState()
        self.retry = RetryState()
        self.scheduler = RetryScheduler(transport, policy, self.retry, self.connect)
        self._handlers: dict[EventKind, Callable[..., None]] = {
            EventKind.CONNECTION_ERROR: self._on_connection_error,
            EventKind.ESTABLISHED: self._on_established,
            EventKind.MESSAGE_RECEIVED: self._on_message,
            EventKind.CLOSED: self._on_closed,
            EventKind.OTHER: self._on_other,
        }
        transport.set_handler(self.handle_event)

    @property
    def flags(self) -> SecurityFlags:
        """Security flags passed with every connection attempt."""
        flags = SecurityFlags.PRIORITIZE_READS
        if self.force_tls or self.endpoint.secure:
            flags |= SecurityFlags.USE_SSL
        return flags

    @property
    def exit_code(self) -> int:
        """Process exit code: 1 after retry exhaustion, else 0."""
        return 1 if self.process.exhausted else 0

    def start(self) -> None:
        """Schedule the first connection attempt to happen immediately."""
        self.scheduler.arm_first_attempt()

    def connect(self) -> None:
        """Start a connection attempt; runs when the retry timer fires."""
        if self.process.interrupted or self.state in (
            ConnectionState.CLOSING,
            ConnectionState.TERMINATED,
        ):
            return
        self.state = ConnectionState.CONNECTING
        logger.debug("Connecting to %s", self.endpoint.as_uri())
        try:
            self.process.connection = self.transport.connect(
                self.endpoint, self.flags, self.policy
            )
        except ImmediateFailure as e:
            logger.error("Connection attempt could not start: %s", e)
            self._retry()

    def handle_event(self, event: TransportEvent) -> None:
        """Dispatch a transport event to its handler."""
        if self.state in (ConnectionState.CLOSING, ConnectionState.TERMINATED):
            logger.debug("Ignoring %s in state %s", event.kind.name, self.state.name)
            return
        self._handlers[event.kind](event)

    def interrupt(self) -> None:
        """Request the event loop driver to stop at the next iteration."""
        self.process.interrupted = True
        self.transport.wake()

    async def shutdown(self) -> None:
        """Cancel pending retries and tear down the transport."""
        if self.state is not ConnectionState.TERMINATED:
            self.state = ConnectionState.CLOSING
        self.scheduler.cancel()
        await self.transport.close()
        self.process.connection = None

    def _on_connection_error(self, event: ConnectionFailed) -> None:
        if self.state is ConnectionState.IDLE:
            logger.debug("Ignoring connection error while idle")
            return
        logger.error(
            "Connection error: %s",
            event.reason if event.reason is not None else "(null)",
        )
        self._retry()

    def _on_established(self, event: Established) -> None:
        if self.state is not ConnectionState.CONNECTING:
            logger.debug("Ignoring established event in state %s", self.state.name)
            return
        self.state = ConnectionState.OPEN
        logger.info("Connected to %s", self.endpoint.as_uri())
        if self.reset_on_success:
            self.retry.reset()

    def _on_message(self, event: MessageReceived) -> None:
        if self.state is not ConnectionState.OPEN:
            logger.debug("Dropping message received in state %s", self.state.name)
            return
        self.sink(event.payload)

    def _on_closed(self, event: Closed) -> None:
        if self.state is ConnectionState.IDLE:
            logger.debug("Ignoring close while idle")
            return
        logger.error("Connection closed: code=%s reason=%r", event.code, event.reason)
        self._retry()

    def _on_other(self, event: Other) -> None:
        logger.debug("Unhandled transport event %s", event.name)

    def _retry(self) -> None:
        """Return to IDLE and arm the next attempt, or terminate."""
        self.state = ConnectionState.IDLE
        self.process.connection = None
        try:
            delay = self.scheduler.arm_retry()
        except Exhausted as e:
            logger.error("%s", e)
            self._terminate()
            return
        logger.info(
            "Reconnecting in %.1fs (attempt %d)", delay, self.retry.attempt_count
        )

    def _terminate(self) -> None:
        self.state = ConnectionState.TERMINATED
        self.process.exhausted = True
        self.process.interrupted = True
        self.transport.wake()
