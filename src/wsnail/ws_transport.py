#!/usr/bin/env python3
"""WebSocket transport built on the websockets asyncio client.

Each connection attempt runs as one asyncio task which reports its
progress to the registered handler as transport events. Timers are plain
loop.call_later handles. service() lets the loop run for a bounded time
and reports a negative result once a handler or timer callback crashed.

Extensions negotiated on every connection:
- permessage-deflate with client_no_context_takeover and
  client_max_window_bits. Compressing before the TLS layer keeps servers
  from coalescing many small messages into large TLS records, which
  would delay the earlier messages until the whole record is decrypted.
"""

from __future__ import annotations

import asyncio
import logging
import ssl
from collections.abc import Callable
from contextlib import suppress
from typing import TYPE_CHECKING, Any

from websockets.asyncio.client import connect as ws_connect
from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.extensions.permessage_deflate import ClientPerMessageDeflateFactory

from wsnail.transport import (
    ConnectionHandle,
    FatalTransportError,
    ImmediateFailure,
    SecurityFlags,
)
from wsnail.transport_events import (
    Closed,
    ConnectionFailed,
    Established,
    MessageReceived,
)

if TYPE_CHECKING:
    from wsnail.backoff import BackoffPolicy
    from wsnail.endpoint import Endpoint
    from wsnail.transport import EventHandler
    from wsnail.transport_events import TransportEvent

logger = logging.getLogger(__name__)


def deflate_extension() -> ClientPerMessageDeflateFactory:
    """Build the permessage-deflate offer sent with every handshake."""
    return ClientPerMessageDeflateFactory(
        client_no_context_takeover=True,
        client_max_window_bits=True,
    )


def connect_options(
    endpoint: Endpoint,
    flags: SecurityFlags,
    policy: BackoffPolicy,
    ssl_context: ssl.SSLContext | None,
) -> dict[str, Any]:
    """
    Translate endpoint, flags and policy into websockets connect() options.

    Args:
        endpoint: Connection target; its host is sent as Origin.
        flags: USE_SSL selects the TLS context, PRIORITIZE_READS removes
            the limit on queued incoming frames.
        policy: Provides the idle ping interval and hangup timeout.
        ssl_context: TLS context used when USE_SSL is set.

    Returns:
        Keyword arguments for websockets.asyncio.client.connect.
    """
    options: dict[str, Any] = {
        "origin": endpoint.host,
        "compression": None,
        "extensions": [deflate_extension()],
        "ping_interval": policy.idle_ping_seconds,
        "ping_timeout": policy.idle_hangup_seconds,
        "max_size": None,
    }
    if SecurityFlags.USE_SSL in flags:
        options["ssl"] = ssl_context
    if SecurityFlags.PRIORITIZE_READS in flags:
        options["max_queue"] = None
    return options


class WebSocketTransport:
    """Transport running at most one WebSocket connection at a time."""

    def __init__(
        self,
        loop: asyncio.AbstractEventLoop,
        ssl_context: ssl.SSLContext,
    ) -> None:
        self.loop = loop
        self.ssl_context = ssl_context
        self._handler: EventHandler | None = None
        self._connection: ConnectionHandle | None = None
        self._wakeup = asyncio.Event()
        self._fatal: BaseException | None = None
        self._closed = False

    @classmethod
    def create(cls) -> WebSocketTransport:
        """
        Create the transport context on the running loop.

        Raises:
            FatalTransportError: If no loop is running or TLS cannot be
                initialized.
        """
        try:
            loop = asyncio.get_running_loop()
            ssl_context = ssl.create_default_context()
        except (RuntimeError, ssl.SSLError, OSError) as e:
            raise FatalTransportError(f"transport init failed: {e}") from e
        return cls(loop, ssl_context)

    def set_handler(self, handler: EventHandler) -> None:
        self._handler = handler

    def connect(
        self, endpoint: Endpoint, flags: SecurityFlags, policy: BackoffPolicy
    ) -> ConnectionHandle:
        """
        Start a connection attempt in a new task.

        Raises:
            ImmediateFailure: If the transport is closed or another attempt
                is still live.
        """
        if self._closed:
            raise ImmediateFailure("transport is closed")
        if self._connection is not None and not self._connection.done:
            raise ImmediateFailure("a connection is already live")
        handle = ConnectionHandle(endpoint=endpoint, flags=flags)
        handle.task = self.loop.create_task(
            self._run_connection(endpoint, flags, policy)
        )
        self._connection = handle
        return handle

    def schedule(self, delay: float, callback: Callable[[], None]) -> asyncio.TimerHandle:
        return self.loop.call_later(delay, self._run_timer, callback)

    async def service(self, budget: float) -> int:
        """
        Let pending I/O and timers run for at most budget seconds.

        Returns:
            0 normally, -1 once a callback failed fatally.
        """
        if self._fatal is not None:
            return -1
        try:
            await asyncio.wait_for(self._wakeup.wait(), timeout=budget)
        except asyncio.TimeoutError:
            pass
        self._wakeup.clear()
        return -1 if self._fatal is not None else 0

    def wake(self) -> None:
        self._wakeup.set()

    async def close(self) -> None:
        """Cancel the live attempt and close its socket."""
        self._closed = True
        connection, self._connection = self._connection, None
        if connection is None or connection.task is None:
            return
        connection.cancel()
        with suppress(asyncio.CancelledError):
            await connection.task

    async def _run_connection(
        self, endpoint: Endpoint, flags: SecurityFlags, policy: BackoffPolicy
    ) -> None:
        """Open one connection and report its lifecycle as events."""
        uri = endpoint.as_uri(secure=SecurityFlags.USE_SSL in flags)
        options = connect_options(endpoint, flags, policy, self.ssl_context)
        try:
            websocket = await ws_connect(uri, **options)
        except (OSError, WebSocketException, asyncio.TimeoutError) as e:
            self._dispatch(ConnectionFailed(str(e) or None))
            return
        except Exception as e:
            logger.exception("Unexpected error opening %s", uri)
            self._dispatch(ConnectionFailed(str(e) or type(e).__name__))
            return

        self._dispatch(Established())
        try:
            async for message in websocket:
                if isinstance(message, str):
                    message = message.encode("utf-8")
                self._dispatch(MessageReceived(message))
        except ConnectionClosed:
            pass
        except asyncio.CancelledError:
            await websocket.close()
            raise
        except Exception:
            logger.exception("Unexpected error reading from %s", uri)
            await websocket.close()

        self._dispatch(Closed(websocket.close_code, websocket.close_reason or ""))

    def _dispatch(self, event: TransportEvent) -> None:
        """Deliver an event to the handler; a crash makes the transport fatal."""
        if self._handler is None:
            logger.debug("No handler registered, dropping %s", event.kind.name)
            return
        try:
            self._handler(event)
        except Exception as e:
            logger.exception("Event handler failed on %s", event.kind.name)
            self._fail(e)

    def _run_timer(self, callback: Callable[[], None]) -> None:
        try:
            callback()
        except Exception as e:
            logger.exception("Timer callback failed")
            self._fail(e)

    def _fail(self, error: BaseException) -> None:
        self._fatal = error
        self.wake()
