#!/usr/bin/env python3
"""Client wiring for wsnail.

This module provides the main entry point which normalizes the target
URI, creates the transport, registers the SIGINT handler, schedules the
first connection attempt and runs the event loop driver until the user
interrupts or the retry budget runs out.

See controller.py for the connection state machine.
"""

from __future__ import annotations

import asyncio
import logging
import signal
from dataclasses import dataclass, field

from wsnail.backoff import BackoffPolicy
from wsnail.client_constants import SERVICE_BUDGET
from wsnail.controller import ConnectionController
from wsnail.endpoint import ParseError, normalize
from wsnail.event_loop import EventLoopDriver
from wsnail.transport import FatalTransportError
from wsnail.ws_transport import WebSocketTransport

logger = logging.getLogger(__name__)


@dataclass
class ClientConfig:
    """
    Client settings collected from the command line.

    Attributes:
        policy: Backoff and idle policy.
        force_tls: Request TLS even for ws:// URIs.
        reset_on_success: Reset the attempt counter once connected.
        service_budget: Upper bound in seconds for one service call.
    """

    policy: BackoffPolicy = field(default_factory=BackoffPolicy)
    force_tls: bool = True
    reset_on_success: bool = True
    service_budget: float = SERVICE_BUDGET


async def run_client(raw_uri: str, config: ClientConfig | None = None) -> int:
    """Run the client until interrupted or out of retries.

    Args:
        raw_uri: Target URI as given on the command line.
        config: Client settings; defaults apply when None.

    Returns:
        Process exit code: 0 on user interrupt, 1 on startup failure,
        retry exhaustion or a fatal transport error.
    """
    config = config if config is not None else ClientConfig()

    try:
        endpoint = normalize(raw_uri)
    except ParseError as e:
        logger.error("%s", e)
        return 1

    try:
        transport = WebSocketTransport.create()
    except FatalTransportError as e:
        logger.error("%s", e)
        return 1

    controller = ConnectionController(
        transport,
        endpoint,
        config.policy,
        force_tls=config.force_tls,
        reset_on_success=config.reset_on_success,
    )

    loop = asyncio.get_running_loop()
    loop.add_signal_handler(signal.SIGINT, controller.interrupt)
    try:
        controller.start()
        driver = EventLoopDriver(transport, controller, config.service_budget)
        return await driver.run()
    finally:
        loop.remove_signal_handler(signal.SIGINT)
        await controller.shutdown()
