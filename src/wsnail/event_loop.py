#!/usr/bin/env python3
"""Event loop driver.

Services the transport repeatedly until the controller is interrupted or
the transport reports a fatal error. Interrupts are cooperative: they are
observed at the top of the next iteration, after the current service call
and any callbacks it dispatched have completed.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from wsnail.client_constants import SERVICE_BUDGET

if TYPE_CHECKING:
    from wsnail.controller import ConnectionController
    from wsnail.transport import Transport

logger = logging.getLogger(__name__)


class EventLoopDriver:
    """Drives transport service calls for one controller."""

    def __init__(
        self,
        transport: Transport,
        controller: ConnectionController,
        budget: float = SERVICE_BUDGET,
    ) -> None:
        self.transport = transport
        self.controller = controller
        self.budget = budget

    async def run(self) -> int:
        """
        Service the transport until interrupted or a fatal error.

        Returns:
            0 on clean interrupt, 1 on fatal service error or retry
            exhaustion.
        """
        n = 0
        while n >= 0 and not self.controller.process.interrupted:
            n = await self.transport.service(self.budget)

        if n < 0:
            logger.error("Transport service failed, stopping")
            return 1
        return self.controller.exit_code
