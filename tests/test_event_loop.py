#!/usr/bin/env python3
"""Tests for the event loop driver."""
from unittest.mock import MagicMock

import pytest

from conftest_transport import FakeTransport
from wsnail.controller import ConnectionController
from wsnail.event_loop import EventLoopDriver


@pytest.mark.asyncio
async def test_run_returns_zero_on_interrupt(
    controller: ConnectionController, transport: FakeTransport
) -> None:
    """Test a clean interrupt ends the loop with exit code 0."""
    transport.on_service = lambda t: controller.interrupt() if t.service_calls == 3 else None
    exit_code = await EventLoopDriver(transport, controller, budget=0.01).run()

    assert exit_code == 0
    assert transport.service_calls == 3


@pytest.mark.asyncio
async def test_run_returns_one_on_fatal_service_error(
    controller: ConnectionController, transport: FakeTransport
) -> None:
    """Test a negative service result stops the loop with exit code 1."""
    transport.service_results = [0, 0, -1]
    exit_code = await EventLoopDriver(transport, controller, budget=0.01).run()

    assert exit_code == 1
    assert transport.service_calls == 3


@pytest.mark.asyncio
async def test_run_does_not_service_when_already_interrupted(
    controller: ConnectionController, transport: FakeTransport
) -> None:
    """Test an interrupt set before run is observed at the first check."""
    controller.interrupt()
    exit_code = await EventLoopDriver(transport, controller).run()

    assert exit_code == 0
    assert transport.service_calls == 0


@pytest.mark.asyncio
async def test_run_passes_budget_to_service() -> None:
    """Test the configured budget reaches every service call."""
    transport = MagicMock()
    budgets: list[float] = []

    async def service(budget: float) -> int:
        budgets.append(budget)
        return -1

    transport.service = service
    controller = MagicMock()
    controller.process.interrupted = False
    exit_code = await EventLoopDriver(transport, controller, budget=0.25).run()

    assert exit_code == 1
    assert budgets == [0.25]
