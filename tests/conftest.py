#!/usr/bin/env python3
"""Pytest fixtures for wsnail tests.

Provides an in-memory transport, a default endpoint and backoff policy,
and a controller wired to collect received messages in a list.
"""

import pytest

from conftest_transport import FakeTransport
from wsnail.backoff import BackoffPolicy
from wsnail.controller import ConnectionController
from wsnail.endpoint import Endpoint


@pytest.fixture
def transport() -> FakeTransport:
    """Create a fresh in-memory transport."""
    return FakeTransport()


@pytest.fixture
def endpoint() -> Endpoint:
    """Endpoint for a secure stream server."""
    return Endpoint(secure=True, host="stream.example.com", port=443, path="/ws/path")


@pytest.fixture
def policy() -> BackoffPolicy:
    """Default backoff policy: 1..5 s, five concealed failures, no jitter."""
    return BackoffPolicy()


@pytest.fixture
def received() -> list[bytes]:
    """Collects payloads handed to the output boundary."""
    return []


@pytest.fixture
def controller(
    transport: FakeTransport,
    endpoint: Endpoint,
    policy: BackoffPolicy,
    received: list[bytes],
) -> ConnectionController:
    """Controller driving the in-memory transport."""
    return ConnectionController(transport, endpoint, policy, sink=received.append)
