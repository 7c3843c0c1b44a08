#!/usr/bin/env python3
"""Events delivered by the transport to the connection controller.

The transport reports everything that happens on a connection through a
single handler. Each event carries an EventKind tag so the controller can
dispatch on it; reasons the controller does not handle arrive as Other.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class EventKind(Enum):
    """Reason codes for transport events."""

    CONNECTION_ERROR = auto()
    ESTABLISHED = auto()
    MESSAGE_RECEIVED = auto()
    CLOSED = auto()
    OTHER = auto()


@dataclass(frozen=True)
class ConnectionFailed:
    """The attempt failed before the connection was established."""

    reason: str | None = None
    kind: EventKind = EventKind.CONNECTION_ERROR


@dataclass(frozen=True)
class Established:
    """The WebSocket handshake completed."""

    kind: EventKind = EventKind.ESTABLISHED


@dataclass(frozen=True)
class MessageReceived:
    """One complete message arrived."""

    payload: bytes = b""
    kind: EventKind = EventKind.MESSAGE_RECEIVED


@dataclass(frozen=True)
class Closed:
    """An established connection ended."""

    code: int | None = None
    reason: str = ""
    kind: EventKind = EventKind.CLOSED


@dataclass(frozen=True)
class Other:
    """Any other transport notification, passed through unhandled."""

    name: str = ""
    kind: EventKind = EventKind.OTHER


TransportEvent = ConnectionFailed | Established | MessageReceived | Closed | Other
