#!/usr/bin/env python3
"""Output boundary for received messages.

Each message is written verbatim as one line on stdout, in arrival order.
"""

from __future__ import annotations

import sys
from typing import BinaryIO


class StdoutSink:
    """Write each message payload followed by a newline to a binary stream."""

    def __init__(self, stream: BinaryIO | None = None) -> None:
        """
        Args:
            stream: Binary stream to write to; defaults to sys.stdout.buffer.
        """
        self.stream = stream if stream is not None else sys.stdout.buffer

    def __call__(self, payload: bytes) -> None:
        self.stream.write(payload + b"\n")
        self.stream.flush()
