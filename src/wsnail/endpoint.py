#!/usr/bin/env python3
"""
Endpoint parsing and path repair.

The client is started with a single URI such as
"wss://stream.example.com/ws/path". This module splits it into the pieces
the transport needs (security flag, host, port, request path) and makes
sure the request path always begins with a slash.

Path repair works on the raw bytes of the path: when the path does not
already start with "/", every byte is shifted right by one position and
"/" is written at position 0. Nothing is discarded, so the repaired path
is always exactly one byte longer than its input.
"""
from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

# Default ports per scheme. "http"/"https" are accepted as aliases since
# some services advertise their stream endpoints that way.
DEFAULT_PORTS: dict[str, int] = {
    "ws": 80,
    "http": 80,
    "wss": 443,
    "https": 443,
}

SECURE_SCHEMES: frozenset[str] = frozenset({"wss", "https"})


class ParseError(ValueError):
    """
    Exception raised when a URI cannot be turned into an Endpoint.

    Raised when the scheme or host is missing or unknown, or the port is
    not a valid TCP port number.
    """

    pass


@dataclass(frozen=True)
class Endpoint:
    """
    Normalized connection target.

    Attributes:
        secure: True if the scheme asks for TLS (wss/https).
        host: Host name or address, without IPv6 brackets.
        port: TCP port, defaulted from the scheme when absent.
        path: Request target (path plus query), always starting with "/".
    """

    secure: bool
    host: str
    port: int
    path: str

    def as_uri(self, secure: bool | None = None) -> str:
        """
        Render the endpoint back into a WebSocket URI.

        Args:
            secure: Override for the scheme; None keeps the endpoint's own.

        Returns:
            URI in the form "scheme://host:port/path".
        """
        use_tls = self.secure if secure is None else secure
        scheme = "wss" if use_tls else "ws"
        host = f"[{self.host}]" if ":" in self.host else self.host
        return f"{scheme}://{host}:{self.port}{self.path}"


def rotate_in_slash(path: str) -> str:
    """
    Guarantee that a request path starts with "/".

    Paths that already start with "/" are returned unchanged. Otherwise the
    path buffer is grown by one byte, each byte moves one position to the
    right, and "/" lands at position 0.

    Args:
        path: Parsed path, possibly empty.

    Returns:
        Non-empty path beginning with "/". For a path that needed repair,
        len(result) == len(path) + 1 (counted in UTF-8 bytes).
    """
    if path.startswith("/"):
        return path
    buf = bytearray(path.encode("utf-8"))
    buf.append(0)
    carry = ord("/")
    for i in range(len(buf)):
        buf[i], carry = carry, buf[i]
    return buf.decode("utf-8")


def normalize(raw: str) -> Endpoint:
    """
    Parse a user-supplied URI into an Endpoint.

    Args:
        raw: URI of the form scheme://host[:port][/path][?query].

    Returns:
        The normalized Endpoint.

    Raises:
        ParseError: If scheme or host cannot be determined, or the port
            is invalid.
    """
    try:
        parts = urlsplit(raw.strip())
        port = parts.port
    except ValueError as e:
        raise ParseError(f"Cannot parse uri {raw!r}: {e}") from e

    scheme = parts.scheme.lower()
    if not scheme:
        raise ParseError(f"Cannot parse uri {raw!r}: missing scheme")
    if scheme not in DEFAULT_PORTS:
        raise ParseError(f"Cannot parse uri {raw!r}: unsupported scheme {scheme!r}")
    host = parts.hostname
    if not host:
        raise ParseError(f"Cannot parse uri {raw!r}: missing host")
    if port is None:
        port = DEFAULT_PORTS[scheme]
    elif port == 0:
        raise ParseError(f"Cannot parse uri {raw!r}: port 0 is not valid")

    target = parts.path
    if parts.query:
        target = f"{target}?{parts.query}"

    return Endpoint(
        secure=scheme in SECURE_SCHEMES,
        host=host,
        port=port,
        path=rotate_in_slash(target),
    )
