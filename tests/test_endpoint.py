#!/usr/bin/env python3
"""
Unit tests for URI normalization and path repair.

Tests normalize, rotate_in_slash and Endpoint.as_uri.
"""
import pytest

from wsnail.endpoint import Endpoint, ParseError, normalize, rotate_in_slash


def test_normalize_plain_ws_uri() -> None:
    """Test ws:// URI with a rooted path and default port."""
    endpoint = normalize("ws://host/stream")
    assert endpoint == Endpoint(secure=False, host="host", port=80, path="/stream")


def test_normalize_secure_uri_with_port() -> None:
    """Test wss:// URI keeps explicit port and is marked secure."""
    endpoint = normalize("wss://stream.example.com:9443/ws/path")
    assert endpoint.secure is True
    assert endpoint.host == "stream.example.com"
    assert endpoint.port == 9443
    assert endpoint.path == "/ws/path"


def test_normalize_secure_default_port() -> None:
    """Test wss:// without port defaults to 443."""
    assert normalize("wss://stream.example.com/ws").port == 443


def test_normalize_scheme_is_case_insensitive() -> None:
    """Test upper-case scheme is accepted."""
    assert normalize("WSS://host/x").secure is True


def test_normalize_https_alias() -> None:
    """Test https:// is treated as a secure endpoint."""
    endpoint = normalize("https://host/x")
    assert endpoint.secure is True
    assert endpoint.port == 443


def test_normalize_missing_path_becomes_root() -> None:
    """Test URI without a path gets "/"."""
    assert normalize("wss://host").path == "/"
    assert normalize("wss://host:8443").path == "/"


def test_normalize_keeps_query_in_path() -> None:
    """Test the query string stays part of the request target."""
    endpoint = normalize("wss://host/stream?streams=btcusdt@trade")
    assert endpoint.path == "/stream?streams=btcusdt@trade"


def test_normalize_query_without_path() -> None:
    """Test a bare query is repaired to start with "/"."""
    assert normalize("wss://host?x=1").path == "/?x=1"


def test_normalize_ipv6_host() -> None:
    """Test bracketed IPv6 host is unwrapped."""
    endpoint = normalize("ws://[::1]:9000/feed")
    assert endpoint.host == "::1"
    assert endpoint.port == 9000


@pytest.mark.parametrize(
    "raw",
    [
        "",
        "stream.example.com/ws",
        "ftp://host/file",
        "wss:///path",
        "wss://host:notaport/x",
        "wss://host:70000/x",
        "wss://host:0/x",
    ],
)
def test_normalize_rejects_malformed_uri(raw: str) -> None:
    """Test ParseError for missing scheme/host or bad port."""
    with pytest.raises(ParseError):
        normalize(raw)


def test_parse_error_is_value_error() -> None:
    """Test ParseError can be caught as ValueError."""
    with pytest.raises(ValueError, match="Cannot parse uri"):
        normalize("nonsense")


def test_rotate_in_slash_shifts_path_right() -> None:
    """Test unrooted path gains a leading slash without losing bytes."""
    assert rotate_in_slash("ws/path") == "/ws/path"


def test_rotate_in_slash_length_grows_by_one() -> None:
    """Test repaired path is exactly one byte longer."""
    for path in ["a", "ws", "stream?x=1", "deep/nested/path"]:
        result = rotate_in_slash(path)
        assert len(result) == len(path) + 1
        assert result[0] == "/"
        assert result[1:] == path


def test_rotate_in_slash_empty_path() -> None:
    """Test empty path becomes "/"."""
    assert rotate_in_slash("") == "/"


def test_rotate_in_slash_rooted_path_unchanged() -> None:
    """Test already rooted path does not get a doubled slash."""
    assert rotate_in_slash("/stream") == "/stream"
    assert rotate_in_slash(rotate_in_slash("x")) == "/x"


def test_rotate_in_slash_multibyte_path() -> None:
    """Test non-ASCII path survives the byte-level shift."""
    assert rotate_in_slash("flux/é") == "/flux/é"


def test_as_uri_round_trips_endpoint() -> None:
    """Test as_uri renders scheme, host, port and path."""
    endpoint = Endpoint(secure=True, host="host", port=443, path="/ws")
    assert endpoint.as_uri() == "wss://host:443/ws"


def test_as_uri_security_override() -> None:
    """Test as_uri can force TLS for an insecure endpoint."""
    endpoint = Endpoint(secure=False, host="host", port=80, path="/")
    assert endpoint.as_uri() == "ws://host:80/"
    assert endpoint.as_uri(secure=True) == "wss://host:80/"


def test_as_uri_brackets_ipv6() -> None:
    """Test IPv6 hosts are bracketed in the rendered URI."""
    endpoint = Endpoint(secure=False, host="::1", port=9000, path="/")
    assert endpoint.as_uri() == "ws://[::1]:9000/"
