"""CLI handling for wsnail.

This module provides the command-line interface for wsnail, handling
argument parsing via click, logging configuration, and running the client
that keeps a WebSocket connection to the given URI nailed up. Received
messages are written to stdout, one per line.

Usage:
    wsnail [--verbose] [--backoff-ms LIST] [--conceal-count N] URI
"""

import click
import sys
from typing import TYPE_CHECKING

from wsnail.client_constants import (
    BACKOFF_MS,
    IDLE_HANGUP_SECONDS,
    IDLE_PING_SECONDS,
    JITTER_PERCENT,
)
from wsnail.main_logging import configure_logging
from wsnail.main_options import DelayTable

if TYPE_CHECKING:
    from wsnail.client import ClientConfig

USAGE = "Usage: wsnail [OPTIONS] URI"


@click.command()
@click.argument("uri", nargs=-1)
@click.option(
    "--backoff-ms",
    type=DelayTable(),
    default=",".join(str(ms) for ms in BACKOFF_MS),
    show_default=True,
    help="Comma-separated retry delays in milliseconds",
)
@click.option(
    "--conceal-count",
    type=click.IntRange(min=0),
    default=None,
    help="Failures retried before giving up [default: number of delays]; "
    "more than the number of delays retries forever",
)
@click.option(
    "--jitter",
    type=click.IntRange(0, 100),
    default=JITTER_PERCENT,
    show_default=True,
    help="Random delay perturbation in percent",
)
@click.option(
    "--idle-ping",
    type=click.IntRange(min=1),
    default=IDLE_PING_SECONDS,
    show_default=True,
    help="Seconds of silence before sending a ping",
)
@click.option(
    "--idle-hangup",
    type=click.IntRange(min=1),
    default=IDLE_HANGUP_SECONDS,
    show_default=True,
    help="Seconds to wait for a ping answer before hanging up",
)
@click.option(
    "--plaintext-ok",
    is_flag=True,
    help="Honor ws:// URIs instead of always using TLS",
)
@click.option(
    "--reset-on-success/--no-reset-on-success",
    default=True,
    show_default=True,
    help="Reset the retry budget after each established connection",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable DEBUG-level logging",
)
def main(
    uri: tuple[str, ...],
    backoff_ms: tuple[int, ...],
    conceal_count: int | None,
    jitter: int,
    idle_ping: int,
    idle_hangup: int,
    plaintext_ok: bool,
    reset_on_success: bool,
    verbose: bool,
) -> None:
    """Keep a WebSocket connection to URI open and print every message."""
    if len(uri) != 1:
        click.echo(USAGE, err=True)
        sys.exit(1)

    configure_logging(verbose)

    from wsnail.backoff import BackoffPolicy
    from wsnail.client import ClientConfig

    policy = BackoffPolicy(
        retry_ms=backoff_ms,
        conceal_count=len(backoff_ms) if conceal_count is None else conceal_count,
        jitter_percent=jitter,
        idle_ping_seconds=idle_ping,
        idle_hangup_seconds=idle_hangup,
    )
    config = ClientConfig(
        policy=policy,
        force_tls=not plaintext_ok,
        reset_on_success=reset_on_success,
    )
    sys.exit(_run(uri[0], config))


def _run(uri: str, config: "ClientConfig") -> int:
    """Run the client on a fresh event loop.

    Args:
        uri: Target URI.
        config: Client settings.

    Returns:
        Process exit code.
    """
    import asyncio
    from wsnail.client import run_client

    return asyncio.run(run_client(uri, config))
