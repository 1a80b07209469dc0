"""CLI handling for scanclip.

This module provides the command-line interface for scanclip, handling
argument parsing via click, logging configuration, pairing code extraction,
and dispatching to the client session.

Usage:
    scanclip --payload SCANNED_TEXT [--endpoint URL] [--verbose]
    scanclip --code PAIRING_CODE [--endpoint URL] [--verbose]
"""

import sys

import click

from scanclip.constants import DEFAULT_ENDPOINT, POLL_INTERVAL
from scanclip.main_logging import configure_logging
from scanclip.main_options import MutuallyExclusiveOption
from scanclip.pairing import InvalidFormat, extract_pairing_code


@click.command()
@click.option(
    "--payload",
    cls=MutuallyExclusiveOption,
    not_required_if=["code"],
    help="Decoded QR payload, e.g. sic://device-id/pairing-code",
)
@click.option(
    "--code",
    cls=MutuallyExclusiveOption,
    not_required_if=["payload"],
    help="Pairing code entered manually",
)
@click.option(
    "--endpoint",
    default=DEFAULT_ENDPOINT,
    show_default=True,
    envvar="SCANCLIP_ENDPOINT",
    help="Websocket URL of the desktop peer",
)
@click.option(
    "--interval",
    default=POLL_INTERVAL,
    show_default=True,
    type=click.FloatRange(min=0.05),
    help="Seconds between clipboard checks",
)
@click.option(
    "--reconnect-in-foreground",
    is_flag=True,
    help="Reconnect from the foreground loop too, not only in background",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable DEBUG-level logging",
)
def main(
    payload: str | None,
    code: str | None,
    endpoint: str,
    interval: float,
    reconnect_in_foreground: bool,
    verbose: bool,
) -> None:
    """Pair with a desktop peer and keep the clipboard synchronized to it."""
    if payload is None and code is None:
        raise click.UsageError("Either --payload or --code must be specified")
    if code is not None and not code:
        raise click.UsageError("Option --code must not be empty")

    configure_logging(verbose)

    if payload is not None:
        try:
            code = extract_pairing_code(payload)
        except InvalidFormat as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        click.echo(f"Pairing code: {code}", err=True)

    _run_client(endpoint, code, interval, reconnect_in_foreground)


def _run_client(
    endpoint: str, code: str, interval: float, reconnect_in_foreground: bool
) -> None:
    """Run the client session until shutdown.

    Args:
        endpoint: Websocket URL of the desktop peer.
        code: The pairing code.
        interval: Seconds between clipboard checks.
        reconnect_in_foreground: Whether the foreground loop reconnects.
    """
    import asyncio

    from scanclip.client import run_client
    from scanclip.pairing_handshake import HandshakeFailed

    try:
        asyncio.run(
            run_client(
                endpoint,
                code,
                interval=interval,
                foreground_reconnect=reconnect_in_foreground,
            )
        )
    except HandshakeFailed as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
