#!/usr/bin/env python3
"""Client session for scanclip.

This module provides the main entry point: it opens the connection, runs
the pairing handshake, then hands the channel to the lifecycle arbiter
until shutdown. Host lifecycle events arrive as POSIX signals:

    SIGUSR1          app moved to the background
    SIGUSR2          app returned to the foreground
    SIGINT, SIGTERM  shut down cleanly
"""

from __future__ import annotations

import asyncio
import logging
import signal
from collections.abc import Callable

import click

from scanclip.connection import ConnectionManager
from scanclip.constants import POLL_INTERVAL
from scanclip.lifecycle import LifecycleArbiter
from scanclip.pairing_handshake import pair, require_confirmed
from scanclip.snapshot import SnapshotSource
from scanclip.sync_state import SyncState

logger = logging.getLogger(__name__)

Notifier = Callable[[str], None]


def notify_user(message: str) -> None:
    """Show a one-shot notification to the user on stderr."""
    click.echo(message, err=True)


def install_lifecycle_hooks(
    loop: asyncio.AbstractEventLoop,
    arbiter: LifecycleArbiter,
    shutdown_requested: asyncio.Event,
) -> set[asyncio.Task]:
    """Map host signals to arbiter transitions and shutdown.

    Args:
        loop: The running event loop.
        arbiter: The lifecycle arbiter receiving transitions.
        shutdown_requested: Set on SIGINT or SIGTERM.

    Returns:
        The set holding in-flight transition tasks.
    """
    transitions: set[asyncio.Task] = set()

    def schedule(hook: Callable[[], object]) -> None:
        task = loop.create_task(hook())
        transitions.add(task)
        task.add_done_callback(transitions.discard)

    loop.add_signal_handler(signal.SIGUSR1, schedule, arbiter.on_background)
    loop.add_signal_handler(signal.SIGUSR2, schedule, arbiter.on_foreground)
    loop.add_signal_handler(signal.SIGINT, shutdown_requested.set)
    loop.add_signal_handler(signal.SIGTERM, shutdown_requested.set)
    return transitions


def remove_lifecycle_hooks(loop: asyncio.AbstractEventLoop) -> None:
    for signum in (signal.SIGUSR1, signal.SIGUSR2, signal.SIGINT, signal.SIGTERM):
        loop.remove_signal_handler(signum)


async def run_client(
    endpoint: str,
    code: str,
    *,
    interval: float = POLL_INTERVAL,
    foreground_reconnect: bool = False,
    source: SnapshotSource | None = None,
    notify: Notifier = notify_user,
    shutdown_requested: asyncio.Event | None = None,
) -> None:
    """Pair with the peer at endpoint and keep the clipboard synchronized.

    Args:
        endpoint: Socket URL of the desktop peer.
        code: Pairing code from the scan or manual entry.
        interval: Seconds between clipboard samples.
        foreground_reconnect: Let the foreground loop request reconnects.
        source: Clipboard reader; defaults to the system clipboard.
        notify: Receives user-facing pairing notifications.
        shutdown_requested: Event ending the session; signals set it when
            the hooks are installed.

    Raises:
        HandshakeFailed: If the peer rejects the code, no connection is
            available, or no response arrives in time.
    """
    manager = ConnectionManager(endpoint)
    manager.connect()
    session = await pair(code, manager)
    if not session.confirmed:
        notify("Pairing failed")
        await manager.close()
        require_confirmed(session)
    notify("Device paired successfully!")

    arbiter = LifecycleArbiter(
        manager,
        source if source is not None else SnapshotSource(),
        SyncState(),
        interval=interval,
        foreground_reconnect=foreground_reconnect,
    )
    if shutdown_requested is None:
        shutdown_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    install_lifecycle_hooks(loop, arbiter, shutdown_requested)

    arbiter.start()
    try:
        await shutdown_requested.wait()
        logger.debug("Shutdown requested")
    finally:
        remove_lifecycle_hooks(loop)
        await arbiter.shutdown()
        await manager.close()
