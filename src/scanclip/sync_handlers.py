#!/usr/bin/env python3
"""Clipboard send policy shared by the foreground and background loops.

This module provides:
- send_if_changed: send a snapshot when it differs from the last sent one
- request_reconnect: ask the connection manager for a new attempt
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from scanclip.connection import ConnectionState, NotConnected
from scanclip.protocol import ClipboardUpdate, validate_text_size

if TYPE_CHECKING:
    from scanclip.connection import ConnectionManager
    from scanclip.snapshot import ClipboardSnapshot
    from scanclip.sync_state import SyncState

logger = logging.getLogger(__name__)

# States in which no attempt is in progress and a new one may be requested.
RECONNECTABLE_STATES = frozenset({ConnectionState.CLOSED, ConnectionState.ERRORING})


async def send_if_changed(
    state: SyncState,
    manager: ConnectionManager,
    snapshot: ClipboardSnapshot,
) -> bool:
    """Send snapshot to the peer if it is new.

    Unchanged or empty content is skipped. New content found while the
    connection is not OPEN is dropped, not queued: a newer sample will
    supersede it. The last-sent record is claimed before the send is
    awaited so a racing iteration cannot send the same content twice.

    Args:
        state: The shared last-sent record.
        manager: The connection manager to send through.
        snapshot: The freshly sampled clipboard snapshot.

    Returns:
        True if a clipboard update was sent.

    Raises:
        NotConnected: If the content is new but the connection is not OPEN.
        TransportError: If the socket fails during the send.
    """
    if not state.should_send(snapshot.content):
        logger.debug("Clipboard unchanged, skipping")
        return False

    if not manager.is_open:
        raise NotConnected(
            f"Dropping clipboard sample: connection is {manager.state.value}"
        )

    state.claim(snapshot)
    if not validate_text_size(snapshot.content):
        logger.warning("Clipboard text exceeds size limit, skipping")
        return False

    await manager.send(
        ClipboardUpdate(text=snapshot.content, timestamp=int(snapshot.observed_at * 1000))
    )
    logger.debug("Sent %d characters to peer", len(snapshot.content))
    return True


def request_reconnect(manager: ConnectionManager) -> bool:
    """Ask for a new connection attempt unless one is already running.

    Args:
        manager: The connection manager to reconnect.

    Returns:
        True if connect() was called, False if the state did not allow it.
    """
    if manager.state not in RECONNECTABLE_STATES:
        logger.debug("Connection is %s, not reconnecting", manager.state.value)
        return False
    logger.warning("Connection is %s, reconnecting to %s", manager.state.value, manager.endpoint)
    manager.connect()
    return True
