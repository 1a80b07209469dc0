#!/usr/bin/env python3
"""Pairing handshake over an open connection.

Sends one pairing_request and takes the next pairing_response as its
answer. The protocol has no request id, so handshakes on one connection
are serialized; a second concurrent handshake fails immediately rather
than risk taking the first one's response. There is no retry here: the
user retries by scanning again.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from scanclip.connection import ConnectionState, NotConnected, TransportError
from scanclip.constants import HANDSHAKE_TIMEOUT
from scanclip.pairing import PairingSession
from scanclip.protocol import PairingRequest, PairingResponse, ProtocolError, decode_message

if TYPE_CHECKING:
    from scanclip.connection import ConnectionManager

logger = logging.getLogger(__name__)


class HandshakeFailed(Exception):
    """Raised when a pairing session ends FAILED.

    Attributes:
        session: The failed session.
    """

    def __init__(self, session: PairingSession) -> None:
        self.session = session
        super().__init__(f"Pairing failed for code {session.code!r}: {session.reason}")


async def pair(
    code: str,
    manager: ConnectionManager,
    timeout: float = HANDSHAKE_TIMEOUT,
) -> PairingSession:
    """Pair with the peer using code.

    Waits for an in-progress connection attempt to settle, then sends the
    pairing request and awaits the response. The whole exchange is bounded
    by timeout.

    Args:
        code: The pairing code extracted from the scan.
        manager: The connection manager; connect() should already be called.
        timeout: Seconds before the handshake resolves to FAILED.

    Returns:
        A CONFIRMED or FAILED session. Never raises for handshake failures.
    """
    session = PairingSession(code=code)
    if manager.handshake_lock.locked():
        return session.fail("Another pairing handshake is in progress")

    async with manager.handshake_lock:
        try:
            result = await asyncio.wait_for(_exchange(session, manager), timeout)
        except asyncio.TimeoutError:
            result = session.fail(f"No pairing response within {timeout:g}s")
        except (NotConnected, TransportError) as e:
            result = session.fail(str(e))

    if result.confirmed:
        logger.info("Paired with code %s", code)
    else:
        logger.warning("Pairing with code %s failed: %s", code, result.reason)
    return result


async def _exchange(session: PairingSession, manager: ConnectionManager) -> PairingSession:
    state = await manager.wait_settled()
    if state is not ConnectionState.OPEN:
        raise NotConnected(f"No connection available ({state.value})")

    manager.discard_inbound()
    await manager.send(PairingRequest(code=session.code))
    logger.debug("Sent pairing request for code %s", session.code)

    while True:
        raw = await manager.receive()
        try:
            message = decode_message(raw)
        except ProtocolError as e:
            logger.debug("Ignoring frame during pairing: %s", e)
            continue
        if isinstance(message, PairingResponse):
            if message.success:
                return session.confirm()
            return session.fail("Peer rejected the pairing code")
        logger.debug("Ignoring %s while waiting for pairing response", message.kind)


def require_confirmed(session: PairingSession) -> PairingSession:
    """Return session if CONFIRMED.

    Raises:
        HandshakeFailed: If the session is not confirmed.
    """
    if not session.confirmed:
        raise HandshakeFailed(session)
    return session
