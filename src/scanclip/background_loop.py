#!/usr/bin/env python3
"""Background clipboard sync loop.

Hosts that background a process may not fire timers reliably but will keep
a long-lived coroutine running, so this loop is a plain while-loop guarded
by a running flag with an explicit sleep per iteration. Stopping clears the
flag; the loop notices at its next check, at most one interval later.

While backgrounded nothing else is scheduled, so this loop reconnects by
itself: when the connection is not OPEN it requests connect() and waits
a fixed delay (tenacity wait_fixed) before sampling again.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import TYPE_CHECKING

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, wait_fixed

from scanclip.connection import NotConnected, TransportError
from scanclip.constants import POLL_INTERVAL, RECONNECT_DELAY
from scanclip.snapshot import SnapshotError
from scanclip.sync_handlers import request_reconnect, send_if_changed

if TYPE_CHECKING:
    from scanclip.connection import ConnectionManager
    from scanclip.snapshot import SnapshotSource
    from scanclip.sync_state import SyncState

logger = logging.getLogger(__name__)


class BackgroundSyncLoop:
    """Flag-guarded sync loop handed the connection manager on backgrounding.

    Attributes:
        interval: Seconds to sleep after each completed iteration.
        reconnect_delay: Seconds to wait after a reconnect request.
        running: Cleared by stop(); checked before every iteration.
    """

    def __init__(
        self,
        manager: ConnectionManager,
        source: SnapshotSource,
        state: SyncState,
        interval: float = POLL_INTERVAL,
        reconnect_delay: float = RECONNECT_DELAY,
    ) -> None:
        self._manager = manager
        self._source = source
        self._state = state
        self.interval = interval
        self.reconnect_delay = reconnect_delay
        self.running = False
        self._stop_requested = False

    def stop(self) -> None:
        """Ask the loop to exit at its next check."""
        self._stop_requested = True
        self.running = False

    async def run(self) -> None:
        """Run until stop() is called. A loop stopped before it runs never starts."""
        if self._stop_requested:
            return
        self.running = True
        logger.info("Background sync loop started")
        try:
            while self.running:
                await self._iterate_until_connected()
                if self.running:
                    await asyncio.sleep(self.interval)
        finally:
            self.running = False
            logger.info("Background sync loop stopped")

    async def _iterate_until_connected(self) -> None:
        """Run one iteration, repeating after reconnect_delay while not OPEN."""
        retrying = AsyncRetrying(
            wait=wait_fixed(self.reconnect_delay),
            retry=retry_if_exception_type(NotConnected),
            stop=self._stopped,
            before_sleep=self._log_reconnect_wait,
            reraise=True,
        )
        with suppress(NotConnected):
            async for attempt in retrying:
                with attempt:
                    await self.iteration()

    def _stopped(self, retry_state: RetryCallState) -> bool:
        return not self.running

    def _log_reconnect_wait(self, retry_state: RetryCallState) -> None:
        logger.debug(
            "Not connected (attempt %d), resampling in %.1fs",
            retry_state.attempt_number,
            self.reconnect_delay,
        )

    async def iteration(self) -> bool:
        """Sample once, reconnecting or sending as needed.

        Returns:
            True if a clipboard update was sent.

        Raises:
            NotConnected: If the connection is not OPEN; a reconnect has
                been requested if none was already in progress.
        """
        if not self.running:
            return False
        if not self._manager.is_open:
            request_reconnect(self._manager)
            raise NotConnected(f"Connection is {self._manager.state.value}")

        try:
            snapshot = self._source.sample()
        except SnapshotError as e:
            logger.error("Background clipboard error: %s", e)
            return False

        try:
            return await send_if_changed(self._state, self._manager, snapshot)
        except TransportError as e:
            logger.warning("Background clipboard send failed: %s", e)
            return False
