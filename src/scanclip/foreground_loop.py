#!/usr/bin/env python3
"""Foreground clipboard sync loop.

Runs as an asyncio task while the app is visible. Every interval it samples
the clipboard and sends new content if the connection is OPEN. Samples
taken while the connection is down are dropped. Stopping cancels the task
immediately.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from typing import TYPE_CHECKING

from scanclip.connection import NotConnected, TransportError
from scanclip.constants import POLL_INTERVAL
from scanclip.snapshot import SnapshotError
from scanclip.sync_handlers import request_reconnect, send_if_changed

if TYPE_CHECKING:
    from scanclip.connection import ConnectionManager
    from scanclip.snapshot import SnapshotSource
    from scanclip.sync_state import SyncState

logger = logging.getLogger(__name__)


class LoopPhase(enum.Enum):
    """What the foreground loop is doing right now."""

    IDLE = "idle"
    SENDING = "sending"


class ForegroundSyncLoop:
    """Interval-driven sync loop for the foreground state.

    Attributes:
        interval: Seconds between clipboard samples.
        reconnect: If True, a dropped sample also requests a reconnect.
            Off by default: in the foreground the loop only observes.
        phase: IDLE between sends, SENDING while a send is in progress.
    """

    def __init__(
        self,
        manager: ConnectionManager,
        source: SnapshotSource,
        state: SyncState,
        interval: float = POLL_INTERVAL,
        reconnect: bool = False,
    ) -> None:
        self._manager = manager
        self._source = source
        self._state = state
        self.interval = interval
        self.reconnect = reconnect
        self.phase = LoopPhase.IDLE
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the interval task; no-op if already running."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name="scanclip-foreground-sync"
        )
        logger.debug("Foreground sync loop started")

    async def stop(self) -> None:
        """Cancel the interval task and wait for it to finish."""
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})
            logger.debug("Foreground sync loop stopped")
        self.phase = LoopPhase.IDLE

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            await self.tick()

    async def tick(self) -> bool:
        """Sample the clipboard once and send it if it changed.

        Returns:
            True if a clipboard update was sent.
        """
        try:
            snapshot = self._source.sample()
        except SnapshotError as e:
            logger.error("Clipboard error: %s", e)
            return False

        logger.debug("Clipboard check: %r", snapshot.content)
        if self.reconnect and not self._manager.is_open:
            request_reconnect(self._manager)
        if not self._state.should_send(snapshot.content):
            return False

        self.phase = LoopPhase.SENDING
        try:
            return await send_if_changed(self._state, self._manager, snapshot)
        except NotConnected as e:
            logger.debug("%s", e)
            return False
        except TransportError as e:
            logger.warning("Clipboard send failed: %s", e)
            return False
        finally:
            self.phase = LoopPhase.IDLE
