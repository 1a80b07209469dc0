#!/usr/bin/env python3
"""Foreground/background arbitration between the two sync loops.

| Transition               | Action                                         |
|--------------------------|------------------------------------------------|
| foreground -> background | stop foreground loop, start background loop    |
| background -> foreground | stop background loop, resume foreground loop   |

Exactly one loop drives sends at any time. Transitions are serialized and
each one waits for the outgoing loop to finish before starting the
incoming one. The background loop is only started once a connection has
been requested; before pairing, backgrounding leaves no loop active.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any

from scanclip.background_loop import BackgroundSyncLoop
from scanclip.constants import LOOP_STOP_TIMEOUT, POLL_INTERVAL, RECONNECT_DELAY
from scanclip.foreground_loop import ForegroundSyncLoop

if TYPE_CHECKING:
    from scanclip.connection import ConnectionManager
    from scanclip.snapshot import SnapshotSource
    from scanclip.sync_state import SyncState

logger = logging.getLogger(__name__)

# Runs a long-lived coroutine inside the host's background execution state.
BackgroundRunner = Callable[[Coroutine[Any, Any, None]], asyncio.Task]


class AppPhase(enum.Enum):
    """Execution state reported by the host."""

    FOREGROUND = "foreground"
    BACKGROUND = "background"


class LifecycleArbiter:
    """Decides which sync loop owns sending as the app changes state.

    Attributes:
        phase: The execution state most recently reported by the host.
        foreground: The foreground loop, created once and restarted.
        background: The running background loop, or None.
    """

    def __init__(
        self,
        manager: ConnectionManager,
        source: SnapshotSource,
        state: SyncState,
        interval: float = POLL_INTERVAL,
        reconnect_delay: float = RECONNECT_DELAY,
        foreground_reconnect: bool = False,
        stop_timeout: float = LOOP_STOP_TIMEOUT,
        runner: BackgroundRunner | None = None,
    ) -> None:
        self._manager = manager
        self._source = source
        self._state = state
        self._interval = interval
        self._reconnect_delay = reconnect_delay
        self._stop_timeout = stop_timeout
        self._runner = runner
        self.phase = AppPhase.FOREGROUND
        self.foreground = ForegroundSyncLoop(
            manager, source, state, interval=interval, reconnect=foreground_reconnect
        )
        self.background: BackgroundSyncLoop | None = None
        self._background_task: asyncio.Task | None = None
        self._lock = asyncio.Lock()

    @property
    def active_loops(self) -> int:
        """Number of loops currently able to send (0 or 1)."""
        background_active = (
            self._background_task is not None and not self._background_task.done()
        )
        return int(self.foreground.running) + int(background_active)

    def start(self) -> None:
        """Begin in the foreground state with the foreground loop running."""
        self.phase = AppPhase.FOREGROUND
        self.foreground.start()

    async def on_background(self) -> None:
        """Host hook: the app left the foreground."""
        async with self._lock:
            if self.phase is AppPhase.BACKGROUND:
                return
            self.phase = AppPhase.BACKGROUND
            await self.foreground.stop()
            if not self._manager.connection_requested:
                logger.info("No connection requested yet, not starting background sync")
                return
            self.background = BackgroundSyncLoop(
                self._manager,
                self._source,
                self._state,
                interval=self._interval,
                reconnect_delay=self._reconnect_delay,
            )
            self._background_task = self._spawn(self.background.run())
            logger.info("Entered background, background sync loop owns the channel")

    async def on_foreground(self) -> None:
        """Host hook: the app returned to the foreground."""
        async with self._lock:
            if self.phase is AppPhase.FOREGROUND:
                return
            self.phase = AppPhase.FOREGROUND
            await self._stop_background()
            self.foreground.start()
            logger.info("Entered foreground, foreground sync loop owns the channel")

    async def shutdown(self) -> None:
        """Stop whichever loop is running."""
        async with self._lock:
            await self.foreground.stop()
            await self._stop_background()

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        if self._runner is not None:
            return self._runner(coro)
        return asyncio.get_running_loop().create_task(coro, name="scanclip-background-sync")

    async def _stop_background(self) -> None:
        """Clear the background running flag and wait for the loop to exit."""
        loop, task = self.background, self._background_task
        if loop is None or task is None:
            return
        loop.stop()
        done, _ = await asyncio.wait({task}, timeout=self._stop_timeout)
        if not done:
            logger.debug("Background loop did not stop in %.1fs, cancelling", self._stop_timeout)
            task.cancel()
            await asyncio.wait({task})
        elif not task.cancelled() and task.exception() is not None:
            logger.error("Background sync loop failed: %s", task.exception())
        self.background, self._background_task = None, None
