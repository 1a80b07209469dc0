#!/usr/bin/env python3
"""Websocket connection ownership for scanclip.

The ConnectionManager is the only holder of the socket. Everyone else sees
the connection through its state, its send() method, and the inbound
message queue used by the pairing handshake. connect() never waits for the
socket: it schedules an attempt on the running event loop and returns.

There is no automatic retry here. Whoever needs the channel and finds it
not OPEN asks for connect() again (see sync_handlers.request_reconnect).
"""

from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

import websockets
from websockets.exceptions import WebSocketException

from scanclip.constants import CONNECT_TIMEOUT, INBOUND_QUEUE_SIZE
from scanclip.protocol import encode_message

if TYPE_CHECKING:
    from scanclip.protocol import SyncMessage

logger = logging.getLogger(__name__)


class ConnectionState(enum.Enum):
    """Observable state of the managed socket."""

    CLOSED = "closed"
    CONNECTING = "connecting"
    OPEN = "open"
    ERRORING = "erroring"


class NotConnected(Exception):
    """Raised by send() when the connection is not OPEN."""

    pass


class TransportError(ConnectionError):
    """Raised when the socket fails underneath an operation."""

    pass


StateObserver = Callable[[ConnectionState], None]


class ConnectionManager:
    """Single owner of the websocket to the desktop peer.

    Attributes:
        endpoint: Socket URL used by connect() when none is passed.
        connect_timeout: Seconds allowed for the websocket opening handshake.
    """

    def __init__(
        self,
        endpoint: str | None = None,
        connect_timeout: float = CONNECT_TIMEOUT,
        queue_size: int = INBOUND_QUEUE_SIZE,
    ) -> None:
        self.endpoint = endpoint
        self.connect_timeout = connect_timeout
        self._state = ConnectionState.CLOSED
        self._observers: list[StateObserver] = []
        self._socket = None
        self._task: asyncio.Task | None = None
        # Bumped on every connect()/close(); stale tasks may not publish.
        self._generation = 0
        self._inbound: asyncio.Queue[str | bytes | None] = asyncio.Queue(maxsize=queue_size)
        self._settled = asyncio.Event()
        self._settled.set()
        # Responses carry no request id, so one handshake at a time.
        self.handshake_lock = asyncio.Lock()

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_open(self) -> bool:
        return self._state is ConnectionState.OPEN

    @property
    def connection_requested(self) -> bool:
        """True once connect() has been called at least once."""
        return self._generation > 0 and self.endpoint is not None

    def on_state_change(self, callback: StateObserver) -> None:
        """Register a callback invoked with the new state on every transition.

        Args:
            callback: Called synchronously from the event loop thread.
        """
        self._observers.append(callback)

    def connect(self, endpoint: str | None = None) -> ConnectionState:
        """Begin a connection attempt and return immediately.

        Any previous attempt or open socket is torn down first; the new
        attempt does not open its socket until the old one has closed.

        Args:
            endpoint: Socket URL; defaults to the last one used.

        Returns:
            The state after scheduling, which is CONNECTING.

        Raises:
            ValueError: If no endpoint was ever configured.
            RuntimeError: If called without a running event loop.
        """
        if endpoint is not None:
            self.endpoint = endpoint
        if self.endpoint is None:
            raise ValueError("No endpoint configured for connection")

        previous = self._teardown()
        self.discard_inbound()
        self._set_state(ConnectionState.CONNECTING, self._generation)
        logger.debug("Connecting to %s (attempt %d)", self.endpoint, self._generation)
        self._task = asyncio.get_running_loop().create_task(
            self._run(self.endpoint, self._generation, previous),
            name=f"scanclip-connection-{self._generation}",
        )
        return self._state

    async def send(self, message: SyncMessage) -> None:
        """Send a message over the open socket.

        Never waits for a connection; callers check state and react.

        Args:
            message: The message to encode and send.

        Raises:
            NotConnected: If the state is not OPEN.
            TransportError: If the socket fails during the send.
        """
        socket = self._socket
        if self._state is not ConnectionState.OPEN or socket is None:
            raise NotConnected(
                f"Cannot send {message.kind}: connection is {self._state.value}"
            )
        try:
            await socket.send(encode_message(message))
        except (OSError, WebSocketException) as e:
            raise TransportError(f"Failed to send {message.kind}: {e}") from e

    async def receive(self) -> str | bytes:
        """Wait for the next inbound frame.

        Returns:
            The raw frame payload.

        Raises:
            TransportError: If the connection ends while waiting.
        """
        raw = await self._inbound.get()
        if raw is None:
            raise TransportError("Connection ended while waiting for a message")
        return raw

    async def wait_settled(self) -> ConnectionState:
        """Wait until the state is anything but CONNECTING and return it."""
        await self._settled.wait()
        return self._state

    def discard_inbound(self) -> None:
        """Drop any inbound frames nobody has read yet."""
        while not self._inbound.empty():
            self._inbound.get_nowait()

    async def close(self) -> None:
        """Close the socket, wait for its task to finish, and go CLOSED."""
        previous = self._teardown()
        if previous is not None:
            await asyncio.wait({previous})
        self._set_state(ConnectionState.CLOSED, self._generation)
        self._deliver(None, self._generation)

    def _teardown(self) -> asyncio.Task | None:
        """Retire the current attempt and return its task if still running."""
        self._generation += 1
        self._socket = None
        task, self._task = self._task, None
        if task is None or task.done():
            return None
        task.cancel()
        return task

    async def _run(
        self, endpoint: str, generation: int, previous: asyncio.Task | None
    ) -> None:
        """Open the socket, publish OPEN, then feed inbound frames to the queue."""
        if previous is not None:
            # asyncio.wait does not re-raise the old task's cancellation here
            await asyncio.wait({previous})
        try:
            async with websockets.connect(endpoint, open_timeout=self.connect_timeout) as socket:
                if generation != self._generation:
                    return
                self._socket = socket
                self._set_state(ConnectionState.OPEN, generation)
                logger.info("Connected to %s", endpoint)
                async for raw in socket:
                    self._deliver(raw, generation)
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            logger.warning("Transport error on %s: %s", endpoint, e)
            self._set_state(ConnectionState.ERRORING, generation)
        else:
            logger.info("Connection to %s closed", endpoint)
            self._set_state(ConnectionState.CLOSED, generation)
        finally:
            if generation == self._generation:
                self._socket = None
                self._deliver(None, generation)

    def _deliver(self, raw: str | bytes | None, generation: int) -> None:
        """Queue an inbound frame, or the end-of-connection sentinel None."""
        if generation != self._generation:
            return
        if self._inbound.full():
            dropped = self._inbound.get_nowait()
            logger.debug("Inbound queue full, dropped unread frame %r", dropped)
        self._inbound.put_nowait(raw)

    def _set_state(self, new_state: ConnectionState, generation: int) -> None:
        """Publish a transition if it comes from the current generation."""
        if generation != self._generation or new_state is self._state:
            return
        logger.debug("Connection state %s -> %s", self._state.value, new_state.value)
        self._state = new_state
        if new_state is ConnectionState.CONNECTING:
            self._settled.clear()
        else:
            self._settled.set()
        for callback in list(self._observers):
            try:
                callback(new_state)
            except Exception:
                logger.exception("State observer %r failed", callback)
