#!/usr/bin/env python3
"""Pytest fixtures for scanclip tests.

Provides a scripted clipboard source, an in-memory connection stand-in,
and a local websocket peer that answers pairing requests.
"""

import asyncio
import json
from collections.abc import AsyncGenerator, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
import websockets

from scanclip.connection import ConnectionState
from scanclip.snapshot import SnapshotSource
from scanclip.sync_state import SyncState


def scripted_source(*contents: str) -> SnapshotSource:
    """Create a SnapshotSource returning contents in order, then the last forever."""
    remaining = list(contents)

    def reader() -> str:
        if len(remaining) > 1:
            return remaining.pop(0)
        return remaining[0]

    return SnapshotSource(reader=reader)


async def wait_until(predicate: Callable[[], bool], timeout: float = 2.0) -> None:
    """Poll predicate until it is true or fail the test after timeout."""
    async def poll() -> None:
        while not predicate():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(poll(), timeout)


class FakeManager:
    """Connection manager stand-in recording sends and connect requests."""

    def __init__(self, state: ConnectionState = ConnectionState.OPEN) -> None:
        self.state = state
        self.endpoint = "ws://peer.invalid/ws"
        self.connection_requested = True
        self.sent: list = []
        self.connect = MagicMock(side_effect=self._connect)
        self.send = AsyncMock(side_effect=self._send)

    @property
    def is_open(self) -> bool:
        return self.state is ConnectionState.OPEN

    def _connect(self, endpoint: str | None = None) -> ConnectionState:
        self.state = ConnectionState.CONNECTING
        return self.state

    async def _send(self, message) -> None:
        self.sent.append(message)

    @property
    def sent_texts(self) -> list[str]:
        return [message.text for message in self.sent]


class PeerServer:
    """Local desktop peer: records frames and answers pairing requests."""

    def __init__(self) -> None:
        self.url = ""
        self.received: list[dict] = []
        self.connections: list = []
        self.accepted_codes = {"ABCD"}
        self.respond = True

    async def handler(self, connection) -> None:
        self.connections.append(connection)
        async for raw in connection:
            message = json.loads(raw)
            self.received.append(message)
            if message.get("type") == "pairing_request" and self.respond:
                success = message.get("code") in self.accepted_codes
                await connection.send(json.dumps({"type": "pairing_response", "success": success}))

    def clipboard_texts(self) -> list[str]:
        return [m["text"] for m in self.received if m.get("types") == "clipboard_update"]


@pytest.fixture
def sync_state() -> SyncState:
    """Create a fresh SyncState instance for testing."""
    return SyncState()


@pytest.fixture
def fake_manager() -> FakeManager:
    """Create an OPEN FakeManager."""
    return FakeManager()


@pytest_asyncio.fixture
async def peer_server() -> AsyncGenerator[PeerServer, None]:
    """Run a PeerServer on an ephemeral localhost port."""
    peer = PeerServer()
    async with websockets.serve(peer.handler, "127.0.0.1", 0) as server:
        port = next(iter(server.sockets)).getsockname()[1]
        peer.url = f"ws://127.0.0.1:{port}/ws/my-phone"
        yield peer


def undecodable_then(text: str) -> SnapshotSource:
    """Create a SnapshotSource whose first read hits non-UTF-8 bytes, then returns text."""
    calls = []

    def reader() -> str:
        calls.append(1)
        if len(calls) == 1:
            return b"\xff".decode("utf-8")
        return text

    return SnapshotSource(reader=reader)
