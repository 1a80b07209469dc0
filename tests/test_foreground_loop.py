#!/usr/bin/env python3
"""Tests for the foreground sync loop."""
import asyncio
from unittest.mock import MagicMock

import pytest

from conftest import FakeManager, scripted_source, undecodable_then, wait_until
from scanclip.connection import ConnectionState
from scanclip.foreground_loop import ForegroundSyncLoop, LoopPhase
from scanclip.snapshot import SnapshotError, SnapshotSource
from scanclip.sync_state import SyncState


@pytest.mark.asyncio
async def test_tick_sends_a_then_b_for_a_a_b(
    sync_state: SyncState, fake_manager: FakeManager
) -> None:
    """Test reads "a", "a", "b" while connected send exactly "a" then "b"."""
    loop = ForegroundSyncLoop(fake_manager, scripted_source("a", "a", "b"), sync_state)

    results = [await loop.tick() for _ in range(3)]

    assert results == [True, False, True]
    assert fake_manager.sent_texts == ["a", "b"]
    assert loop.phase is LoopPhase.IDLE


@pytest.mark.asyncio
async def test_tick_drops_sample_when_not_open(sync_state: SyncState) -> None:
    """Test the foreground loop drops samples and only observes by default."""
    manager = FakeManager(ConnectionState.ERRORING)
    loop = ForegroundSyncLoop(manager, scripted_source("a"), sync_state)

    assert await loop.tick() is False

    manager.send.assert_not_called()
    manager.connect.assert_not_called()
    assert sync_state.last_sent is None


@pytest.mark.asyncio
async def test_tick_sends_fresh_content_after_reconnect(sync_state: SyncState) -> None:
    """Test a dropped sample is not queued; the next fresh one is sent."""
    manager = FakeManager(ConnectionState.CLOSED)
    loop = ForegroundSyncLoop(manager, scripted_source("old", "new"), sync_state)

    await loop.tick()
    manager.state = ConnectionState.OPEN
    await loop.tick()

    assert manager.sent_texts == ["new"]


@pytest.mark.asyncio
async def test_tick_requests_reconnect_when_enabled(sync_state: SyncState) -> None:
    """Test reconnect=True makes the foreground loop request connect()."""
    manager = FakeManager(ConnectionState.CLOSED)
    loop = ForegroundSyncLoop(manager, scripted_source("a"), sync_state, reconnect=True)

    await loop.tick()
    await loop.tick()

    # Second tick sees CONNECTING and does not pile on another attempt
    manager.connect.assert_called_once_with()


@pytest.mark.asyncio
async def test_tick_survives_clipboard_errors(
    sync_state: SyncState, fake_manager: FakeManager
) -> None:
    """Test a clipboard read failure is logged, not raised."""
    source = MagicMock(spec=SnapshotSource)
    source.sample.side_effect = SnapshotError("clipboard locked")
    loop = ForegroundSyncLoop(fake_manager, source, sync_state)

    assert await loop.tick() is False


@pytest.mark.asyncio
async def test_start_runs_interval_and_stop_cancels(
    sync_state: SyncState, fake_manager: FakeManager
) -> None:
    """Test start samples on the interval and stop ends the task at once."""
    loop = ForegroundSyncLoop(fake_manager, scripted_source("a", "b"), sync_state, interval=0.01)

    loop.start()
    loop.start()
    assert loop.running
    await wait_until(lambda: fake_manager.sent_texts == ["a", "b"])

    await loop.stop()
    assert not loop.running
    sent_before = len(fake_manager.sent)
    await asyncio.sleep(0.05)
    assert len(fake_manager.sent) == sent_before


@pytest.mark.asyncio
async def test_stop_when_not_started_is_noop(
    sync_state: SyncState, fake_manager: FakeManager
) -> None:
    """Test stop on an idle loop does nothing."""
    loop = ForegroundSyncLoop(fake_manager, scripted_source("a"), sync_state)
    await loop.stop()
    assert not loop.running


@pytest.mark.asyncio
async def test_loop_survives_undecodable_clipboard(
    sync_state: SyncState, fake_manager: FakeManager
) -> None:
    """Test the foreground task keeps running after a failed read and sends the next one."""
    loop = ForegroundSyncLoop(fake_manager, undecodable_then("a"), sync_state, interval=0.01)
    loop.start()

    await wait_until(lambda: fake_manager.sent_texts == ["a"])
    assert loop.running
    await loop.stop()
