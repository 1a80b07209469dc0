#!/usr/bin/env python3
"""
Unit tests for SyncState.

Tests should_send, claim, and clear.
"""
from scanclip.snapshot import ClipboardSnapshot
from scanclip.sync_state import SyncState


def test_sync_state_initial_values() -> None:
    """Test SyncState starts with nothing sent."""
    state = SyncState()
    assert state.last_sent is None
    assert state.last_sent_at is None


def test_should_send_new_content() -> None:
    """Test new content should be sent."""
    assert SyncState().should_send("abc") is True


def test_should_send_false_for_empty_content() -> None:
    """Test empty clipboard is never sent."""
    assert SyncState().should_send("") is False


def test_should_send_false_for_last_sent() -> None:
    """Test content equal to last_sent is not sent again."""
    state = SyncState(last_sent="abc")
    assert state.should_send("abc") is False


def test_claim_records_snapshot() -> None:
    """Test claim records content and observation time."""
    state = SyncState()
    assert state.claim(ClipboardSnapshot(content="abc", observed_at=12.5)) is True
    assert state.last_sent == "abc"
    assert state.last_sent_at == 12.5


def test_claim_same_content_twice_only_succeeds_once() -> None:
    """Test repeated identical snapshots are claimed once."""
    state = SyncState()
    claims = [state.claim(ClipboardSnapshot(content="abc")) for _ in range(3)]
    assert claims == [True, False, False]


def test_clear_allows_resend() -> None:
    """Test clear forgets the last sent value."""
    state = SyncState()
    state.claim(ClipboardSnapshot(content="abc"))
    state.clear()
    assert state.last_sent is None
    assert state.should_send("abc") is True
