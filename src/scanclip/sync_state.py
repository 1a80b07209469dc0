#!/usr/bin/env python3
"""Last-sent clipboard record shared by the sync loops.

Only the most recently sent value is kept. claim() compares and records in
one step with no await in between, so within a single event loop two
iterations can never both decide to send the same content.
"""

from __future__ import annotations

from dataclasses import dataclass

from scanclip.snapshot import ClipboardSnapshot


@dataclass
class SyncState:
    """State shared by the foreground and background sync loops.

    Attributes:
        last_sent: Content of the last snapshot a send was attempted for.
        last_sent_at: observed_at of that snapshot, or None.
    """

    last_sent: str | None = None
    last_sent_at: float | None = None

    def should_send(self, content: str) -> bool:
        """
        Check whether content is new and worth sending.

        Empty content is never sent, nor is content equal to last_sent.
        """
        return bool(content) and content != self.last_sent

    def claim(self, snapshot: ClipboardSnapshot) -> bool:
        """
        Record snapshot as sent if it should be sent.

        Args:
            snapshot: The freshly sampled clipboard snapshot.

        Returns:
            True if the caller now owns sending this snapshot.
        """
        if not self.should_send(snapshot.content):
            return False
        self.last_sent = snapshot.content
        self.last_sent_at = snapshot.observed_at
        return True

    def clear(self) -> None:
        """Forget the last sent value so the next snapshot is sent."""
        self.last_sent = None
        self.last_sent_at = None
