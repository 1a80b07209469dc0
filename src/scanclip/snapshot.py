#!/usr/bin/env python3
"""Clipboard snapshot source.

Reads the current clipboard text on demand. The default reader is
pyperclip.paste; any zero-argument callable returning str can stand in
for it (a platform bridge, or a fake in tests).
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass, field

import pyperclip


class SnapshotError(Exception):
    """Raised when the clipboard cannot be read."""

    pass


@dataclass(frozen=True)
class ClipboardSnapshot:
    """A timestamped read of the clipboard.

    Attributes:
        content: Clipboard text at the time of the read.
        observed_at: Epoch seconds at which the read happened.
    """

    content: str
    observed_at: float = field(default_factory=time.time)


class SnapshotSource:
    """Reads the synchronized resource (the clipboard)."""

    def __init__(self, reader: Callable[[], str] | None = None) -> None:
        self._reader = reader if reader is not None else pyperclip.paste

    def read(self) -> str:
        """Return the current clipboard text.

        Non-text clipboard contents read as the empty string.

        Raises:
            SnapshotError: If the clipboard backend fails, including
                clipboard bytes that do not decode as text.
        """
        try:
            content = self._reader()
        except Exception as e:
            # pyperclip backends raise PyperclipException or UnicodeDecodeError;
            # injected readers may raise anything
            raise SnapshotError(f"Clipboard read failed: {e}") from e
        if not isinstance(content, str):
            return ""
        return content

    def sample(self) -> ClipboardSnapshot:
        """Read the clipboard and stamp the result with the current time."""
        return ClipboardSnapshot(content=self.read(), observed_at=time.time())
