#!/usr/bin/env python3
"""Pairing code extraction and pairing session records.

A desktop peer displays a code such as "sic://dev123/ABCD". The scanner
hands us the decoded string; the pairing code is its final slash-separated
segment. Each scan creates a new PairingSession, which is never mutated:
the handshake produces a new terminal session from the pending one.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, replace


class InvalidFormat(ValueError):
    """Raised when a scan payload does not contain a pairing code."""

    pass


class PairingStatus(enum.Enum):
    """Lifecycle of a pairing session."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass(frozen=True)
class PairingSession:
    """One pairing attempt created from one scan.

    Attributes:
        code: The pairing code sent to the peer.
        status: Pending until the handshake resolves.
        reason: Human-readable cause when status is FAILED.
    """

    code: str
    status: PairingStatus = PairingStatus.PENDING
    reason: str | None = None

    @property
    def confirmed(self) -> bool:
        return self.status is PairingStatus.CONFIRMED

    def confirm(self) -> PairingSession:
        """Return the confirmed successor of a pending session."""
        return replace(self, status=PairingStatus.CONFIRMED, reason=None)

    def fail(self, reason: str) -> PairingSession:
        """Return the failed successor of a pending session."""
        return replace(self, status=PairingStatus.FAILED, reason=reason)


def extract_pairing_code(payload: str) -> str:
    """Extract the pairing code from a decoded scan payload.

    The payload is a slash-delimited path-like string and the code is its
    final segment, returned exactly as it appears.

    Args:
        payload: Decoded scan string, e.g. "sic://dev123/ABCD".

    Returns:
        The final segment, e.g. "ABCD".

    Raises:
        InvalidFormat: If the payload is empty or its final segment is empty.
    """
    if not payload:
        raise InvalidFormat("Invalid QR code format: empty payload")
    code = payload.split("/")[-1]
    if not code:
        raise InvalidFormat(f"Invalid QR code format: no pairing code in {payload!r}")
    return code


def new_session(payload: str) -> PairingSession:
    """Create a pending session from a decoded scan payload.

    Raises:
        InvalidFormat: If no pairing code can be extracted.
    """
    return PairingSession(code=extract_pairing_code(payload))
