#!/usr/bin/env python3
"""
JSON message framing for the pairing and clipboard channel.

Every websocket text frame carries exactly one JSON object. Three message
kinds exist:

    {"type": "pairing_request", "code": "ABCD"}            client -> server
    {"type": "pairing_response", "success": true}           server -> client
    {"types": "clipboard_update", "text": "...", "timestamp": 1700000000000}

The clipboard update uses the key "types" rather than "type". Desktop peers
already in the field match on that key, so it is kept as-is on the wire.

This module provides immutable message types, encoding to text frames and
decoding of inbound frames, with a maximum text size to keep updates short.
"""
from __future__ import annotations

import json
import time
from dataclasses import dataclass, field

# Maximum size of clipboard text in bytes once encoded as UTF-8 (1 MiB).
MAX_TEXT_SIZE: int = 1048576

PAIRING_REQUEST: str = "pairing_request"
PAIRING_RESPONSE: str = "pairing_response"
CLIPBOARD_UPDATE: str = "clipboard_update"


class ProtocolError(Exception):
    """
    Exception raised for malformed or unknown inbound frames.

    Raised when a frame is not valid JSON, is not an object, or lacks the
    fields its message kind requires.
    """

    pass


def now_millis() -> int:
    """Return the current time as integer milliseconds since the epoch."""
    return int(time.time() * 1000)


@dataclass(frozen=True)
class PairingRequest:
    """Request to pair with the desktop peer identified by code."""

    code: str
    kind: str = field(default=PAIRING_REQUEST, init=False)

    def to_wire(self) -> dict:
        return {"type": PAIRING_REQUEST, "code": self.code}


@dataclass(frozen=True)
class PairingResponse:
    """Peer's verdict on the most recent pairing request."""

    success: bool
    kind: str = field(default=PAIRING_RESPONSE, init=False)

    def to_wire(self) -> dict:
        return {"type": PAIRING_RESPONSE, "success": self.success}


@dataclass(frozen=True)
class ClipboardUpdate:
    """New clipboard text observed on this device.

    Attributes:
        text: The clipboard content.
        timestamp: Epoch milliseconds at which the update was built.
    """

    text: str
    timestamp: int = field(default_factory=now_millis)
    kind: str = field(default=CLIPBOARD_UPDATE, init=False)

    def to_wire(self) -> dict:
        return {"types": CLIPBOARD_UPDATE, "text": self.text, "timestamp": self.timestamp}


SyncMessage = PairingRequest | PairingResponse | ClipboardUpdate


def encode_message(message: SyncMessage) -> str:
    """
    Encode a message as a JSON text frame.

    Args:
        message: The message to encode.

    Returns:
        Compact JSON text with the message's wire keys.
    """
    return json.dumps(message.to_wire(), ensure_ascii=False, separators=(",", ":"))


def validate_text_size(text: str) -> bool:
    """
    Check if clipboard text is within the allowed size limit.

    Args:
        text: Clipboard text to validate.

    Returns:
        True if the UTF-8 encoding is at most MAX_TEXT_SIZE bytes.
    """
    return len(text.encode("utf-8")) <= MAX_TEXT_SIZE


def _message_kind(obj: dict) -> str | None:
    # clipboard updates carry their kind under "types"
    kind = obj.get("type", obj.get("types"))
    return kind if isinstance(kind, str) else None


def decode_message(raw: str | bytes) -> SyncMessage:
    """
    Decode an inbound text frame into a message.

    Args:
        raw: The frame payload as received from the socket.

    Returns:
        The decoded message.

    Raises:
        ProtocolError: On invalid JSON, unknown kind, or missing fields.
    """
    try:
        obj = json.loads(raw)
    except (ValueError, TypeError) as e:
        raise ProtocolError(f"Invalid JSON frame: {e}") from e
    if not isinstance(obj, dict):
        raise ProtocolError(f"Expected JSON object, got {type(obj).__name__}")

    kind = _message_kind(obj)
    if kind == PAIRING_RESPONSE:
        success = obj.get("success")
        if not isinstance(success, bool):
            raise ProtocolError(f"pairing_response without boolean success: {obj!r}")
        return PairingResponse(success=success)
    if kind == PAIRING_REQUEST:
        code = obj.get("code")
        if not isinstance(code, str):
            raise ProtocolError(f"pairing_request without string code: {obj!r}")
        return PairingRequest(code=code)
    if kind == CLIPBOARD_UPDATE:
        text = obj.get("text")
        timestamp = obj.get("timestamp")
        if not isinstance(text, str) or not isinstance(timestamp, int):
            raise ProtocolError(f"clipboard_update with bad text/timestamp: {obj!r}")
        return ClipboardUpdate(text=text, timestamp=timestamp)
    raise ProtocolError(f"Unknown message kind: {kind!r}")
