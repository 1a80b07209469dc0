#!/usr/bin/env python3
"""Constants for scanclip timing and endpoint configuration.

These constants control how often the clipboard is sampled, how the sync
loops pace reconnection attempts, and how long pairing may take.
"""

# Socket URL of the desktop peer, fixed at build time.
# Overridable with --endpoint or the SCANCLIP_ENDPOINT environment variable.
DEFAULT_ENDPOINT: str = "ws://192.168.1.74:8002/ws/my-phone"

# Seconds between clipboard samples in both sync loops.
POLL_INTERVAL: float = 1.0

# Fixed delay in seconds after a reconnect request before resampling.
RECONNECT_DELAY: float = 1.0

# Upper bound in seconds for a whole pairing handshake (open + response).
HANDSHAKE_TIMEOUT: float = 10.0

# Upper bound in seconds for the websocket opening handshake.
CONNECT_TIMEOUT: float = 10.0

# Seconds to wait for a stopped background loop to finish its iteration
# before it is cancelled.
LOOP_STOP_TIMEOUT: float = 2.0

# Maximum number of unread inbound messages kept by the connection.
INBOUND_QUEUE_SIZE: int = 32
