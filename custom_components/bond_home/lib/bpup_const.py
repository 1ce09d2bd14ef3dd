"""Constants for the Bond Push UDP Protocol (BPUP)."""

from __future__ import annotations

BPUP_PORT = 30007

# A bare newline asks the bridge to (re)start pushing updates to us.
KEEPALIVE_PAYLOAD = b"\n"

KEEPALIVE_INTERVAL = 60.0
RECEIVE_TIMEOUT = 3.0
OFFLINE_AFTER = 2 * KEEPALIVE_INTERVAL + 30.0

MAX_DATAGRAM_SIZE = 2048

# JSON keys of a BPUP message
KEY_BOND_ID = "B"
KEY_REQUEST_ID = "i"
KEY_TOPIC = "t"
KEY_BODY = "b"
KEY_STATUS = "s"
KEY_METHOD = "m"
KEY_FLAGS = "f"
KEY_VERSION = "v"

TOPIC_SEPARATOR = "/"

__all__ = [
    "BPUP_PORT",
    "KEEPALIVE_PAYLOAD",
    "KEEPALIVE_INTERVAL",
    "RECEIVE_TIMEOUT",
    "OFFLINE_AFTER",
    "MAX_DATAGRAM_SIZE",
    "KEY_BOND_ID",
    "KEY_REQUEST_ID",
    "KEY_TOPIC",
    "KEY_BODY",
    "KEY_STATUS",
    "KEY_METHOD",
    "KEY_FLAGS",
    "KEY_VERSION",
    "TOPIC_SEPARATOR",
]
