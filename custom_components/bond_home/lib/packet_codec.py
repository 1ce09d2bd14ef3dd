"""Decode BPUP datagrams.

A push message from a Bond bridge is a single JSON object, e.g.::

    {"B": "ZZBL12345", "t": "devices/aabbccdd/state", "i": "00112233bbeeff",
     "s": 200, "m": 0, "f": 255, "b": {"_": "ab9284ef", "power": 1, "speed": 2}}

A reply to a keep-alive carries only the bridge id (and firmware version).
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .bpup_const import (
    KEEPALIVE_PAYLOAD,
    KEY_BODY,
    KEY_BOND_ID,
    KEY_FLAGS,
    KEY_METHOD,
    KEY_REQUEST_ID,
    KEY_STATUS,
    KEY_TOPIC,
    KEY_VERSION,
    TOPIC_SEPARATOR,
)


class PacketDecodeError(ValueError):
    """A datagram could not be turned into a BPUPUpdate."""

    def __init__(self, message: str, raw: str) -> None:
        super().__init__(message)
        self.raw = raw


@dataclass(frozen=True)
class BPUPUpdate:
    origin_id: Optional[str]
    request_id: Optional[str] = None
    topic: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)
    status: Optional[int] = None
    method: Optional[int] = None
    flags: Optional[int] = None
    version: Optional[str] = None

    @property
    def device_id(self) -> Optional[str]:
        """Second segment of the topic: ``devices/<id>/state`` -> ``<id>``."""
        if not self.topic:
            return None
        parts = self.topic.split(TOPIC_SEPARATOR)
        if len(parts) < 2 or not parts[1]:
            return None
        return parts[1]

    @property
    def is_keepalive_reply(self) -> bool:
        return self.topic is None and not self.payload


def encode_probe() -> bytes:
    return KEEPALIVE_PAYLOAD


def _opt_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _opt_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def decode(data: bytes) -> BPUPUpdate:
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as err:
        raise PacketDecodeError(f"not utf-8: {err}", data.decode("utf-8", "replace")) from err

    try:
        msg = json.loads(text)
    except json.JSONDecodeError as err:
        raise PacketDecodeError(f"invalid json: {err.msg}", text) from err

    if not isinstance(msg, dict):
        raise PacketDecodeError(f"expected a JSON object, got {type(msg).__name__}", text)

    body = msg.get(KEY_BODY)
    if body is None:
        body = {}
    elif not isinstance(body, dict):
        raise PacketDecodeError(f"body must be an object, got {type(body).__name__}", text)

    topic = msg.get(KEY_TOPIC)
    if topic is not None and not isinstance(topic, str):
        raise PacketDecodeError("topic must be a string", text)

    return BPUPUpdate(
        origin_id=_opt_str(msg.get(KEY_BOND_ID)),
        request_id=_opt_str(msg.get(KEY_REQUEST_ID)),
        topic=topic or None,
        payload=body,
        status=_opt_int(msg.get(KEY_STATUS)),
        method=_opt_int(msg.get(KEY_METHOD)),
        flags=_opt_int(msg.get(KEY_FLAGS)),
        version=_opt_str(msg.get(KEY_VERSION)),
    )
