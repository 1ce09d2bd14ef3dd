from __future__ import annotations

import logging
import threading
from typing import Any, Dict, List, Optional, Protocol

from .packet_codec import BPUPUpdate

log = logging.getLogger("bondhome.router")


class DeviceConsumer(Protocol):
    def on_update(self, payload: Dict[str, Any]) -> None: ...


class DeviceConsumerRegistry:
    """Device id -> consumer map shared between HA lifecycle and the listener thread.

    Ids are matched case-insensitively; the bridge is not consistent about
    the casing of device ids in topics.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._consumers: Dict[str, DeviceConsumer] = {}

    @staticmethod
    def _key(device_id: str) -> str:
        return str(device_id).strip().lower()

    def register(self, device_id: str, consumer: DeviceConsumer) -> None:
        with self._lock:
            self._consumers[self._key(device_id)] = consumer
        log.debug("[ROUTER] registered consumer for device %s", device_id)

    def unregister(self, device_id: str) -> None:
        with self._lock:
            removed = self._consumers.pop(self._key(device_id), None)
        if removed is not None:
            log.debug("[ROUTER] unregistered consumer for device %s", device_id)

    def get(self, device_id: str) -> Optional[DeviceConsumer]:
        with self._lock:
            return self._consumers.get(self._key(device_id))

    def device_ids(self) -> List[str]:
        with self._lock:
            return list(self._consumers)

    def __len__(self) -> int:
        with self._lock:
            return len(self._consumers)


class UpdateRouter:
    def __init__(self, registry: DeviceConsumerRegistry) -> None:
        self.registry = registry

    def dispatch(self, update: BPUPUpdate) -> bool:
        device_id = update.device_id
        if device_id is None:
            log.warning("[ROUTER] cannot read a device id from topic %r", update.topic)
            return False

        consumer = self.registry.get(device_id)
        if consumer is None:
            # not attached yet, or a device of another bridge on the same segment
            log.debug("[ROUTER] no consumer for device %s, dropping update", device_id)
            return False

        consumer.on_update(update.payload)
        return True
