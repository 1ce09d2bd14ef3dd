from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from homeassistant.core import HomeAssistant
from homeassistant.helpers.dispatcher import async_dispatcher_send

from .const import signal_bridge, signal_device
from .lib.config import BridgeConfig
from .lib.device_state import BondDeviceState
from .lib.listener import BPUPListener
from .lib.router import DeviceConsumerRegistry, UpdateRouter

_LOGGER = logging.getLogger(__name__)


class _DeviceConsumer:
    """Hands pushed state for one device from the listener thread to HA."""

    def __init__(self, hub: "BondBridgeHub", device_id: str) -> None:
        self._hub = hub
        self.device_id = device_id

    def on_update(self, payload: Dict[str, Any]) -> None:
        self._hub._on_device_update(self.device_id, payload)


class BondBridgeHub:
    def __init__(
        self,
        hass: HomeAssistant,
        entry_id: str,
        name: str,
        config: BridgeConfig,
    ) -> None:
        self.hass = hass
        self.entry_id = entry_id
        self.name = name
        self.config = config

        self.bridge_online: bool = False
        self.device_states: Dict[str, BondDeviceState] = {}

        self._registry = DeviceConsumerRegistry()

        _LOGGER.debug(
            "[%s] Creating BPUP listener for bridge %s (%s:%s)",
            self.entry_id,
            config.bond_id,
            config.host,
            config.port,
        )
        self._listener = self._create_listener()

    @property
    def bond_id(self) -> str:
        return self.config.bond_id

    @property
    def host(self) -> str:
        return self.config.host

    def _create_listener(self) -> BPUPListener:
        listener = BPUPListener(
            self.config.host,
            self.config.bond_id,
            UpdateRouter(self._registry),
            port=self.config.port,
        )
        listener.on_bridge_state(self._on_bridge_state)
        return listener

    async def async_start(self) -> None:
        _LOGGER.debug("[%s] Starting BPUP listener", self.entry_id)
        await self.hass.async_add_executor_job(self._listener.start)

    async def async_stop(self) -> None:
        _LOGGER.debug("[%s] Stopping BPUP listener", self.entry_id)
        await self.hass.async_add_executor_job(self._listener.shutdown)

    def get_last_known_bridge_id(self) -> Optional[str]:
        return self._listener.get_last_known_bridge_id()

    # ------------------------------------------------------------------
    # device attach / detach (called from entities)
    # ------------------------------------------------------------------
    def attach_device(self, device_id: str) -> None:
        self._registry.register(device_id, _DeviceConsumer(self, device_id))

    def detach_device(self, device_id: str) -> None:
        self._registry.unregister(device_id)
        self.device_states.pop(device_id.lower(), None)

    def get_device_state(self, device_id: str) -> Optional[BondDeviceState]:
        return self.device_states.get(device_id.lower())

    # ------------------------------------------------------------------
    # listener thread -> HA
    # ------------------------------------------------------------------
    def _on_bridge_state(self, online: bool) -> None:
        def _inner() -> None:
            _LOGGER.debug(
                "[%s] Bridge state changed: online=%s (last id=%s)",
                self.entry_id,
                online,
                self.get_last_known_bridge_id(),
            )
            self.bridge_online = online
            async_dispatcher_send(self.hass, signal_bridge(self.entry_id))
        self.hass.loop.call_soon_threadsafe(_inner)

    def _on_device_update(self, device_id: str, payload: Dict[str, Any]) -> None:
        state = BondDeviceState.from_payload(payload)

        def _inner() -> None:
            _LOGGER.debug("[%s] Push update for device %s: %s", self.entry_id, device_id, state)
            self.device_states[device_id.lower()] = state
            async_dispatcher_send(self.hass, signal_device(self.entry_id, device_id))
        self.hass.loop.call_soon_threadsafe(_inner)
