from __future__ import annotations

from typing import Any, Dict, Optional

from homeassistant.components.sensor import SensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import DOMAIN, signal_device
from .hub import BondBridgeHub


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    hub: BondBridgeHub = hass.data[DOMAIN][entry.entry_id]
    async_add_entities(
        [BondDeviceStateSensor(hub, device_id) for device_id in hub.config.device_ids]
    )


class BondDeviceStateSensor(SensorEntity):
    """Last pushed state of one Bond device; state is its power."""

    _attr_should_poll = False
    _attr_icon = "mdi:ceiling-fan"

    def __init__(self, hub: BondBridgeHub, device_id: str) -> None:
        self._hub = hub
        self._device_id = device_id
        self._attr_unique_id = f"{hub.bond_id}_{device_id.lower()}_state"
        self._attr_name = f"Bond device {device_id}"

    @property
    def device_info(self) -> DeviceInfo:
        return DeviceInfo(
            identifiers={(DOMAIN, f"{self._hub.bond_id}_{self._device_id.lower()}")},
            name=f"Bond device {self._device_id}",
            via_device=(DOMAIN, self._hub.bond_id),
        )

    async def async_added_to_hass(self) -> None:
        self._hub.attach_device(self._device_id)
        self.async_on_remove(
            async_dispatcher_connect(
                self.hass,
                signal_device(self._hub.entry_id, self._device_id),
                self._handle_device_update,
            )
        )

    async def async_will_remove_from_hass(self) -> None:
        self._hub.detach_device(self._device_id)

    @callback
    def _handle_device_update(self) -> None:
        self.async_write_ha_state()

    @property
    def native_value(self) -> Optional[str]:
        state = self._hub.get_device_state(self._device_id)
        if state is None or state.power is None:
            return None
        return "on" if state.power else "off"

    @property
    def extra_state_attributes(self) -> Dict[str, Any]:
        state = self._hub.get_device_state(self._device_id)
        return state.as_attributes() if state is not None else {}
