# custom_components/bond_home/binary_sensor.py
from __future__ import annotations

from homeassistant.components.binary_sensor import (
    BinarySensorEntity,
    BinarySensorDeviceClass,
)
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity import DeviceInfo
from homeassistant.helpers.entity_platform import AddEntitiesCallback

from .const import DOMAIN, signal_bridge
from .hub import BondBridgeHub


async def async_setup_entry(
    hass: HomeAssistant,
    entry: ConfigEntry,
    async_add_entities: AddEntitiesCallback,
) -> None:
    hub: BondBridgeHub = hass.data[DOMAIN][entry.entry_id]
    async_add_entities([BondBridgeConnectionSensor(hub)])


class BondBridgeConnectionSensor(BinarySensorEntity):
    """Is the bridge answering keep-alives / pushing updates?"""

    _attr_should_poll = False
    _attr_device_class = BinarySensorDeviceClass.CONNECTIVITY

    def __init__(self, hub: BondBridgeHub) -> None:
        self._hub = hub
        self._attr_unique_id = f"{hub.bond_id}_connected"
        self._attr_name = f"{hub.name} connected"

    @property
    def device_info(self) -> DeviceInfo:
        return DeviceInfo(
            identifiers={(DOMAIN, self._hub.bond_id)},
            name=self._hub.name,
            manufacturer="Olibra",
            model="Bond Bridge",
        )

    @property
    def extra_state_attributes(self) -> dict:
        return {
            "host": self._hub.host,
            "last_bond_id": self._hub.get_last_known_bridge_id(),
        }

    async def async_added_to_hass(self) -> None:
        self.async_on_remove(
            async_dispatcher_connect(
                self.hass,
                signal_bridge(self._hub.entry_id),
                self._handle_bridge_state,
            )
        )

    @callback
    def _handle_bridge_state(self) -> None:
        self.async_write_ha_state()

    @property
    def is_on(self) -> bool:
        return self._hub.bridge_online
