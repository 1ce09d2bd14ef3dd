from __future__ import annotations

import logging

import voluptuous as vol

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant
from homeassistant.exceptions import ConfigEntryNotReady

from .const import CONF_DEVICE_IDS, CONF_NAME, DEFAULT_NAME, DOMAIN, PLATFORMS
from .hub import BondBridgeHub
from .lib.config import BridgeConfig
from .lib.transport import BindError

_LOGGER = logging.getLogger(__name__)


def _bridge_config(entry: ConfigEntry) -> BridgeConfig:
    data = dict(entry.data)
    # device ids live in the options so they can be edited later
    if CONF_DEVICE_IDS in entry.options:
        data[CONF_DEVICE_IDS] = entry.options[CONF_DEVICE_IDS]
    return BridgeConfig.from_dict(data)


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    try:
        config = _bridge_config(entry)
    except vol.Invalid as err:
        _LOGGER.error("[%s] Invalid Bond bridge configuration: %s", DOMAIN, err)
        return False

    hub = BondBridgeHub(
        hass=hass,
        entry_id=entry.entry_id,
        name=entry.data.get(CONF_NAME, DEFAULT_NAME),
        config=config,
    )
    try:
        await hub.async_start()
    except BindError as err:
        raise ConfigEntryNotReady(f"Cannot listen for Bond push updates: {err}") from err

    hass.data.setdefault(DOMAIN, {})[entry.entry_id] = hub

    entry.async_on_unload(
        entry.add_update_listener(async_update_options)
    )

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    return True


async def async_update_options(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Called when user changes options in the UI."""
    # the set of device sensors changes with the options, so rebuild everything
    await hass.config_entries.async_reload(entry.entry_id)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    unload_ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if unload_ok:
        hub = hass.data[DOMAIN].pop(entry.entry_id, None)
        if not hass.data[DOMAIN]:
            hass.data.pop(DOMAIN)
        if hub is not None:
            await hub.async_stop()
    return unload_ok
