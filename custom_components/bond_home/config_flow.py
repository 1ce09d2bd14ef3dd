from __future__ import annotations

import logging
from typing import Any, Dict

import voluptuous as vol

from homeassistant import config_entries
from homeassistant.core import callback

from .const import (
    DOMAIN,
    CONF_BOND_ID,
    CONF_DEVICE_IDS,
    CONF_HOST,
    CONF_LOCAL_TOKEN,
    CONF_NAME,
    CONF_PORT,
    DEFAULT_BPUP_PORT,
    DEFAULT_NAME,
)
from .lib.config import BRIDGE_SCHEMA, DEVICE_IDS_VALIDATOR

_LOGGER = logging.getLogger(__name__)


class ConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    VERSION = 1

    # ------------------------------------------------------------------
    # step user: bond id + address of the bridge
    # ------------------------------------------------------------------
    async def async_step_user(self, user_input: Dict[str, Any] | None = None):
        errors: Dict[str, str] = {}

        if user_input is not None:
            try:
                valid = BRIDGE_SCHEMA(
                    {
                        CONF_BOND_ID: user_input.get(CONF_BOND_ID),
                        CONF_HOST: user_input.get(CONF_HOST),
                        CONF_PORT: user_input.get(CONF_PORT, DEFAULT_BPUP_PORT),
                        CONF_LOCAL_TOKEN: user_input.get(CONF_LOCAL_TOKEN) or None,
                    }
                )
            except vol.Invalid as err:
                _LOGGER.debug("[%s] Rejected bridge settings: %s", DOMAIN, err)
                field = err.path[0] if err.path else "base"
                errors[str(field)] = "invalid"
            else:
                await self.async_set_unique_id(valid[CONF_BOND_ID])
                self._abort_if_unique_id_configured()

                name = user_input.get(CONF_NAME) or DEFAULT_NAME
                return self.async_create_entry(
                    title=f"{name} ({valid[CONF_BOND_ID]})",
                    data={
                        CONF_NAME: name,
                        CONF_BOND_ID: valid[CONF_BOND_ID],
                        CONF_HOST: valid[CONF_HOST],
                        CONF_PORT: valid[CONF_PORT],
                        CONF_LOCAL_TOKEN: valid.get(CONF_LOCAL_TOKEN),
                    },
                    options={CONF_DEVICE_IDS: []},
                )

        schema = vol.Schema({
            vol.Required(CONF_NAME, default=DEFAULT_NAME): str,
            vol.Required(CONF_BOND_ID): str,
            vol.Required(CONF_HOST): str,
            vol.Required(CONF_PORT, default=DEFAULT_BPUP_PORT): int,
            vol.Optional(CONF_LOCAL_TOKEN): str,
        })
        return self.async_show_form(
            step_id="user",
            data_schema=schema,
            errors=errors,
            description_placeholders={
                "help": (
                    "Enter the Bond ID printed on the bridge (e.g. ZZBL12345) and its IP address. "
                    "Push updates arrive on UDP port 30007."
                )
            },
        )

    @staticmethod
    @callback
    def async_get_options_flow(config_entry):
        """Return the options flow for this entry."""
        return BondOptionsFlowHandler(config_entry)


# ----------------------------------------------------------------------
# options flow: which devices get a sensor
# ----------------------------------------------------------------------
class BondOptionsFlowHandler(config_entries.OptionsFlow):
    def __init__(self, entry: config_entries.ConfigEntry) -> None:
        self.entry = entry

    async def async_step_init(self, user_input: Dict[str, Any] | None = None):
        errors: Dict[str, str] = {}

        if user_input is not None:
            try:
                device_ids = DEVICE_IDS_VALIDATOR(user_input.get(CONF_DEVICE_IDS, ""))
            except vol.Invalid:
                errors[CONF_DEVICE_IDS] = "invalid"
            else:
                return self.async_create_entry(
                    title="Bond options", data={CONF_DEVICE_IDS: device_ids}
                )

        current = ", ".join(self.entry.options.get(CONF_DEVICE_IDS, []))
        schema = vol.Schema({
            vol.Optional(CONF_DEVICE_IDS, default=current): str,
        })

        return self.async_show_form(
            step_id="init",
            data_schema=schema,
            errors=errors,
            description_placeholders={
                "explain": (
                    "Comma separated device ids as shown in the Bond app "
                    "(e.g. aabbccdd). Each device gets a sensor fed by push updates."
                )
            },
        )
