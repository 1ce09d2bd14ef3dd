from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import voluptuous as vol

from .bpup_const import BPUP_PORT

CONF_BOND_ID = "bond_id"
CONF_HOST = "host"
CONF_PORT = "port"
CONF_LOCAL_TOKEN = "local_token"
CONF_DEVICE_IDS = "device_ids"

PORT_VALIDATOR = vol.All(vol.Coerce(int), vol.Range(min=1, max=65535))


def _non_empty_str(value: Any) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise vol.Invalid("must not be empty")
    return text


def _bond_id(value: Any) -> str:
    return _non_empty_str(value).upper()


def _device_ids(value: Any) -> List[str]:
    """Accept a list or a comma separated string of device ids."""
    if value is None:
        return []
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        raise vol.Invalid("expected a list of device ids")
    ids: List[str] = []
    for item in value:
        text = str(item).strip()
        if text and text not in ids:
            ids.append(text)
    return ids


DEVICE_IDS_VALIDATOR = _device_ids

BRIDGE_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_BOND_ID): _bond_id,
        vol.Required(CONF_HOST): _non_empty_str,
        vol.Optional(CONF_PORT, default=BPUP_PORT): PORT_VALIDATOR,
        vol.Optional(CONF_LOCAL_TOKEN): vol.Any(None, str),
        vol.Optional(CONF_DEVICE_IDS, default=list): DEVICE_IDS_VALIDATOR,
    },
    extra=vol.REMOVE_EXTRA,
)


@dataclass
class BridgeConfig:
    bond_id: str
    host: str
    port: int = BPUP_PORT
    local_token: Optional[str] = None
    device_ids: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BridgeConfig":
        valid = BRIDGE_SCHEMA(dict(data))
        return cls(
            bond_id=valid[CONF_BOND_ID],
            host=valid[CONF_HOST],
            port=valid[CONF_PORT],
            local_token=valid.get(CONF_LOCAL_TOKEN),
            device_ids=valid[CONF_DEVICE_IDS],
        )
