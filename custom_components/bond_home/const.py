# const.py
from .lib.bpup_const import BPUP_PORT
from .lib.config import (
    CONF_BOND_ID,
    CONF_DEVICE_IDS,
    CONF_HOST,
    CONF_LOCAL_TOKEN,
    CONF_PORT,
)

DOMAIN = "bond_home"

CONF_NAME = "name"

DEFAULT_BPUP_PORT = BPUP_PORT
DEFAULT_NAME = "Bond Bridge"

PLATFORMS = ["binary_sensor", "sensor"]


def signal_bridge(entry_id: str) -> str:
    return f"{DOMAIN}_{entry_id}_bridge"


def signal_device(entry_id: str, device_id: str) -> str:
    return f"{DOMAIN}_{entry_id}_device_{device_id.lower()}"
