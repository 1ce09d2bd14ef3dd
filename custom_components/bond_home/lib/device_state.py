from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


def _as_bool(value: Any) -> Optional[bool]:
    if value is None:
        return None
    try:
        return int(value) != 0
    except (TypeError, ValueError):
        return None


def _as_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def _as_direction(value: Any) -> Optional[str]:
    direction = _as_int(value)
    if direction is None or direction == 0:
        return None
    return "summer" if direction > 0 else "winter"


def _as_open_closed(value: Any) -> Optional[str]:
    is_open = _as_bool(value)
    if is_open is None:
        return None
    return "open" if is_open else "closed"


@dataclass(frozen=True)
class BondDeviceState:
    """Typed view of the state body a bridge pushes for one device."""

    power: Optional[bool] = None
    timer: Optional[int] = None
    speed: Optional[int] = None
    breeze: Optional[bool] = None
    breeze_mean: Optional[int] = None
    breeze_variability: Optional[int] = None
    direction: Optional[str] = None
    light: Optional[bool] = None
    brightness: Optional[int] = None
    up_light: Optional[bool] = None
    up_light_brightness: Optional[int] = None
    down_light: Optional[bool] = None
    down_light_brightness: Optional[int] = None
    flame: Optional[int] = None
    fpfan_power: Optional[bool] = None
    fpfan_speed: Optional[int] = None
    open: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "BondDeviceState":
        breeze = payload.get("breeze")
        if not isinstance(breeze, (list, tuple)) or len(breeze) < 3:
            breeze = (None, None, None)

        return cls(
            power=_as_bool(payload.get("power")),
            timer=_as_int(payload.get("timer")),
            speed=_as_int(payload.get("speed")),
            breeze=_as_bool(breeze[0]),
            breeze_mean=_as_int(breeze[1]),
            breeze_variability=_as_int(breeze[2]),
            direction=_as_direction(payload.get("direction")),
            light=_as_bool(payload.get("light")),
            brightness=_as_int(payload.get("brightness")),
            up_light=_as_bool(payload.get("up_light")),
            up_light_brightness=_as_int(payload.get("up_light_brightness")),
            down_light=_as_bool(payload.get("down_light")),
            down_light_brightness=_as_int(payload.get("down_light_brightness")),
            flame=_as_int(payload.get("flame")),
            fpfan_power=_as_bool(payload.get("fpfan_power")),
            fpfan_speed=_as_int(payload.get("fpfan_speed")),
            open=_as_open_closed(payload.get("open")),
        )

    def as_attributes(self) -> Dict[str, Any]:
        return {key: value for key, value in asdict(self).items() if value is not None}
