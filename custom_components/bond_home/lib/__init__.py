"""BPUP push listener for Bond bridges, usable without Home Assistant.

Protocol constants (port, keep-alive cadence, message keys) are available
at package level.
"""

from . import bpup_const as _bpup_const
from .bpup_const import *  # noqa: F401,F403

__all__ = getattr(_bpup_const, "__all__", [])
