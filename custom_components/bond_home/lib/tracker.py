from __future__ import annotations

import logging
from typing import Optional

from .bpup_const import KEEPALIVE_INTERVAL
from .packet_codec import BPUPUpdate

log = logging.getLogger("bondhome.tracker")


class UpdateTracker:
    """Keep-alive schedule and duplicate filter for one bridge.

    Only the listener thread touches this object, so it holds no lock.
    """

    def __init__(self, expected_bond_id: Optional[str], *, interval: float = KEEPALIVE_INTERVAL) -> None:
        self.expected_bond_id = expected_bond_id
        self.interval = float(interval)
        self.last_probe: Optional[float] = None
        self.last_request_id: Optional[str] = None
        self.last_bond_id: Optional[str] = None

    def is_probe_due(self, now: float) -> bool:
        if self.last_probe is None:
            return True
        return now - self.last_probe >= self.interval

    def mark_probed(self, now: float) -> None:
        self.last_probe = now

    def is_expected_origin(self, origin_id: Optional[str]) -> bool:
        if not self.expected_bond_id:
            return True
        return (origin_id or "").lower() == self.expected_bond_id.lower()

    def check_origin(self, update: BPUPUpdate) -> bool:
        """Remember who sent ``update``; warn when it is not our bridge."""
        if update.origin_id:
            self.last_bond_id = update.origin_id
        if self.is_expected_origin(update.origin_id):
            return True
        log.warning(
            "[BPUP] packet is not from the expected bridge: expected=%s got=%s",
            self.expected_bond_id,
            update.origin_id,
        )
        return False

    def admit(self, update: BPUPUpdate) -> bool:
        # a mismatched bridge id is only diagnostic, never a reason to drop
        self.check_origin(update)

        new_id = update.request_id
        last_id = self.last_request_id
        if new_id is not None and last_id is not None and new_id.lower() == last_id.lower():
            return False

        self.last_request_id = new_id
        return True
