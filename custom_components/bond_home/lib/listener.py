from __future__ import annotations

import logging
import threading
import time
from enum import Enum
from typing import Callable, Optional

from .bpup_const import BPUP_PORT, KEEPALIVE_INTERVAL, OFFLINE_AFTER, RECEIVE_TIMEOUT
from .packet_codec import BPUPUpdate, PacketDecodeError, decode
from .router import UpdateRouter
from .tracker import UpdateTracker
from .transport import DatagramTransport, ReceiveResult, ReceiveStatus

log = logging.getLogger("bondhome.listener")


class ListenerState(Enum):
    STOPPED = "stopped"
    RUNNING = "running"
    STOPPING = "stopping"


class BPUPListener:
    """Keep a bridge pushing BPUP updates to us and route what it sends.

    One daemon thread per bridge runs :meth:`run_cycle` until
    :meth:`shutdown`. Every cycle sends a keep-alive when one is due, then
    waits up to the transport timeout for a datagram.
    """

    def __init__(
        self,
        host: str,
        bond_id: Optional[str],
        router: UpdateRouter,
        *,
        port: int = BPUP_PORT,
        timeout: float = RECEIVE_TIMEOUT,
        keepalive_interval: float = KEEPALIVE_INTERVAL,
        offline_after: float = OFFLINE_AFTER,
        transport: Optional[DatagramTransport] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.host = host
        self.router = router
        self.transport = transport if transport is not None else DatagramTransport(port, timeout=timeout)
        self.tracker = UpdateTracker(bond_id, interval=keepalive_interval)
        self.offline_after = float(offline_after)
        self._clock = clock

        self._state = ListenerState.STOPPED
        self._state_lock = threading.Lock()
        self._thr: Optional[threading.Thread] = None

        self._bridge_online: Optional[bool] = None
        self._last_rx: Optional[float] = None

        self._bridge_state_cbs: list[Callable[[bool], None]] = []
        self._update_cbs: list[Callable[[BPUPUpdate], None]] = []

    # ------------------------------------------------------------------
    # Callback registration
    # ------------------------------------------------------------------
    def on_bridge_state(self, cb: Callable[[bool], None]) -> None:
        self._bridge_state_cbs.append(cb)
        if self._bridge_online is not None:
            cb(self._bridge_online)

    def on_update(self, cb: Callable[[BPUPUpdate], None]) -> None:
        """Observe every admitted update, routed or not."""
        self._update_cbs.append(cb)

    # ------------------------------------------------------------------
    # External control
    # ------------------------------------------------------------------
    @property
    def state(self) -> ListenerState:
        return self._state

    @property
    def is_bridge_online(self) -> bool:
        return bool(self._bridge_online)

    def get_last_known_bridge_id(self) -> Optional[str]:
        return self.tracker.last_bond_id

    def start(self) -> None:
        with self._state_lock:
            if self._state is ListenerState.RUNNING:
                return
            if self._state is ListenerState.STOPPING:
                log.warning(
                    "[BPUP] listener for %s is still shutting down, not restarting",
                    self.host,
                )
                return
            # BindError goes to the caller, who owns the retry policy
            self.transport.open()
            self._last_rx = self._clock()
            self._state = ListenerState.RUNNING
            self._thr = threading.Thread(
                target=self._run, name=f"bondhome-bpup-{self.host}", daemon=True
            )
            self._thr.start()
        log.info("[BPUP] listener started for bridge %s (%s)", self.tracker.expected_bond_id, self.host)

    def shutdown(self) -> None:
        with self._state_lock:
            if self._state is not ListenerState.RUNNING:
                return
            self._state = ListenerState.STOPPING
            thr = self._thr

        self.transport.close()

        if thr is not None and thr is not threading.current_thread():
            thr.join(timeout=self.transport.timeout + 1.0)
            if thr.is_alive():
                log.warning("[BPUP] listener thread did not exit in time")
        log.info("[BPUP] listener stopped for bridge %s", self.tracker.expected_bond_id)

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------
    def _run(self) -> None:
        try:
            while self._state is ListenerState.RUNNING:
                if not self.run_cycle():
                    break
        finally:
            with self._state_lock:
                self._state = ListenerState.STOPPED
                self._thr = None
            log.debug("[BPUP] listener loop exiting")

    def run_cycle(self) -> bool:
        """Run one keep-alive/receive cycle; False once the transport is closed."""
        now = self._clock()
        if self.tracker.is_probe_due(now):
            self.transport.send_probe(self.host)
            # marked even when the send failed, so a dead route can't spin us
            self.tracker.mark_probed(now)

        result = self.transport.receive()
        status = result.status

        if status is ReceiveStatus.CLOSED:
            return False
        if status is ReceiveStatus.TIMEOUT:
            self._check_liveness(self._clock())
            return True
        if status is ReceiveStatus.ERROR:
            log.warning("[BPUP] socket error (%s), re-binding", result.error)
            self.transport.rebind()
            self._check_liveness(self._clock())
            return True

        self._handle_datagram(result)
        return True

    def _handle_datagram(self, result: ReceiveResult) -> None:
        src = result.addr[0] if result.addr else "?"
        if log.isEnabledFor(logging.DEBUG):
            log.debug("[BPUP] %dB from %s: %r", len(result.data), src, result.data)

        try:
            update = decode(result.data)
        except PacketDecodeError as err:
            log.warning("[BPUP] dropping malformed packet from %s: %s (%r)", src, err, err.raw)
            return

        if self._is_from_bridge(src, update):
            self._last_rx = self._clock()
            self._set_bridge_online(True)

        if update.is_keepalive_reply:
            self.tracker.check_origin(update)
            return

        if not self.tracker.admit(update):
            log.debug("[BPUP] dropping duplicate packet %s", update.request_id)
            return

        for cb in self._update_cbs:
            try:
                cb(update)
            except Exception:
                log.exception("update listener failed")

        try:
            self.router.dispatch(update)
        except Exception:
            log.exception("[BPUP] consumer for device %s failed", update.device_id)

    # ------------------------------------------------------------------
    # Bridge state
    # ------------------------------------------------------------------
    def _is_from_bridge(self, src: str, update: BPUPUpdate) -> bool:
        # other bridges on the segment push here too; only ours keeps us online
        if src == self.host:
            return True
        return bool(update.origin_id) and self.tracker.is_expected_origin(update.origin_id)

    def _check_liveness(self, now: float) -> None:
        if self._bridge_online is False or self._last_rx is None:
            return
        if now - self._last_rx >= self.offline_after:
            log.info(
                "[BPUP] nothing heard from bridge %s for %.0fs, marking offline",
                self.tracker.expected_bond_id,
                now - self._last_rx,
            )
            self._set_bridge_online(False)

    def _set_bridge_online(self, online: bool) -> None:
        if self._bridge_online is online:
            return
        self._bridge_online = online
        for cb in self._bridge_state_cbs:
            try:
                cb(online)
            except Exception:
                log.exception("bridge state listener failed")
