from __future__ import annotations

import logging
import select
import socket
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .bpup_const import BPUP_PORT, MAX_DATAGRAM_SIZE, RECEIVE_TIMEOUT
from .packet_codec import encode_probe

log = logging.getLogger("bondhome.transport")


class BindError(OSError):
    """The BPUP port could not be bound."""


class ReceiveStatus(Enum):
    DATA = "data"
    TIMEOUT = "timeout"
    ERROR = "error"
    CLOSED = "closed"


@dataclass(frozen=True)
class ReceiveResult:
    status: ReceiveStatus
    data: bytes = b""
    addr: Optional[Tuple[str, int]] = None
    error: Optional[BaseException] = None


class DatagramTransport:
    """Own the UDP socket used to talk BPUP with one bridge.

    ``receive`` never raises: timeouts, socket errors and an explicit
    ``close`` from another thread are all reported through ``ReceiveResult``.
    """

    def __init__(
        self,
        port: int = BPUP_PORT,
        *,
        timeout: float = RECEIVE_TIMEOUT,
        bind_host: str = "0.0.0.0",
    ) -> None:
        self.port = int(port)
        self.timeout = float(timeout)
        self.bind_host = bind_host
        self.bound_port: Optional[int] = None

        self._lock = threading.Lock()
        self._sock: Optional[socket.socket] = None
        self._wake_r: Optional[socket.socket] = None
        self._wake_w: Optional[socket.socket] = None
        self._closed = True

    @property
    def is_open(self) -> bool:
        return not self._closed and self._sock is not None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def open(self) -> None:
        with self._lock:
            sock = self._bind()
            self._wake_r, self._wake_w = socket.socketpair()
            self._sock = sock
            self._closed = False

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            sock, self._sock = self._sock, None
            wake_r, wake_w = self._wake_r, self._wake_w
            self._wake_r = self._wake_w = None

        if wake_w is not None:
            try:
                wake_w.send(b"\0")
            except OSError:
                pass
        for s in (sock, wake_w, wake_r):
            if s is None:
                continue
            try:
                s.close()
            except OSError:
                pass
        log.info("[UDP] socket on *:%d closed", self.port)

    def rebind(self) -> bool:
        """Replace the current handle with a fresh one on the same port."""
        with self._lock:
            if self._closed:
                return False
            old, self._sock = self._sock, None
            if old is not None:
                try:
                    old.close()
                except OSError:
                    pass
            try:
                self._sock = self._bind()
            except BindError as err:
                log.error("[UDP] re-bind on *:%d failed: %s", self.port, err)
                return False
        log.info("[UDP] re-bound on *:%d", self.port)
        return True

    def _bind(self) -> socket.socket:
        s = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            s.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            s.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            s.bind((self.bind_host, self.port))
            s.setblocking(False)
        except OSError as err:
            s.close()
            raise BindError(f"could not bind UDP *:{self.port}: {err}") from err
        self.bound_port = s.getsockname()[1]
        log.info("[UDP] bound on *:%d (timeout=%.1fs)", self.bound_port, self.timeout)
        return s

    # ------------------------------------------------------------------
    # I/O
    # ------------------------------------------------------------------
    def send_probe(self, host: str) -> bool:
        sock = self._sock
        if sock is None:
            log.debug("[UDP] no socket, keep-alive to %s skipped", host)
            return False
        try:
            sock.sendto(encode_probe(), (host, self.port))
        except OSError as err:
            log.warning("[UDP] keep-alive to %s:%d failed: %s", host, self.port, err)
            return False
        log.debug("[UDP] keep-alive sent to %s:%d", host, self.port)
        return True

    def receive(self) -> ReceiveResult:
        if self._closed:
            return ReceiveResult(ReceiveStatus.CLOSED)

        sock = self._sock
        wake = self._wake_r
        if sock is None:
            # previous re-bind failed; wait out one cycle so we don't spin
            self._wait_for_wake(wake)
            if self._closed:
                return ReceiveResult(ReceiveStatus.CLOSED)
            return ReceiveResult(ReceiveStatus.ERROR, error=OSError("socket not bound"))

        watched = [sock] if wake is None else [sock, wake]
        try:
            readable, _, _ = select.select(watched, [], [], self.timeout)
        except (OSError, ValueError) as err:
            return self._failed(err)

        if self._closed:
            return ReceiveResult(ReceiveStatus.CLOSED)
        if sock not in readable:
            return ReceiveResult(ReceiveStatus.TIMEOUT)

        try:
            data, addr = sock.recvfrom(MAX_DATAGRAM_SIZE)
        except BlockingIOError:
            return ReceiveResult(ReceiveStatus.TIMEOUT)
        except OSError as err:
            return self._failed(err)
        return ReceiveResult(ReceiveStatus.DATA, data=data, addr=addr)

    def _failed(self, err: BaseException) -> ReceiveResult:
        if self._closed:
            return ReceiveResult(ReceiveStatus.CLOSED)
        log.warning("[UDP] receive on *:%d failed: %s", self.port, err)
        return ReceiveResult(ReceiveStatus.ERROR, error=err)

    def _wait_for_wake(self, wake: Optional[socket.socket]) -> None:
        if wake is None:
            return
        try:
            select.select([wake], [], [], self.timeout)
        except (OSError, ValueError):
            pass
