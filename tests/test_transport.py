import socket
import threading
import time

import pytest

from custom_components.bond_home.lib import transport
from custom_components.bond_home.lib.transport import (
    BindError,
    DatagramTransport,
    ReceiveStatus,
)


class FakeSocket:
    fail_bind = False

    def __init__(self, *_args, **_kwargs):
        self.closed = False
        self.bound = None
        self.options = {}
        self.sent = []
        self.inbox = []
        self.fail_send = False

    def setsockopt(self, level, opt, value):
        self.options[opt] = value

    def setblocking(self, flag):
        pass

    def bind(self, addr):
        if FakeSocket.fail_bind:
            raise OSError("address already in use")
        self.bound = addr

    def getsockname(self):
        return self.bound

    def sendto(self, data, addr):
        if self.fail_send:
            raise OSError("network unreachable")
        self.sent.append((data, addr))

    def send(self, data):
        self.sent.append((data, None))

    def recvfrom(self, size):
        item = self.inbox.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def close(self):
        self.closed = True


@pytest.fixture
def fake_sockets(monkeypatch):
    created = []

    def make(*args, **kwargs):
        s = FakeSocket()
        created.append(s)
        return s

    def select(rlist, wlist, xlist, timeout):
        return [s for s in rlist if getattr(s, "inbox", None)], [], []

    FakeSocket.fail_bind = False
    monkeypatch.setattr(transport.socket, "socket", make)
    monkeypatch.setattr(transport.socket, "socketpair", lambda: (FakeSocket(), FakeSocket()))
    monkeypatch.setattr(transport.select, "select", select)
    yield created
    FakeSocket.fail_bind = False


def test_open_binds_reusable_broadcast_socket(fake_sockets) -> None:
    t = DatagramTransport()
    t.open()

    sock = fake_sockets[0]
    assert sock.bound == ("0.0.0.0", 30007)
    assert sock.options[socket.SO_REUSEADDR] == 1
    assert sock.options[socket.SO_BROADCAST] == 1
    assert t.is_open


def test_open_failure_raises_bind_error(fake_sockets) -> None:
    FakeSocket.fail_bind = True
    t = DatagramTransport()

    with pytest.raises(BindError):
        t.open()

    assert fake_sockets[0].closed
    assert not t.is_open


def test_send_probe_targets_bridge_port(fake_sockets) -> None:
    t = DatagramTransport()
    t.open()

    assert t.send_probe("192.168.1.50") is True
    assert fake_sockets[0].sent == [(b"\n", ("192.168.1.50", 30007))]


def test_send_probe_failure_is_not_fatal(fake_sockets) -> None:
    t = DatagramTransport()
    t.open()
    fake_sockets[0].fail_send = True

    assert t.send_probe("192.168.1.50") is False


def test_receive_reports_timeout_data_and_error(fake_sockets) -> None:
    t = DatagramTransport()
    t.open()
    sock = fake_sockets[0]

    assert t.receive().status is ReceiveStatus.TIMEOUT

    sock.inbox.append((b'{"B":"ZZBL1"}', ("192.168.1.50", 30007)))
    result = t.receive()
    assert result.status is ReceiveStatus.DATA
    assert result.data == b'{"B":"ZZBL1"}'
    assert result.addr == ("192.168.1.50", 30007)

    sock.inbox.append(OSError("socket is not connected"))
    result = t.receive()
    assert result.status is ReceiveStatus.ERROR
    assert isinstance(result.error, OSError)


def test_close_is_idempotent_and_reports_closed(fake_sockets) -> None:
    t = DatagramTransport()
    t.open()

    t.close()
    t.close()

    assert fake_sockets[0].closed
    assert t.receive().status is ReceiveStatus.CLOSED
    assert t.send_probe("192.168.1.50") is False


def test_rebind_opens_new_socket_on_same_port(fake_sockets) -> None:
    t = DatagramTransport()
    t.open()
    first = fake_sockets[0]

    assert t.rebind() is True

    assert first.closed
    assert len(fake_sockets) == 2
    assert fake_sockets[1].bound == ("0.0.0.0", 30007)
    assert t.is_open


def test_failed_rebind_reports_error_until_next_attempt(fake_sockets) -> None:
    t = DatagramTransport(timeout=0.01)
    t.open()

    FakeSocket.fail_bind = True
    assert t.rebind() is False
    assert t.receive().status is ReceiveStatus.ERROR

    FakeSocket.fail_bind = False
    assert t.rebind() is True
    assert t.receive().status is ReceiveStatus.TIMEOUT


def test_rebind_after_close_does_nothing(fake_sockets) -> None:
    t = DatagramTransport()
    t.open()
    t.close()

    assert t.rebind() is False
    assert len(fake_sockets) == 1


def test_close_unblocks_pending_receive_on_loopback() -> None:
    t = DatagramTransport(0, timeout=3.0, bind_host="127.0.0.1")
    t.open()
    results = []

    thr = threading.Thread(target=lambda: results.append(t.receive()))
    started = time.monotonic()
    thr.start()
    time.sleep(0.1)
    t.close()
    thr.join(timeout=5.0)

    assert not thr.is_alive()
    assert time.monotonic() - started < 2.0
    assert results[0].status is ReceiveStatus.CLOSED


def test_receive_real_datagram_on_loopback() -> None:
    t = DatagramTransport(0, timeout=2.0, bind_host="127.0.0.1")
    t.open()
    try:
        sender = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sender.sendto(b'{"B":"ZZBL1"}', ("127.0.0.1", t.bound_port))
        finally:
            sender.close()

        result = t.receive()
    finally:
        t.close()

    assert result.status is ReceiveStatus.DATA
    assert result.data == b'{"B":"ZZBL1"}'
