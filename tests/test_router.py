import threading

from custom_components.bond_home.lib.packet_codec import BPUPUpdate
from custom_components.bond_home.lib.router import DeviceConsumerRegistry, UpdateRouter


class _Sink:
    def __init__(self) -> None:
        self.received: list[dict] = []

    def on_update(self, payload: dict) -> None:
        self.received.append(payload)


def test_dispatch_reaches_registered_consumer() -> None:
    registry = DeviceConsumerRegistry()
    dev42 = _Sink()
    other = _Sink()
    registry.register("dev42", dev42)
    registry.register("dev43", other)

    router = UpdateRouter(registry)
    routed = router.dispatch(
        BPUPUpdate(origin_id="B", topic="bridgebond/dev42/state", payload={"power": 1})
    )

    assert routed is True
    assert dev42.received == [{"power": 1}]
    assert other.received == []


def test_dispatch_unknown_device_is_dropped() -> None:
    registry = DeviceConsumerRegistry()
    sink = _Sink()
    registry.register("dev42", sink)

    routed = UpdateRouter(registry).dispatch(
        BPUPUpdate(origin_id="B", topic="bridgebond/dev99/state", payload={"power": 1})
    )

    assert routed is False
    assert sink.received == []


def test_dispatch_without_topic_is_dropped(caplog) -> None:
    registry = DeviceConsumerRegistry()
    registry.register("dev42", _Sink())

    routed = UpdateRouter(registry).dispatch(BPUPUpdate(origin_id="B", topic=None))

    assert routed is False
    assert "device id" in caplog.text


def test_registry_matches_ids_case_insensitively() -> None:
    registry = DeviceConsumerRegistry()
    sink = _Sink()
    registry.register("AABBCCDD", sink)

    assert registry.get("aabbccdd") is sink

    registry.unregister("aaBBccDD")
    assert registry.get("AABBCCDD") is None
    assert len(registry) == 0


def test_registry_survives_concurrent_attach_detach() -> None:
    registry = DeviceConsumerRegistry()
    router = UpdateRouter(registry)
    sink = _Sink()
    update = BPUPUpdate(origin_id="B", topic="devices/dev1/state", payload={"power": 0})
    stop = threading.Event()

    def churn() -> None:
        while not stop.is_set():
            registry.register("dev1", sink)
            registry.unregister("dev1")

    thr = threading.Thread(target=churn, daemon=True)
    thr.start()
    try:
        for _ in range(2000):
            router.dispatch(update)
    finally:
        stop.set()
        thr.join(timeout=2.0)

    assert all(payload == {"power": 0} for payload in sink.received)
