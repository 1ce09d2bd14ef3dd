import logging

from custom_components.bond_home.lib.packet_codec import BPUPUpdate
from custom_components.bond_home.lib.tracker import UpdateTracker


def _update(request_id=None, origin="ZZBL12345") -> BPUPUpdate:
    return BPUPUpdate(
        origin_id=origin,
        request_id=request_id,
        topic="devices/aabbccdd/state",
        payload={"power": 1},
    )


def test_probe_due_on_first_cycle_then_every_interval() -> None:
    tracker = UpdateTracker("ZZBL12345")

    assert tracker.is_probe_due(1000.0)
    tracker.mark_probed(1000.0)

    assert not tracker.is_probe_due(1000.0)
    assert not tracker.is_probe_due(1059.9)
    assert tracker.is_probe_due(1060.0)


def test_probe_cadence_never_more_often_than_interval() -> None:
    tracker = UpdateTracker("ZZBL12345")
    probes = []

    now = 0.0
    while now < 200.0:
        if tracker.is_probe_due(now):
            probes.append(now)
            tracker.mark_probed(now)
        now += 3.0

    assert probes == [0.0, 60.0, 120.0, 180.0]


def test_back_to_back_duplicate_is_dropped_case_insensitive() -> None:
    tracker = UpdateTracker("ZZBL12345")

    assert tracker.admit(_update("abc123"))
    assert not tracker.admit(_update("ABC123"))
    assert tracker.last_request_id == "abc123"


def test_interleaved_ids_are_all_admitted() -> None:
    tracker = UpdateTracker("ZZBL12345")

    assert tracker.admit(_update("one"))
    assert tracker.admit(_update("two"))
    assert tracker.admit(_update("one"))


def test_missing_request_id_always_admits() -> None:
    tracker = UpdateTracker("ZZBL12345")

    assert tracker.admit(_update("one"))
    assert tracker.admit(_update(None))
    assert tracker.admit(_update(None))
    assert tracker.last_request_id is None
    # the stored id was replaced, so "one" is no longer a duplicate
    assert tracker.admit(_update("one"))


def test_origin_mismatch_is_logged_but_admitted(caplog) -> None:
    tracker = UpdateTracker("ZZBL12345")

    with caplog.at_level(logging.WARNING, logger="bondhome.tracker"):
        assert tracker.admit(_update("x1", origin="ZZOTHER"))

    assert "expected bridge" in caplog.text
    assert tracker.last_bond_id == "ZZOTHER"


def test_origin_match_is_case_insensitive(caplog) -> None:
    tracker = UpdateTracker("ZZBL12345")

    with caplog.at_level(logging.WARNING, logger="bondhome.tracker"):
        assert tracker.check_origin(_update(origin="zzbl12345"))

    assert caplog.text == ""


def test_blank_origin_keeps_last_known_id() -> None:
    tracker = UpdateTracker("ZZBL12345")
    tracker.admit(_update("a", origin="ZZBL12345"))

    assert tracker.admit(_update("b", origin=None))
    assert tracker.last_bond_id == "ZZBL12345"
