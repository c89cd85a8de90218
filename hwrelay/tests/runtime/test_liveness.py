from __future__ import annotations

from hwrelay.model.events import LivenessEvent
from hwrelay.model.transport import TransportMode
from hwrelay.runtime.liveness import LivenessTracker
from hwrelay.runtime.state import LinkState


def make_tracker(mode: TransportMode = TransportMode.REMOTE) -> LivenessTracker:
    return LivenessTracker(mode, "ws://device:81")


def test_starts_disconnected_and_not_ready():
    t = make_tracker()
    assert t.state is LinkState.DISCONNECTED
    assert t.is_ready() is False


def test_connecting_is_silent_and_not_ready():
    t = make_tracker()
    t.mark_connecting()
    assert t.state is LinkState.CONNECTING
    assert t.is_ready() is False


def test_connected_emits_ready_once():
    t = make_tracker()
    t.mark_connecting()

    assert t.mark_connected() is LivenessEvent.HARDWARE_READY
    assert t.mark_connected() is None
    assert t.is_ready() is True


def test_lost_only_from_connected():
    t = make_tracker()
    t.mark_connecting()
    assert t.mark_disconnected("refused") is None      # failed attempt

    t.mark_connecting()
    t.mark_connected()
    assert t.mark_disconnected("closed") is LivenessEvent.HARDWARE_LOST
    assert t.mark_disconnected("closed again") is None
    assert t.state is LinkState.DISCONNECTED


def test_serial_cycle_without_connecting():
    t = make_tracker(TransportMode.SERIAL)
    assert t.mark_connected() is LivenessEvent.HARDWARE_READY
    assert t.mark_disconnected() is LivenessEvent.HARDWARE_LOST


def test_is_ready_is_idempotent():
    t = make_tracker()
    assert [t.is_ready() for _ in range(3)] == [False, False, False]
    t.mark_connected()
    assert [t.is_ready() for _ in range(3)] == [True, True, True]


def test_snapshot_counts_and_last_error():
    t = make_tracker()
    t.mark_connecting()
    t.mark_disconnected("refused")
    t.mark_connecting()
    t.mark_connected()
    t.mark_disconnected("reset")

    snap = t.snapshot()
    assert snap.mode is TransportMode.REMOTE
    assert snap.state is LinkState.DISCONNECTED
    assert snap.target == "ws://device:81"
    assert snap.connects == 1
    assert snap.disconnects == 1
    assert snap.last_error == "reset"


def test_snapshot_has_no_side_effects():
    t = make_tracker()
    t.mark_connected()
    a = t.snapshot()
    b = t.snapshot()
    assert a == b
    assert t.is_ready() is True
