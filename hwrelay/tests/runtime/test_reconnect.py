from __future__ import annotations

import asyncio

from hwrelay.runtime.reconnect import Reconnector
from hwrelay.runtime.scheduler import LoopScheduler
from hwrelay.tests.fakes import ManualScheduler


def test_schedule_fires_once_after_delay():
    sched = ManualScheduler()
    calls = []
    r = Reconnector(sched, lambda: calls.append(sched.now()), delay_s=5.0)

    assert r.schedule() is True
    assert r.pending is True

    sched.advance(4.5)
    assert calls == []

    sched.advance(0.5)
    assert calls == [5.0]
    assert r.pending is False
    assert r.attempts == 1


def test_second_schedule_while_pending_is_noop():
    sched = ManualScheduler()
    calls = []
    r = Reconnector(sched, lambda: calls.append(1), delay_s=5.0)

    assert r.schedule() is True
    assert r.schedule() is False
    assert len(sched.pending) == 1

    sched.advance(60)
    assert calls == [1]


def test_constant_interval_forever():
    sched = ManualScheduler()
    fired = []
    r = Reconnector(sched, lambda: fired.append(sched.now()), delay_s=5.0)

    r.schedule()
    for _ in range(4):
        sched.advance(5.0)
        r.schedule()  # owner reschedules after each failed attempt

    assert fired == [5.0, 10.0, 15.0, 20.0]
    assert r.attempts == 4


def test_cancel_prevents_attempt():
    sched = ManualScheduler()
    calls = []
    r = Reconnector(sched, lambda: calls.append(1), delay_s=5.0)

    r.schedule()
    r.cancel()
    sched.advance(10)

    assert calls == []
    assert r.pending is False


def test_loop_scheduler_uses_running_loop():
    async def scenario():
        sched = LoopScheduler()
        fired = asyncio.Event()
        t0 = sched.now()
        sched.call_later(0.01, fired.set)
        await asyncio.wait_for(fired.wait(), timeout=1.0)
        return sched.now() - t0

    # asyncio may fire up to one clock resolution early
    assert asyncio.run(scenario()) >= 0.009


def test_loop_scheduler_handle_cancel():
    async def scenario():
        sched = LoopScheduler()
        calls = []
        h = sched.call_later(0.01, lambda: calls.append(1))
        h.cancel()
        await asyncio.sleep(0.03)
        return h.cancelled(), calls

    cancelled, calls = asyncio.run(scenario())
    assert cancelled is True
    assert calls == []
