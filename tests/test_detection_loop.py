import asyncio

import pytest

from woundcapture.session.loop import DetectionLoop


def test_loop_ticks_at_interval_until_stopped():
    calls = []

    async def tick():
        calls.append(1)

    async def scenario():
        loop = DetectionLoop(tick, interval_s=0.01)
        loop.start()
        assert loop.running
        await asyncio.sleep(0.1)
        loop.stop()
        assert not loop.running
        started = loop.ticks_started
        await asyncio.sleep(0.05)
        return loop, started

    loop, started = asyncio.run(scenario())

    assert started >= 3
    assert loop.ticks_started == started
    assert len(calls) == started


def test_slow_ticks_overlap_instead_of_queueing():
    active = []
    peak = []

    async def tick():
        active.append(1)
        peak.append(len(active))
        await asyncio.sleep(0.05)
        active.pop()

    async def scenario():
        loop = DetectionLoop(tick, interval_s=0.01)
        loop.start()
        await asyncio.sleep(0.08)
        inflight = loop.inflight
        loop.stop()
        return inflight

    inflight = asyncio.run(scenario())

    assert max(peak) > 1
    assert inflight > 1


def test_failing_tick_does_not_stop_loop():
    calls = []

    async def tick():
        calls.append(1)
        raise RuntimeError("detector exploded")

    async def scenario():
        loop = DetectionLoop(tick, interval_s=0.01)
        loop.start()
        await asyncio.sleep(0.08)
        running = loop.running
        loop.stop()
        return running

    assert asyncio.run(scenario())
    assert len(calls) >= 2


def test_stop_is_idempotent():
    async def tick():
        return None

    async def scenario():
        loop = DetectionLoop(tick, interval_s=0.01)
        loop.stop()
        loop.start()
        loop.start()
        loop.stop()
        loop.stop()
        return loop.running

    assert asyncio.run(scenario()) is False


def test_interval_must_be_positive():
    async def tick():
        return None

    with pytest.raises(ValueError):
        DetectionLoop(tick, interval_s=0)
