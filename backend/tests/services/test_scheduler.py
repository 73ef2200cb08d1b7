"""Scheduler — cadence, cooperative stop, tick error isolation.

Invariants:
    - Interval validated at construction
    - First tick after one interval, never at t=0
    - Overrunning tick → next tick immediately, then cadence restarts
    - Stop never interrupts a tick in progress
    - Tick exceptions logged, loop continues
    - reset() re-arms a stopped scheduler, never a running one

Design Decisions:
    - Tiny real intervals (tens of ms): the loop uses loop.time(), no clock to fake
"""

import asyncio
import logging
import math

import pytest

from reconciler.core.errors import ConfigurationError
from reconciler.services.scheduler import Scheduler


@pytest.mark.parametrize("interval", [0, -1, math.inf, math.nan, "60", True, None])
def test_rejects_invalid_interval(interval):
    with pytest.raises(ConfigurationError) as exc_info:
        Scheduler(interval)
    assert exc_info.value.code == "CONFIGURATION_ERROR"


def test_accepts_integer_interval():
    scheduler = Scheduler(5)
    assert scheduler.interval == 5.0
    assert not scheduler.running


async def test_first_tick_after_one_interval():
    loop = asyncio.get_running_loop()
    scheduler = Scheduler(0.1)
    started = loop.time()
    fired_at: list[float] = []

    async def tick(stop):
        fired_at.append(loop.time())
        scheduler.request_stop()

    await asyncio.wait_for(scheduler.run(tick), timeout=2)

    assert fired_at[0] - started >= 0.09
    assert scheduler.ticks_completed == 1
    assert not scheduler.running


async def test_stop_during_wait_exits_without_tick():
    scheduler = Scheduler(10)
    calls = 0

    async def tick(stop):
        nonlocal calls
        calls += 1

    task = asyncio.create_task(scheduler.run(tick))
    await asyncio.sleep(0.05)
    assert scheduler.running
    scheduler.request_stop()
    await asyncio.wait_for(task, timeout=1)

    assert calls == 0
    assert scheduler.stop_requested


async def test_stop_during_tick_lets_it_finish():
    scheduler = Scheduler(0.02)
    in_tick = asyncio.Event()
    finished: list[bool] = []

    async def tick(stop):
        in_tick.set()
        await asyncio.sleep(0.1)
        # Stop is visible to the tick but does not interrupt it
        finished.append(stop.is_set())

    task = asyncio.create_task(scheduler.run(tick))
    await asyncio.wait_for(in_tick.wait(), timeout=1)
    scheduler.request_stop()
    await asyncio.wait_for(task, timeout=1)

    assert finished == [True]
    assert scheduler.ticks_completed == 1


async def test_overrun_runs_next_tick_immediately_then_resumes_cadence():
    loop = asyncio.get_running_loop()
    scheduler = Scheduler(0.2)
    fired_at: list[float] = []

    async def tick(stop):
        fired_at.append(loop.time())
        if len(fired_at) == 1:
            await asyncio.sleep(0.5)
        if len(fired_at) == 3:
            scheduler.request_stop()

    await asyncio.wait_for(scheduler.run(tick), timeout=5)

    first_end = fired_at[0] + 0.5
    assert fired_at[1] - first_end < 0.1
    assert fired_at[2] - fired_at[1] >= 0.15


async def test_ticks_never_overlap():
    scheduler = Scheduler(0.01)
    active = 0
    peak = 0

    async def tick(stop):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.03)
        active -= 1
        if scheduler.ticks_completed >= 3:
            scheduler.request_stop()

    await asyncio.wait_for(scheduler.run(tick), timeout=2)

    assert peak == 1


async def test_tick_exception_logged_and_loop_continues(caplog):
    scheduler = Scheduler(0.01, name="test sweep")
    calls = 0

    async def tick(stop):
        nonlocal calls
        calls += 1
        if calls == 1:
            raise RuntimeError("tick exploded")
        scheduler.request_stop()

    with caplog.at_level(logging.ERROR, logger="reconciler.services.scheduler"):
        await asyncio.wait_for(scheduler.run(tick), timeout=2)

    assert calls == 2
    (record,) = [r for r in caplog.records if r.levelno == logging.ERROR]
    assert record.getMessage() == "test sweep tick failed"
    assert record.exc_info is not None


async def test_independent_schedulers_do_not_share_stop():
    a = Scheduler(0.01)
    b = Scheduler(0.01)
    a.request_stop()
    assert a.stop_requested
    assert not b.stop_requested


async def test_reset_allows_running_again():
    scheduler = Scheduler(0.01)
    calls = 0

    async def tick(stop):
        nonlocal calls
        calls += 1
        scheduler.request_stop()

    await asyncio.wait_for(scheduler.run(tick), timeout=1)
    scheduler.reset()
    assert not scheduler.stop_requested
    await asyncio.wait_for(scheduler.run(tick), timeout=1)

    assert calls == 2


async def test_reset_while_running_rejected():
    scheduler = Scheduler(10)

    async def tick(stop):
        pass

    task = asyncio.create_task(scheduler.run(tick))
    await asyncio.sleep(0.02)
    with pytest.raises(RuntimeError):
        scheduler.reset()
    scheduler.request_stop()
    await asyncio.wait_for(task, timeout=1)
