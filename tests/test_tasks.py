"""Tests for the scheduled poll loop."""

import asyncio
import logging

import pytest

from portfolio_gateway.tasks import PollLoop


class TickRecorder:
    def __init__(self, gate: asyncio.Event = None, error: Exception = None):
        self.count = 0
        self.gate = gate
        self.error = error

    async def __call__(self):
        self.count += 1
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error


async def settle():
    """Give scheduled tasks a chance to run."""
    for _ in range(3):
        await asyncio.sleep(0)


@pytest.mark.asyncio
async def test_start_registers_single_job():
    loop = PollLoop(TickRecorder(), interval_seconds=60)
    assert not loop.running

    loop.start()
    loop.start()
    assert loop.running
    jobs = loop.scheduler.get_jobs()
    assert len(jobs) == 1
    assert jobs[0].interval == 60
    assert jobs[0].unit == "seconds"

    await loop.close()
    assert not loop.running
    assert loop.scheduler.get_jobs() == []


@pytest.mark.asyncio
async def test_stop_is_safe_when_not_running():
    loop = PollLoop(TickRecorder(), interval_seconds=60)
    loop.stop()
    await loop.close()
    assert not loop.running


@pytest.mark.asyncio
async def test_due_job_runs_tick():
    tick = TickRecorder()
    loop = PollLoop(tick, interval_seconds=60)
    loop.start()

    loop.scheduler.run_all()
    await settle()
    assert tick.count == 1

    await loop.close()


@pytest.mark.asyncio
async def test_overlapping_tick_is_skipped():
    gate = asyncio.Event()
    tick = TickRecorder(gate=gate)
    loop = PollLoop(tick, interval_seconds=60)
    loop.start()

    loop.scheduler.run_all()
    await settle()
    assert loop.tick_in_flight

    loop.scheduler.run_all()
    await settle()
    assert tick.count == 1

    gate.set()
    await settle()
    assert not loop.tick_in_flight

    loop.scheduler.run_all()
    await settle()
    assert tick.count == 2

    await loop.close()


@pytest.mark.asyncio
async def test_failed_tick_is_logged_and_loop_survives(caplog):
    tick = TickRecorder(error=RuntimeError("quote service down"))
    loop = PollLoop(tick, interval_seconds=60)
    loop.start()

    with caplog.at_level(logging.ERROR):
        loop.scheduler.run_all()
        await settle()

    assert any("quote service down" in r.getMessage() for r in caplog.records)
    assert loop.running

    loop.scheduler.run_all()
    await settle()
    assert tick.count == 2

    await loop.close()


@pytest.mark.asyncio
async def test_close_cancels_tick_in_flight():
    gate = asyncio.Event()
    loop = PollLoop(TickRecorder(gate=gate), interval_seconds=60)
    loop.start()
    loop.scheduler.run_all()
    await settle()
    assert loop.tick_in_flight

    await loop.close()
    assert not loop.tick_in_flight
    assert not loop.running


@pytest.mark.asyncio
async def test_driver_fires_on_interval():
    tick = TickRecorder()
    loop = PollLoop(tick, interval_seconds=0.05, resolution_seconds=0.01)
    loop.start()

    await asyncio.sleep(0.5)
    await loop.close()

    assert tick.count >= 2
