"""Tests for fixed-cadence cycle scheduling."""

from __future__ import annotations

import threading
import time

import pytest
from apscheduler.triggers.interval import IntervalTrigger

from speedwatch.errors import FatalCycleError
from speedwatch.scheduler import JOB_ID, SchedulerService


class FakeScheduler:
    """Runs the registered job ``ticks`` times synchronously on start()."""

    def __init__(self, ticks=3):
        self.ticks = ticks
        self.jobs = []
        self.running = False

    def add_job(self, func, **kwargs):
        self.jobs.append((func, kwargs))

    def start(self):
        self.running = True
        func, _ = self.jobs[0]
        for _ in range(self.ticks):
            if not self.running:
                break
            func()

    def shutdown(self, wait=True):
        self.running = False


def test_job_fires_immediately_without_overlap():
    fake = FakeScheduler(ticks=0)
    SchedulerService(30, lambda: None, scheduler=fake).run_forever()

    (_, kwargs), = fake.jobs
    assert kwargs["id"] == JOB_ID
    assert kwargs["next_run_time"] is not None
    assert kwargs["max_instances"] == 1
    assert kwargs["coalesce"] is True
    assert isinstance(kwargs["trigger"], IntervalTrigger)
    assert kwargs["trigger"].interval.total_seconds() == 30


def test_runs_cycle_every_tick():
    calls = []
    SchedulerService(1, lambda: calls.append(1), scheduler=FakeScheduler(ticks=4)).run_forever()
    assert len(calls) == 4


def test_fatal_cycle_stops_scheduler_and_propagates():
    calls = []

    def cycle():
        calls.append(1)
        if len(calls) == 2:
            raise FatalCycleError(RuntimeError("probe failed"))

    fake = FakeScheduler(ticks=5)
    service = SchedulerService(1, cycle, scheduler=fake)

    with pytest.raises(FatalCycleError, match="probe failed"):
        service.run_forever()

    assert len(calls) == 2
    assert not fake.running
    assert not service.started


def test_duplicate_start_is_ignored():
    fake = FakeScheduler(ticks=0)
    service = SchedulerService(1, lambda: None, scheduler=fake)
    service.started = True
    service.run_forever()
    assert fake.jobs == []


@pytest.fixture
def watchdog():
    """Stops a real scheduler that outlives the test's expectations."""

    timers = []

    def arm(service, seconds=10):
        timer = threading.Timer(seconds, service.stop)
        timer.daemon = True
        timer.start()
        timers.append(timer)

    yield arm
    for timer in timers:
        timer.cancel()


def test_blocking_scheduler_stops_on_fatal_cycle(watchdog):
    calls = []

    def cycle():
        calls.append(threading.current_thread().name)
        raise FatalCycleError(RuntimeError("probe failed"))

    service = SchedulerService(0.2, cycle)
    watchdog(service)

    with pytest.raises(FatalCycleError, match="probe failed"):
        service.run_forever()

    assert len(calls) == 1
    assert calls[0] != threading.main_thread().name
    assert not service.started
    assert not service.scheduler.running


def test_blocking_scheduler_never_overlaps_slow_cycles(watchdog):
    lock = threading.Lock()
    state = {"active": 0, "max_active": 0, "calls": 0}

    def cycle():
        with lock:
            state["active"] += 1
            state["calls"] += 1
            state["max_active"] = max(state["max_active"], state["active"])
            calls = state["calls"]
        time.sleep(0.15)
        with lock:
            state["active"] -= 1
        if calls == 4:
            raise FatalCycleError(RuntimeError("done"))

    service = SchedulerService(0.05, cycle)
    watchdog(service)

    with pytest.raises(FatalCycleError):
        service.run_forever()

    assert state["calls"] == 4
    assert state["max_active"] == 1
