"""Schedulers: virtual-clock ordering and thread-backed pacing."""

from __future__ import annotations

import threading
import time

import pytest

from triptrack.runtime.scheduler import ManualScheduler, ThreadScheduler, wall_clock_ms


class TestManualScheduler:
    def test_fires_on_interval(self):
        sched = ManualScheduler()
        calls = []
        sched.schedule_repeating(100.0, lambda: calls.append(sched.now_ms()))
        assert sched.advance(350.0) == 3
        assert calls == [100.0, 200.0, 300.0]
        assert sched.now_ms() == 350.0

    def test_nothing_fires_before_due(self):
        sched = ManualScheduler(start_ms=1_000.0)
        calls = []
        sched.schedule_repeating(500.0, lambda: calls.append(1))
        sched.advance(499.0)
        assert calls == []

    def test_jobs_interleave_by_due_time(self):
        sched = ManualScheduler()
        order = []
        sched.schedule_repeating(300.0, lambda: order.append("slow"))
        sched.schedule_repeating(200.0, lambda: order.append("fast"))
        sched.advance(600.0)
        # Ties at 600 fire in creation order.
        assert order == ["fast", "slow", "fast", "slow", "fast"]

    def test_cancel(self):
        sched = ManualScheduler()
        calls = []
        handle = sched.schedule_repeating(100.0, lambda: calls.append(1))
        sched.advance(100.0)
        handle.cancel()
        assert sched.pending == 0
        sched.advance(1_000.0)
        assert calls == [1]

    def test_cancel_from_inside_callback(self):
        sched = ManualScheduler()
        calls = []

        def once():
            calls.append(1)
            handle.cancel()

        handle = sched.schedule_repeating(100.0, once)
        sched.advance(1_000.0)
        assert calls == [1]

    def test_job_scheduled_during_advance_starts_from_current_time(self):
        sched = ManualScheduler()
        fired = []

        def spawn():
            fired.append(("spawn", sched.now_ms()))
            handle.cancel()
            sched.schedule_repeating(50.0, lambda: fired.append(("child", sched.now_ms())))

        handle = sched.schedule_repeating(100.0, spawn)
        sched.advance(200.0)
        assert fired == [("spawn", 100.0), ("child", 150.0), ("child", 200.0)]

    @pytest.mark.parametrize("interval", [0.0, -5.0])
    def test_invalid_interval(self, interval):
        with pytest.raises(ValueError):
            ManualScheduler().schedule_repeating(interval, lambda: None)


class TestThreadScheduler:
    def test_fires_repeatedly_until_cancelled(self):
        ticks = threading.Event()
        count = [0]

        def callback():
            count[0] += 1
            if count[0] >= 3:
                ticks.set()

        handle = ThreadScheduler(name="test").schedule_repeating(10.0, callback)
        try:
            assert ticks.wait(timeout=2.0)
        finally:
            handle.cancel()
        handle.join()
        settled = count[0]
        time.sleep(0.05)
        assert count[0] == settled
        assert handle.cancelled

    def test_cancel_from_callback_does_not_deadlock(self):
        done = threading.Event()
        holder = {}

        def callback():
            holder["handle"].cancel()
            holder["handle"].join()
            done.set()

        holder["handle"] = ThreadScheduler().schedule_repeating(10.0, callback)
        assert done.wait(timeout=2.0)
        holder["handle"].join()
        assert holder["handle"].cancelled

    def test_invalid_interval(self):
        with pytest.raises(ValueError):
            ThreadScheduler().schedule_repeating(0.0, lambda: None)


def test_wall_clock_is_epoch_ms():
    before = time.time() * 1000.0
    now = wall_clock_ms()
    assert before <= now <= time.time() * 1000.0


def test_thread_job_survives_failing_callback(caplog):
    calls = []
    done = threading.Event()

    def callback():
        calls.append(time.monotonic())
        if len(calls) == 1:
            raise RuntimeError("first tick failed")
        if len(calls) >= 3:
            done.set()

    with caplog.at_level("ERROR", logger="triptrack.runtime.scheduler"):
        job = ThreadScheduler(name="flaky").schedule_repeating(10.0, callback)
        try:
            assert done.wait(timeout=2.0)
        finally:
            job.cancel()
            job.join()
    assert len(calls) >= 3
    assert any("Scheduled callback on flaky-1 failed" in r.message for r in caplog.records)
