"""Scheduling primitives shared by the simulator and the replay engine."""

from triptrack.runtime.scheduler import (
    ManualScheduler,
    ScheduleHandle,
    Scheduler,
    ThreadScheduler,
    wall_clock_ms,
)

__all__ = ["ManualScheduler", "ScheduleHandle", "Scheduler", "ThreadScheduler", "wall_clock_ms"]
