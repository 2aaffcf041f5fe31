"""Recorded trip playback."""

from triptrack.replay.engine import ReplayEngine, ReplayState, ReplayStatus

__all__ = ["ReplayEngine", "ReplayState", "ReplayStatus"]
