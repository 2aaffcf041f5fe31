"""TrackerSettings: defaults and environment overrides."""

from __future__ import annotations

import pytest

from triptrack.config import TrackerSettings
from triptrack.tracking.governor import DISPLAY, RECORDING, SYNC


def test_defaults_without_environment():
    settings = TrackerSettings.from_env({})
    assert settings == TrackerSettings()
    assert settings.intervals() == {DISPLAY: 2000.0, RECORDING: 2000.0, SYNC: 2000.0}
    assert settings.history_capacity == 100
    assert settings.skip_step == 10


def test_overrides_from_environment():
    settings = TrackerSettings.from_env(
        {
            "TRIPTRACK_RECORDING_INTERVAL_MS": "5000",
            "TRIPTRACK_HISTORY_CAPACITY": "20",
            "TRIPTRACK_FRAME_HZ": "30",
            "UNRELATED": "x",
        }
    )
    assert settings.recording_interval_ms == 5000.0
    assert settings.display_interval_ms == 2000.0
    assert settings.history_capacity == 20
    assert settings.frame_hz == 30.0


def test_blank_value_means_default():
    assert TrackerSettings.from_env({"TRIPTRACK_SKIP_STEP": "  "}).skip_step == 10


def test_invalid_value_names_variable():
    with pytest.raises(ValueError, match="TRIPTRACK_SYNC_INTERVAL_MS"):
        TrackerSettings.from_env({"TRIPTRACK_SYNC_INTERVAL_MS": "soon"})


def test_reads_process_environment(monkeypatch):
    monkeypatch.setenv("TRIPTRACK_EMIT_INTERVAL_MS", "250")
    assert TrackerSettings.from_env().emit_interval_ms == 250.0


def test_builds_configured_components():
    settings = TrackerSettings(display_interval_ms=500.0, history_capacity=7)
    governor = settings.build_governor(clock=lambda: 0.0)
    assert governor.interval(DISPLAY) == 500.0
    assert governor.interval(SYNC) == 2000.0
    assert settings.build_aggregator().capacity == 7
