"""Tests for typed settings built from config values and CLI overrides."""

from pathlib import Path

from holo_fusion.config import load_settings
from holo_fusion.core.paths import MASTER_LOG_FILE


class TestLoadSettings:

    def test_defaults(self):
        settings = load_settings()

        assert (settings.capture.width, settings.capture.height) == (640, 480)
        assert settings.backend.name == "synthetic"
        assert settings.backend.sensors == 1
        assert settings.runtime.duration == 0.0
        assert settings.runtime.consumer_ready_on_start is True
        assert settings.runtime.fatal_exit_delay == 2.0
        assert settings.logging.level == "info"
        assert settings.logging.file == MASTER_LOG_FILE
        assert settings.logging.console is True

    def test_config_values(self):
        settings = load_settings({
            "frame_width": "80",
            "frame_height": "60",
            "synthetic_sensors": "4",
            "consumer_ready_on_start": "false",
            "log_file": "none",
        })

        assert (settings.capture.width, settings.capture.height) == (80, 60)
        assert settings.backend.sensors == 4
        assert settings.runtime.consumer_ready_on_start is False
        assert settings.logging.file is None

    def test_overrides_win_and_none_is_ignored(self):
        settings = load_settings(
            {"frame_width": "80", "frame_height": "60", "console_output": "true"},
            {"frame_width": 320, "frame_height": None, "console_output": False, "log_file": "run.log"},
        )

        assert settings.capture.width == 320
        assert settings.capture.height == 60
        assert settings.logging.console is False
        assert settings.logging.file == Path("run.log")

    def test_negative_values_clamped(self):
        settings = load_settings({"duration": "-3", "synthetic_sensors": "-1", "fatal_exit_delay": "-1"})

        assert settings.runtime.duration == 0.0
        assert settings.backend.sensors == 0
        assert settings.runtime.fatal_exit_delay == 0.0
