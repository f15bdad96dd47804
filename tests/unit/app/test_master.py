"""Tests for the application entry point."""

import pytest

from holo_fusion.app import master
from holo_fusion.app.master import FusionApplication, main, parse_args
from holo_fusion.backends.synthetic import SyntheticBackend, SyntheticSensor
from holo_fusion.config import load_settings
from holo_fusion.core.devices.types import SensorStatus
from holo_fusion.core.errors import ConfigurationError, NoSensorsFound
from holo_fusion.core.shutdown_coordinator import ShutdownCoordinator, reset_shutdown_coordinator


def _settings(**overrides):
    base = {
        "frame_width": 80,
        "frame_height": 60,
        "synthetic_sensors": 2,
        "synthetic_fps": 100,
        "duration": 0.5,
        "stats_interval": 0,
        "fatal_exit_delay": 0,
        "stop_timeout": 2,
        "log_file": "none",
    }
    base.update(overrides)
    return load_settings(overrides=base)


@pytest.fixture(autouse=True)
def fresh_coordinator():
    reset_shutdown_coordinator()
    yield
    reset_shutdown_coordinator()


@pytest.fixture
def quiet_logging(monkeypatch):
    monkeypatch.setattr(master, "configure_logging", lambda *args, **kwargs: None)


class TestParseArgs:

    def test_unset_options_are_none(self):
        args = parse_args([])

        assert args.frame_width is None
        assert args.console_output is None
        assert args.backend is None

    def test_options_map_to_config_keys(self):
        args = parse_args(["--width", "320", "--height", "240", "--sensors", "3", "--no-console"])

        assert (args.frame_width, args.frame_height) == (320, 240)
        assert args.synthetic_sensors == 3
        assert args.console_output is False


class TestFusionApplication:

    def test_unsupported_resolution_fails_build(self):
        app = FusionApplication(_settings(frame_width=1024, frame_height=768))

        with pytest.raises(ConfigurationError):
            app.build()

    def test_unknown_backend_fails_build(self):
        app = FusionApplication(_settings(backend="kinect"))

        with pytest.raises(ConfigurationError):
            app.build()

    @pytest.mark.asyncio
    async def test_runs_for_duration_and_stops_sensors(self):
        backend = SyntheticBackend.create(2, fps=100.0)
        app = FusionApplication(_settings(), backend=backend, coordinator=ShutdownCoordinator())

        assert await app.run() == 0

        assert app.shared_state.sensor_count == 2
        assert app.consumer.sensor_indices() == (0, 1)
        assert all(not sensor.running for sensor in backend.sensors)
        assert all(sensor.outstanding_frames == 0 for sensor in backend.sensors)
        assert app.coordinator.is_complete

    @pytest.mark.asyncio
    async def test_consumer_not_ready_delivers_nothing(self):
        backend = SyntheticBackend.create(1, fps=100.0)
        settings = _settings(duration=0.3, consumer_ready_on_start=False)
        app = FusionApplication(settings, backend=backend, coordinator=ShutdownCoordinator())

        assert await app.run() == 0

        assert app.consumer.delivered_count() == 0
        assert app.router.stats()[0].dropped_not_ready > 0

    @pytest.mark.asyncio
    async def test_no_sensors_propagates_after_cleanup(self):
        backend = SyntheticBackend([SyntheticSensor("off", status=SensorStatus.DISCONNECTED)])
        app = FusionApplication(_settings(), backend=backend, coordinator=ShutdownCoordinator())

        with pytest.raises(NoSensorsFound):
            await app.run()

        assert app.coordinator.is_complete

    @pytest.mark.asyncio
    async def test_sensors_left_running_while_pass_holds_frames(self):
        app = FusionApplication(_settings(), coordinator=ShutdownCoordinator())
        app.build()
        stop_calls = []

        async def record_stop():
            stop_calls.append(True)
            return []

        app.lifecycle.stop = record_stop
        app.router._idle = False

        await app._stop_sensors()

        assert stop_calls == []

        app.router._idle = True
        await app._stop_sensors()

        assert stop_calls == [True]


class TestMain:

    @pytest.mark.asyncio
    async def test_invalid_resolution_exits_non_zero(self, tmp_path, quiet_logging, capsys):
        config = tmp_path / "config.txt"
        config.write_text("fatal_exit_delay = 0\nlog_file = none\n")

        code = await main(["--config", str(config), "--width", "1024", "--height", "768"])

        assert code == 1
        assert "Invalid resolution 1024x768" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_zero_sensors_exits_non_zero(self, tmp_path, quiet_logging, capsys):
        config = tmp_path / "config.txt"
        config.write_text("fatal_exit_delay = 0\nlog_file = none\nsynthetic_sensors = 0\n")

        code = await main(["--config", str(config), "--width", "80", "--height", "60"])

        assert code == 1
        assert "Application will terminate" in capsys.readouterr().err

    @pytest.mark.asyncio
    async def test_short_run_exits_zero(self, tmp_path, quiet_logging):
        config = tmp_path / "config.txt"
        config.write_text(
            "fatal_exit_delay = 0\nlog_file = none\nstats_interval = 0\nduration = 0.2\n"
        )

        assert await main(["--config", str(config), "--width", "320", "--height", "240"]) == 0
