"""
Master process for holo-fusion.

Reads ``config.txt`` and the command line, sets up logging, then runs the
sensor lifecycle and frame router until a signal arrives or the configured
duration ends. Configuration errors and a sensor-less start are fatal: the
message goes to stderr and the process exits with status 1 after a short
delay.
"""

import argparse
import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional

from holo_fusion.backends import AVAILABLE_BACKENDS, create_backend
from holo_fusion.config import FusionSettings, load_settings
from holo_fusion.core.config_manager import get_config_manager
from holo_fusion.core.devices.lifecycle import SensorLifecycle
from holo_fusion.core.devices.sensor_registry import SensorRegistry
from holo_fusion.core.devices.types import SensorBackend
from holo_fusion.core.errors import ConfigurationError, NoSensorsFound
from holo_fusion.core.logging_config import configure_logging
from holo_fusion.core.logging_utils import get_module_logger
from holo_fusion.core.paths import CONFIG_PATH
from holo_fusion.core.shared_state import FusionSharedState
from holo_fusion.core.shutdown_coordinator import ShutdownCoordinator, get_shutdown_coordinator
from holo_fusion.core.task_manager import AsyncTaskManager
from holo_fusion.fusion.capture_config import CaptureConfiguration, resolve_capture_configuration
from holo_fusion.fusion.consumer import LatestBufferConsumer
from holo_fusion.fusion.handoff import HandoffGate
from holo_fusion.fusion.pipeline import SensorFusionPipeline
from holo_fusion.fusion.router import FrameEventRouter


logger = get_module_logger(__name__)


def parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments. Unset options fall back to config.txt."""
    parser = argparse.ArgumentParser(
        description="holo-fusion - fuse RGBD sensor frames into per-sensor point clouds"
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=CONFIG_PATH,
        help="Path to the key = value config file (default: config.txt)"
    )
    parser.add_argument("--width", dest="frame_width", type=int, help="Frame width (640, 320 or 80)")
    parser.add_argument("--height", dest="frame_height", type=int, help="Frame height (480, 240 or 60)")
    parser.add_argument(
        "--backend",
        choices=AVAILABLE_BACKENDS,
        help="Sensor backend (default: synthetic)"
    )
    parser.add_argument(
        "--sensors",
        dest="synthetic_sensors",
        type=int,
        help="Number of synthetic sensors to simulate"
    )
    parser.add_argument("--fps", dest="synthetic_fps", type=float, help="Synthetic frame rate")
    parser.add_argument(
        "--skeleton-drop-every",
        dest="skeleton_drop_every",
        type=int,
        help="Drop the skeleton sub-frame every N synthetic frames (0 disables)"
    )
    parser.add_argument(
        "--duration",
        type=float,
        help="Seconds to run before shutting down (0 runs until interrupted)"
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=['debug', 'info', 'warning', 'error', 'critical'],
        help="Logging level (default: info)"
    )
    parser.add_argument("--log-file", dest="log_file", help="Log file path ('none' disables)")
    parser.add_argument(
        "--console",
        dest="console_output",
        action="store_true",
        default=None,
        help="Also log to console"
    )
    parser.add_argument(
        "--no-console",
        dest="console_output",
        action="store_false",
        help="Log to file only"
    )

    return parser.parse_args(argv)


class FusionApplication:
    """Wires registry, lifecycle, router and consumer for one run."""

    def __init__(
        self,
        settings: FusionSettings,
        *,
        backend: Optional[SensorBackend] = None,
        consumer: Optional[LatestBufferConsumer] = None,
        shared_state: Optional[FusionSharedState] = None,
        coordinator: Optional[ShutdownCoordinator] = None,
    ) -> None:
        self.settings = settings
        self.shared_state = shared_state or FusionSharedState()
        self.consumer = consumer or LatestBufferConsumer(self.shared_state)
        self._backend = backend
        self._coordinator = coordinator
        self._tasks = AsyncTaskManager("FusionApplication", logger=logger)
        self._signal_task: Optional[asyncio.Task] = None
        self.config: Optional[CaptureConfiguration] = None
        self.registry: Optional[SensorRegistry] = None
        self.router: Optional[FrameEventRouter] = None
        self.lifecycle: Optional[SensorLifecycle] = None

    @property
    def coordinator(self) -> ShutdownCoordinator:
        if self._coordinator is None:
            self._coordinator = get_shutdown_coordinator()
        return self._coordinator

    def build(self) -> None:
        """Resolve the capture configuration and assemble components.

        Raises ``ConfigurationError`` for unsupported resolutions or backends.
        """
        capture = self.settings.capture
        self.config = resolve_capture_configuration(capture.width, capture.height)
        logger.info("Capture configuration: %s", self.config.describe())

        if self._backend is None:
            backend_settings = self.settings.backend
            self._backend = create_backend(
                backend_settings.name,
                sensors=backend_settings.sensors,
                fps=backend_settings.fps,
                skeleton_drop_every=backend_settings.skeleton_drop_every,
            )

        gate = HandoffGate(self.consumer, self.shared_state)
        self.registry = SensorRegistry(self.shared_state)
        config = self.config
        registry = self.registry

        def make_pipeline(index: int) -> SensorFusionPipeline:
            return SensorFusionPipeline(
                index,
                registry.slot(index).handle,
                config,
                self.shared_state,
                gate,
            )

        self.router = FrameEventRouter(self.registry, make_pipeline)
        self.lifecycle = SensorLifecycle(
            self._backend,
            self.registry,
            self.config,
            self.router,
            self.shared_state,
        )

    async def _stop_router(self) -> None:
        await self.router.stop(timeout=self.settings.runtime.stop_timeout)

    async def _stop_sensors(self) -> None:
        if not self.router.idle:
            logger.error("Skipping sensor stop: a fusion pass still holds driver frames")
            return
        failures = await self.lifecycle.stop()
        if failures:
            logger.warning("%d sensor(s) failed to stop cleanly", len(failures))

    async def _stop_tasks(self) -> None:
        await self._tasks.shutdown(timeout=self.settings.runtime.stop_timeout)

    async def _report_stats(self, interval: float) -> None:
        while True:
            await asyncio.sleep(interval)
            for stats in self.router.stats().values():
                logger.info("%s", stats.summary())

    def _install_signal_handlers(self) -> list:
        loop = asyncio.get_running_loop()
        installed = []

        def request_shutdown() -> None:
            # Not tracked by the task manager, which is itself cancelled during cleanup.
            if self._signal_task is None:
                self._signal_task = loop.create_task(
                    self.coordinator.initiate_shutdown("signal"), name="signal-shutdown"
                )

        for sig in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(sig, request_shutdown)
                installed.append(sig)
            except (NotImplementedError, RuntimeError, ValueError):
                logger.debug("Signal handler for %s not supported on this platform", sig)
        return installed

    async def run(self) -> int:
        """Run until the configured duration elapses or a signal arrives.

        ``ConfigurationError`` and ``NoSensorsFound`` propagate to the caller.
        """
        if self.router is None:
            self.build()

        coordinator = self.coordinator
        # Router first so in-flight passes release their sub-frames before sensors stop.
        coordinator.register_cleanup(self._stop_router, name="frame router")
        coordinator.register_cleanup(self._stop_sensors, name="sensors")
        coordinator.register_cleanup(self._stop_tasks, name="background tasks")

        startup = self._tasks.create(self.lifecycle.start(), name="sensor-startup")
        try:
            await startup
        except NoSensorsFound:
            await coordinator.initiate_shutdown("startup")
            raise

        if self.settings.runtime.consumer_ready_on_start:
            self.consumer.mark_ready()

        interval = self.settings.runtime.stats_interval
        if interval > 0:
            self._tasks.create(self._report_stats(interval), name="stats-report")

        signals = self._install_signal_handlers()
        loop = asyncio.get_running_loop()
        duration = self.settings.runtime.duration
        try:
            if duration > 0:
                try:
                    await asyncio.wait_for(coordinator.wait_for_shutdown(), timeout=duration)
                except asyncio.TimeoutError:
                    await coordinator.initiate_shutdown("duration")
            else:
                await coordinator.wait_for_shutdown()
        finally:
            for sig in signals:
                loop.remove_signal_handler(sig)

        logger.info("Delivered %d buffer(s) in total", self.consumer.delivered_count())
        return 0


async def _fatal(message: str, delay: float) -> int:
    logger.error("%s", message)
    print(f"{message}\nApplication will terminate.", file=sys.stderr)
    await asyncio.sleep(delay)
    return 1


async def main(argv: Optional[list[str]] = None) -> int:
    args = parse_args(argv)
    raw_config = await get_config_manager().read_config_async(args.config)
    overrides = {key: value for key, value in vars(args).items() if key != "config"}
    settings = load_settings(raw_config, overrides)

    configure_logging(
        settings.logging.level,
        console=settings.logging.console,
        log_file=settings.logging.file,
    )

    app = FusionApplication(settings)
    try:
        return await app.run()
    except (ConfigurationError, NoSensorsFound) as exc:
        return await _fatal(str(exc), settings.runtime.fatal_exit_delay)
