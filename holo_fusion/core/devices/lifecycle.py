"""
Sensor lifecycle: discovery, stream preparation, start and stop.

Runs as one background task, separate from frame delivery. Blocking driver
calls go through ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
from typing import List

from holo_fusion.core.devices.sensor_registry import SensorRegistry, SensorSlot
from holo_fusion.core.devices.types import FrameReadyCallback, SensorBackend
from holo_fusion.core.errors import NoSensorsFound, SensorStopFailure
from holo_fusion.core.logging_utils import get_module_logger
from holo_fusion.core.shared_state import FusionSharedState
from holo_fusion.fusion.capture_config import CaptureConfiguration
from holo_fusion.fusion.router import FrameEventRouter


class SensorLifecycle:

    def __init__(
        self,
        backend: SensorBackend,
        registry: SensorRegistry,
        config: CaptureConfiguration,
        router: FrameEventRouter,
        shared_state: FusionSharedState,
    ) -> None:
        self.logger = get_module_logger("SensorLifecycle")
        self._backend = backend
        self._registry = registry
        self._config = config
        self._router = router
        self._shared_state = shared_state
        self._started: List[SensorSlot] = []

    @property
    def started_slots(self) -> List[SensorSlot]:
        return list(self._started)

    async def start(self) -> int:
        """Discover, prepare and start sensors. Returns how many are running.

        Raises ``NoSensorsFound`` when discovery accepts nothing or no sensor
        could be started.
        """
        self.logger.info("Attempting to start sensors (%s)...", self._config.describe())
        handles = await asyncio.to_thread(self._backend.enumerate)
        self._registry.discover(handles)

        for slot in self._registry.slots:
            self._router.attach(slot.index)

        await asyncio.to_thread(self._prepare_and_start_all, self._router.on_frames_ready)

        if not self._started:
            raise NoSensorsFound("No sensor could be started")

        self._shared_state.mark_sensors_started()
        self.logger.info("%d sensor(s) running", len(self._started))
        return len(self._started)

    def _prepare_and_start_all(self, callback: FrameReadyCallback) -> None:
        for slot in self._registry.slots:
            try:
                self._prepare(slot, callback)
                self.logger.debug("Starting sensor %d...", slot.index)
                slot.handle.start()
            except Exception:
                self.logger.exception("Failed to start sensor %d (%s)", slot.index, slot.serial)
                continue
            self._started.append(slot)
            self.logger.info("Sensor %d (%s) started", slot.index, slot.serial)

    def _prepare(self, slot: SensorSlot, callback: FrameReadyCallback) -> None:
        handle = slot.handle
        handle.enable_depth_stream(self._config.depth_format)
        if self._config.color_enabled:
            handle.enable_color_stream(self._config.color_format)
        handle.enable_skeleton_stream()
        handle.add_frames_ready_handler(callback)

    async def stop(self) -> List[SensorStopFailure]:
        """Best-effort stop of every registered sensor."""
        return await asyncio.to_thread(self._registry.stop_all)


__all__ = ["SensorLifecycle"]
