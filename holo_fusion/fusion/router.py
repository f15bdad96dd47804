"""
Frame-event router.

Driver callbacks may fire on any thread. Each event is marshalled onto the
event loop and posted into its sensor's single-slot channel; a newer event
replaces one that has not been picked up yet. One worker per sensor drains
its channel and runs the fusion pass in a worker thread, so passes for one
sensor never overlap while sensors run independently of each other.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Dict, Optional

from holo_fusion.core.devices.sensor_registry import SensorRegistry
from holo_fusion.core.devices.types import FrameReadyEvent
from holo_fusion.core.errors import UnknownSensor
from holo_fusion.core.logging_utils import get_module_logger
from holo_fusion.core.task_manager import AsyncTaskManager
from holo_fusion.fusion.metrics import FusionStats
from holo_fusion.fusion.pipeline import SensorFusionPipeline

PipelineFactory = Callable[[int], SensorFusionPipeline]


class FrameEventRouter:

    def __init__(
        self,
        registry: SensorRegistry,
        pipeline_factory: PipelineFactory,
        *,
        loop: Optional[asyncio.AbstractEventLoop] = None,
    ) -> None:
        self.logger = get_module_logger("FrameEventRouter")
        self._registry = registry
        self._pipeline_factory = pipeline_factory
        self._loop = loop
        self._tasks = AsyncTaskManager("FrameWorkers", logger=self.logger)
        self._channels: Dict[int, asyncio.Queue] = {}
        self._pass_locks: Dict[int, asyncio.Lock] = {}
        self._pipelines: Dict[int, SensorFusionPipeline] = {}
        self._closed = False
        self._idle = True
        self.unknown_events = 0

    # ------------------------------------------------------------------
    # Setup

    def attach(self, sensor_index: int) -> SensorFusionPipeline:
        """Create the channel and worker for ``sensor_index``. Must run on the loop."""
        if self._closed:
            raise RuntimeError("Router is stopped")
        if sensor_index in self._pipelines:
            return self._pipelines[sensor_index]

        self._loop = self._loop or asyncio.get_running_loop()
        pipeline = self._pipeline_factory(sensor_index)
        self._pipelines[sensor_index] = pipeline
        self._channels[sensor_index] = asyncio.Queue(maxsize=1)
        self._pass_locks[sensor_index] = asyncio.Lock()
        self._tasks.create(self._worker(sensor_index), name=f"fusion-worker-{sensor_index}")
        self.logger.debug("Attached worker for sensor %d", sensor_index)
        return pipeline

    @property
    def pipelines(self) -> Dict[int, SensorFusionPipeline]:
        return dict(self._pipelines)

    def stats(self) -> Dict[int, FusionStats]:
        return {index: pipeline.stats for index, pipeline in self._pipelines.items()}

    # ------------------------------------------------------------------
    # Event intake

    def on_frames_ready(self, handle: object, event: FrameReadyEvent) -> None:
        """Driver callback; safe to call from any thread."""
        if self._closed or self._loop is None:
            return
        try:
            index = self._registry.resolve(handle)
        except UnknownSensor as exc:
            self.unknown_events += 1
            self.logger.warning("Dropping event: %s", exc)
            return

        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._post, index, event)

    def _post(self, sensor_index: int, event: FrameReadyEvent) -> None:
        if self._closed:
            return
        channel = self._channels.get(sensor_index)
        if channel is None:
            self.logger.warning("No worker attached for sensor %d; event dropped", sensor_index)
            return
        if channel.full():
            channel.get_nowait()
            channel.task_done()
            self._pipelines[sensor_index].stats.superseded += 1
        channel.put_nowait(event)

    async def _worker(self, sensor_index: int) -> None:
        channel = self._channels[sensor_index]
        lock = self._pass_locks[sensor_index]
        pipeline = self._pipelines[sensor_index]
        while True:
            event = await channel.get()
            try:
                if self._closed:
                    continue
                async with lock:
                    await asyncio.to_thread(pipeline.process, event)
            except Exception:
                self.logger.exception("Unexpected error in fusion pass for sensor %d", sensor_index)
            finally:
                channel.task_done()

    # ------------------------------------------------------------------
    # Shutdown

    async def stop(self, *, timeout: float = 5.0) -> bool:
        """Stop intake, wait for in-flight passes to release their frames, stop workers."""
        if self._closed:
            return True
        self._closed = True

        for channel in self._channels.values():
            while not channel.empty():
                channel.get_nowait()
                channel.task_done()

        idle = True
        try:
            await asyncio.wait_for(self._wait_idle(), timeout=timeout)
        except asyncio.TimeoutError:
            idle = False
            self.logger.error(
                "Fusion passes still hold sub-frames after %.1fs; sensors must stay running",
                timeout,
            )

        await self._tasks.shutdown(timeout=timeout)
        for pipeline in self._pipelines.values():
            self.logger.info("%s", pipeline.stats.summary())
        self._idle = idle
        return idle

    @property
    def idle(self) -> bool:
        """False when ``stop`` gave up on an in-flight pass."""
        return self._idle

    async def _wait_idle(self) -> None:
        for lock in self._pass_locks.values():
            async with lock:
                pass


__all__ = ["FrameEventRouter", "PipelineFactory"]
