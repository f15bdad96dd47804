"""One fusion pass per frame-ready event, for a single sensor."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from holo_fusion.core.devices.types import FrameReadyEvent, SensorHandle
from holo_fusion.core.errors import ConsumerNotReady, MappingFailure, PartialFrameBundle
from holo_fusion.core.logging_utils import get_module_logger
from holo_fusion.core.shared_state import FusionSharedState
from holo_fusion.fusion.capture_config import CaptureConfiguration
from holo_fusion.fusion.handoff import HandoffGate
from holo_fusion.fusion.metrics import FusionStats
from holo_fusion.fusion.packing import FusionEngine
from holo_fusion.fusion.synchronizer import FrameBundleSynchronizer


class PassOutcome(Enum):
    DELIVERED = "delivered"
    DROPPED_PARTIAL = "dropped_partial"
    DROPPED_NOT_READY = "dropped_not_ready"
    MAPPING_FAILED = "mapping_failed"
    UNDELIVERED = "undelivered"


class SensorFusionPipeline:
    """
    Runs synchronizer, engine and handoff gate for one sensor.

    ``process`` is called by at most one worker at a time for a given sensor
    and never raises for per-frame failures.
    """

    def __init__(
        self,
        sensor_index: int,
        handle: SensorHandle,
        config: CaptureConfiguration,
        shared_state: FusionSharedState,
        gate: HandoffGate,
        *,
        engine: Optional[FusionEngine] = None,
    ) -> None:
        self.logger = get_module_logger(f"Pipeline.{sensor_index}")
        self.sensor_index = sensor_index
        self._handle = handle
        self._gate = gate
        self._engine = engine or FusionEngine(config)
        self.stats = FusionStats(sensor_index=sensor_index)
        self.synchronizer = FrameBundleSynchronizer(
            config,
            shared_state,
            sensor_index=sensor_index,
            stats=self.stats,
        )

    def process(self, event: FrameReadyEvent) -> PassOutcome:
        try:
            with self.synchronizer.acquire(event) as bundle:
                mapper = self._mapper_for_frame()
                buffer = self._engine.fuse(bundle, self.sensor_index, mapper)
                delivered = self._gate.try_deliver(buffer, self.sensor_index)
        except PartialFrameBundle as exc:
            self.logger.debug("Dropped frame: %s", exc)
            return PassOutcome.DROPPED_PARTIAL
        except ConsumerNotReady:
            return PassOutcome.DROPPED_NOT_READY
        except MappingFailure as exc:
            self.stats.mapping_failures += 1
            self.logger.warning("Mapping failed, frame dropped: %s", exc)
            return PassOutcome.MAPPING_FAILED

        if not delivered:
            self.stats.undelivered += 1
            return PassOutcome.UNDELIVERED

        self.stats.delivered += 1
        self.stats.fps.record()
        return PassOutcome.DELIVERED

    def _mapper_for_frame(self):
        try:
            return self._handle.coordinate_mapper()
        except MappingFailure:
            raise
        except Exception as exc:
            raise MappingFailure(f"Coordinate mapper unavailable: {exc}") from exc


__all__ = ["PassOutcome", "SensorFusionPipeline"]
