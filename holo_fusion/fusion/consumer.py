"""In-memory consumer that keeps the newest buffer for each sensor."""

from __future__ import annotations

import threading
from typing import Dict, Optional

from holo_fusion.core.logging_utils import get_module_logger
from holo_fusion.core.shared_state import FusionSharedState
from holo_fusion.fusion.models import VertexBuffer


class LatestBufferConsumer:
    """Demultiplexes delivered buffers by sensor index.

    Only the newest buffer per sensor is retained; older ones are released
    when replaced.
    """

    def __init__(self, shared_state: Optional[FusionSharedState] = None) -> None:
        self.logger = get_module_logger("LatestBufferConsumer")
        self._shared_state = shared_state
        self._latest: Dict[int, VertexBuffer] = {}
        self._counts: Dict[int, int] = {}
        self._condition = threading.Condition()

    def mark_ready(self) -> None:
        """Signal readiness through the shared state this consumer writes."""
        if self._shared_state is None:
            raise RuntimeError("No shared state attached to this consumer")
        self._shared_state.mark_consumer_ready()

    def deliver(self, buffer: VertexBuffer, sensor_index: int) -> None:
        with self._condition:
            self._latest[sensor_index] = buffer
            self._counts[sensor_index] = self._counts.get(sensor_index, 0) + 1
            self._condition.notify_all()

    def latest(self, sensor_index: int) -> Optional[VertexBuffer]:
        with self._condition:
            return self._latest.get(sensor_index)

    def delivered_count(self, sensor_index: Optional[int] = None) -> int:
        with self._condition:
            if sensor_index is None:
                return sum(self._counts.values())
            return self._counts.get(sensor_index, 0)

    def sensor_indices(self) -> tuple[int, ...]:
        with self._condition:
            return tuple(sorted(self._latest))

    def wait_for(self, sensor_index: int, count: int = 1, timeout: Optional[float] = None) -> bool:
        """Block until ``count`` buffers were delivered for ``sensor_index``."""
        with self._condition:
            return self._condition.wait_for(
                lambda: self._counts.get(sensor_index, 0) >= count,
                timeout=timeout,
            )


__all__ = ["LatestBufferConsumer"]
