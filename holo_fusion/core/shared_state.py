"""Process-wide flags shared between discovery, frame workers and the consumer.

Each field has exactly one writer:

- ``consumer_ready``: written by the consumer, read by the synchronizer and
  the handoff gate.
- ``sensor_count``: written once by the sensor registry after discovery.
- ``sensors_started``: written once by the sensor lifecycle after startup.
"""

from __future__ import annotations

import threading
from typing import Optional

from holo_fusion.core.logging_utils import get_module_logger


class FusionSharedState:

    def __init__(self, *, consumer_ready: bool = False) -> None:
        self.logger = get_module_logger("SharedState")
        self._consumer_ready = threading.Event()
        self._sensors_started = threading.Event()
        self._count_lock = threading.Lock()
        self._sensor_count: Optional[int] = None
        if consumer_ready:
            self._consumer_ready.set()

    # ------------------------------------------------------------------
    # Consumer readiness

    @property
    def consumer_ready(self) -> bool:
        return self._consumer_ready.is_set()

    def mark_consumer_ready(self) -> None:
        if not self._consumer_ready.is_set():
            self.logger.info("Consumer signaled readiness")
        self._consumer_ready.set()

    def mark_consumer_not_ready(self) -> None:
        self._consumer_ready.clear()

    # ------------------------------------------------------------------
    # Discovery results

    @property
    def sensor_count(self) -> int:
        return self._sensor_count or 0

    @property
    def sensor_count_published(self) -> bool:
        return self._sensor_count is not None

    def publish_sensor_count(self, count: int) -> None:
        with self._count_lock:
            if self._sensor_count is not None:
                raise RuntimeError(
                    f"Sensor count already published ({self._sensor_count})"
                )
            self._sensor_count = count
        self.logger.info("Published sensor count: %d", count)

    @property
    def sensors_started(self) -> bool:
        return self._sensors_started.is_set()

    def mark_sensors_started(self) -> None:
        self._sensors_started.set()

    def wait_sensors_started(self, timeout: Optional[float] = None) -> bool:
        return self._sensors_started.wait(timeout)


__all__ = ["FusionSharedState"]
