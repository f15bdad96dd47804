"""Per-sensor fusion counters."""

from __future__ import annotations

import time
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict


class FusionFPSTracker:
    """Tracks delivered buffers per second over a sliding window."""

    def __init__(self, window_size: int = 30) -> None:
        self._timestamps: Deque[float] = deque(maxlen=window_size)

    def record(self, timestamp: float | None = None) -> float:
        self._timestamps.append(timestamp if timestamp is not None else time.monotonic())
        return self.fps

    @property
    def fps(self) -> float:
        if len(self._timestamps) < 2:
            return 0.0
        delta = self._timestamps[-1] - self._timestamps[0]
        if delta <= 0:
            return 0.0
        return (len(self._timestamps) - 1) / delta

    def reset(self) -> None:
        self._timestamps.clear()


@dataclass(slots=True)
class FusionStats:
    """Outcome counters for one sensor. Written only by that sensor's worker."""
    sensor_index: int
    arrived: int = 0
    delivered: int = 0
    dropped_partial: int = 0
    dropped_not_ready: int = 0
    mapping_failures: int = 0
    undelivered: int = 0
    superseded: int = 0
    fps: FusionFPSTracker = field(default_factory=FusionFPSTracker, repr=False)

    @property
    def dropped(self) -> int:
        return (
            self.dropped_partial
            + self.dropped_not_ready
            + self.mapping_failures
            + self.undelivered
            + self.superseded
        )

    def snapshot(self) -> Dict[str, float]:
        return {
            "sensor_index": self.sensor_index,
            "arrived": self.arrived,
            "delivered": self.delivered,
            "dropped_partial": self.dropped_partial,
            "dropped_not_ready": self.dropped_not_ready,
            "mapping_failures": self.mapping_failures,
            "undelivered": self.undelivered,
            "superseded": self.superseded,
            "fps": round(self.fps.fps, 2),
        }

    def summary(self) -> str:
        return (
            f"sensor {self.sensor_index}: delivered={self.delivered}/{self.arrived} "
            f"partial={self.dropped_partial} not_ready={self.dropped_not_ready} "
            f"mapping={self.mapping_failures} undelivered={self.undelivered} "
            f"superseded={self.superseded} fps={self.fps.fps:.1f}"
        )


__all__ = ["FusionFPSTracker", "FusionStats"]
