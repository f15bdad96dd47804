"""
Frame Bundle Synchronizer.

Each frame-ready event walks ``ARRIVED -> CHECKED -> PROCEED | DROP``. All
sub-frames are opened inside one ``ExitStack`` so they are closed on every
path: after the fusion pass when the bundle proceeds, or before the drop
exception leaves ``acquire`` when it does not. A dropped instant is never
retried; the next event supersedes it.
"""

from __future__ import annotations

from contextlib import ExitStack, contextmanager
from enum import Enum
from typing import Callable, Iterator, List, Optional

from holo_fusion.core.devices.types import FrameReadyEvent, SubFrame
from holo_fusion.core.errors import ConsumerNotReady, PartialFrameBundle
from holo_fusion.core.logging_utils import get_module_logger
from holo_fusion.core.shared_state import FusionSharedState
from holo_fusion.fusion.capture_config import CaptureConfiguration
from holo_fusion.fusion.metrics import FusionStats
from holo_fusion.fusion.models import FrameBundle


class SyncState(Enum):
    IDLE = "idle"
    ARRIVED = "arrived"
    CHECKED = "checked"
    PROCEED = "proceed"
    DROP = "drop"


class FrameBundleSynchronizer:

    def __init__(
        self,
        config: CaptureConfiguration,
        shared_state: FusionSharedState,
        *,
        sensor_index: int = 0,
        stats: Optional[FusionStats] = None,
    ) -> None:
        self.logger = get_module_logger(f"Synchronizer.{sensor_index}")
        self._config = config
        self._shared_state = shared_state
        self._sensor_index = sensor_index
        self.stats = stats or FusionStats(sensor_index=sensor_index)
        self.state = SyncState.IDLE

    @contextmanager
    def acquire(self, event: FrameReadyEvent) -> Iterator[FrameBundle]:
        """Yield a complete bundle, or raise ``FrameDropped`` with nothing left open."""
        self.state = SyncState.ARRIVED
        self.stats.arrived += 1

        with ExitStack() as stack:
            depth = self._open(stack, "depth", event.open_depth_frame)
            color = None
            if self._config.color_enabled:
                color = self._open(stack, "color", event.open_color_frame)
            skeleton = self._open(stack, "skeleton", event.open_skeleton_frame)
            self.state = SyncState.CHECKED

            missing: List[str] = []
            if depth is None:
                missing.append("depth")
            if self._config.color_enabled and color is None:
                missing.append("color")
            if skeleton is None:
                missing.append("skeleton")

            if missing:
                self.state = SyncState.DROP
                self.stats.dropped_partial += 1
                raise PartialFrameBundle(missing, self._sensor_index)

            if not self._shared_state.consumer_ready:
                self.state = SyncState.DROP
                self.stats.dropped_not_ready += 1
                raise ConsumerNotReady(self._sensor_index)

            self.state = SyncState.PROCEED
            yield FrameBundle(depth=depth, skeleton=skeleton, color=color)

    def _open(
        self,
        stack: ExitStack,
        stream: str,
        opener: Callable[[], Optional[SubFrame]],
    ) -> Optional[SubFrame]:
        frame = opener()
        if frame is not None:
            stack.callback(self._release, stream, frame)
        return frame

    def _release(self, stream: str, frame: SubFrame) -> None:
        try:
            frame.close()
        except Exception:
            self.logger.warning("Failed to release %s sub-frame", stream, exc_info=True)


__all__ = ["SyncState", "FrameBundleSynchronizer"]
