"""Data models for one fusion pass."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from holo_fusion.core.devices.types import ColorSubFrame, DepthSubFrame, SubFrame

XYZ_COLUMNS = slice(0, 3)
BGR_COLUMNS = slice(3, 6)


@dataclass(frozen=True)
class FrameBundle:
    """Sub-frames acquired for one capture instant on one sensor."""
    depth: DepthSubFrame
    skeleton: SubFrame
    color: Optional[ColorSubFrame] = None


@dataclass(slots=True)
class VertexBuffer:
    """Packed point cloud: one ``int16`` row per depth pixel.

    Columns are X, Y, Z in millimetres, followed by Blue, Green, Red when
    color is enabled.
    """
    data: np.ndarray
    sensor_index: int
    width: int
    height: int
    frame_number: int = 0
    timestamp: float = 0.0

    @property
    def rows(self) -> int:
        return int(self.data.shape[0])

    @property
    def columns(self) -> int:
        return int(self.data.shape[1])

    @property
    def color_enabled(self) -> bool:
        return self.columns == 6

    @property
    def xyz(self) -> np.ndarray:
        return self.data[:, XYZ_COLUMNS]

    @property
    def bgr(self) -> Optional[np.ndarray]:
        if not self.color_enabled:
            return None
        return self.data[:, BGR_COLUMNS]

    @property
    def frozen(self) -> bool:
        return not self.data.flags.writeable

    def freeze(self) -> None:
        """Make the table read-only; called when ownership moves to the consumer."""
        self.data.flags.writeable = False


__all__ = ["FrameBundle", "VertexBuffer", "XYZ_COLUMNS", "BGR_COLUMNS"]
