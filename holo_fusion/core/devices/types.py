"""
Sensor-facing protocols.

The driver layer is an external collaborator; these protocols describe the
surface the fusion core relies on. ``holo_fusion.backends.synthetic`` is the
in-process implementation used without hardware.
"""

from __future__ import annotations

from enum import Enum
from typing import Callable, Optional, Protocol, Sequence, TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from holo_fusion.fusion.capture_config import ColorFormat, DepthFormat
    from holo_fusion.fusion.mapper import CoordinateMapper


class SensorStatus(Enum):
    """Driver-reported sensor status."""
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    INITIALIZING = "initializing"
    NOT_POWERED = "not_powered"
    ERROR = "error"


class SubFrame(Protocol):
    """One stream's snapshot for a capture instant. Must be closed after use."""

    frame_number: int
    timestamp: float

    def close(self) -> None:
        ...


class DepthSubFrame(SubFrame, Protocol):
    pixel_data_length: int

    def copy_depth_pixels(self) -> np.ndarray:
        """Return a fresh ``uint16`` array of ``pixel_data_length`` depth samples."""
        ...


class ColorSubFrame(SubFrame, Protocol):
    pixel_data_length: int

    def copy_pixel_data(self) -> np.ndarray:
        """Return a fresh ``uint8`` array holding the raw color bytes."""
        ...


class FrameReadyEvent(Protocol):
    """Notification that a capture instant is available on a sensor.

    Each ``open_*`` call returns ``None`` when that stream has no data for the
    instant (e.g. the skeleton frame arrived late).
    """

    def open_depth_frame(self) -> Optional[DepthSubFrame]:
        ...

    def open_color_frame(self) -> Optional[ColorSubFrame]:
        ...

    def open_skeleton_frame(self) -> Optional[SubFrame]:
        ...


FrameReadyCallback = Callable[["SensorHandle", FrameReadyEvent], None]


class SensorHandle(Protocol):
    """Live driver handle for one sensor."""

    serial: str

    @property
    def status(self) -> SensorStatus:
        ...

    def enable_depth_stream(self, depth_format: "DepthFormat") -> None:
        ...

    def enable_color_stream(self, color_format: "ColorFormat") -> None:
        ...

    def enable_skeleton_stream(self) -> None:
        ...

    def add_frames_ready_handler(self, callback: FrameReadyCallback) -> None:
        ...

    def coordinate_mapper(self) -> "CoordinateMapper":
        ...

    def start(self) -> None:
        ...

    def stop(self) -> None:
        ...


class SensorBackend(Protocol):
    """Enumerates the sensor handles visible to the driver."""

    def enumerate(self) -> Sequence[SensorHandle]:
        ...


__all__ = [
    "SensorStatus",
    "SubFrame",
    "DepthSubFrame",
    "ColorSubFrame",
    "FrameReadyEvent",
    "FrameReadyCallback",
    "SensorHandle",
    "SensorBackend",
]
