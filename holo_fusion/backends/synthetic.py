"""
Synthetic sensor backend.

- Purpose: deterministic in-process RGBD sensors for development and tests.
- Frames: a tilted depth plane with a moving ripple, an RGBA gradient color
  frame and an empty skeleton frame per instant.
- Mapping: pinhole projection with the nominal depth-camera focal length,
  scaled per depth format.
- Faults: periodic skeleton drops, uncalibrated mappers and failing stops can
  be injected to exercise the drop paths.
"""

from __future__ import annotations

import threading
import time
from typing import Callable, List, Optional, Sequence

import numpy as np

from holo_fusion.core.devices.types import FrameReadyCallback, SensorStatus
from holo_fusion.core.errors import MappingFailure
from holo_fusion.core.logging_utils import get_module_logger
from holo_fusion.fusion.capture_config import ColorFormat, DepthFormat

NOMINAL_FOCAL_LENGTH_320 = 285.63
COLOR_BASELINE_M = 0.025

logger = get_module_logger("SyntheticBackend")


class PinholeCoordinateMapper:
    """Pinhole depth-to-point mapper. Points are in metres, Y up, Z forward."""

    def __init__(self, *, calibrated: bool = True) -> None:
        self.calibrated = calibrated

    @staticmethod
    def focal_length(depth_format: DepthFormat) -> float:
        return NOMINAL_FOCAL_LENGTH_320 * depth_format.width / 320.0

    def map_depth_frame(self, depth_format: DepthFormat, depth_pixels: np.ndarray) -> np.ndarray:
        if not self.calibrated:
            raise MappingFailure("Sensor is not calibrated")
        width, height = depth_format.width, depth_format.height
        depth = np.asarray(depth_pixels, dtype=np.float64).reshape(height, width)
        z = depth / 1000.0
        f = self.focal_length(depth_format)
        u = np.arange(width, dtype=np.float64)[np.newaxis, :]
        v = np.arange(height, dtype=np.float64)[:, np.newaxis]
        x = (u - width / 2.0) * z / f
        y = (height / 2.0 - v) * z / f
        return np.stack([x, y, z], axis=-1).reshape(-1, 3)

    def map_color_frame(
        self,
        color_format: ColorFormat,
        depth_format: DepthFormat,
        depth_pixels: np.ndarray,
        points: np.ndarray,
    ) -> np.ndarray:
        if not self.calibrated:
            raise MappingFailure("Sensor is not calibrated")
        aligned = np.array(points, dtype=np.float64, copy=True)
        valid = aligned[:, 2] > 0
        aligned[valid, 0] -= COLOR_BASELINE_M
        return aligned


class SyntheticScene:
    """Deterministic frame content for one resolution."""

    def __init__(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self._u = np.arange(width, dtype=np.float32)[np.newaxis, :]
        self._v = np.arange(height, dtype=np.float32)[:, np.newaxis]

    def depth(self, frame_number: int) -> np.ndarray:
        ripple = 50.0 * np.sin((self._u + frame_number) / 16.0)
        depth = 1200.0 + self._u + self._v + ripple
        return depth.astype(np.uint16).reshape(-1)

    def color(self, frame_number: int, bytes_per_pixel: int = 4) -> np.ndarray:
        rgba = np.empty((self.height, self.width, bytes_per_pixel), dtype=np.uint8)
        rgba[..., 0] = (self._u % 256).astype(np.uint8)
        rgba[..., 1] = (self._v % 256).astype(np.uint8)
        rgba[..., 2] = frame_number % 256
        if bytes_per_pixel > 3:
            rgba[..., 3:] = 255
        return rgba.reshape(-1)


class SyntheticSubFrame:

    def __init__(
        self,
        frame_number: int,
        timestamp: float,
        on_close: Optional[Callable[["SyntheticSubFrame"], None]] = None,
    ) -> None:
        self.frame_number = frame_number
        self.timestamp = timestamp
        self.closed = False
        self._on_close = on_close

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        if self._on_close is not None:
            self._on_close(self)


class SyntheticDepthFrame(SyntheticSubFrame):

    def __init__(self, pixels: np.ndarray, frame_number: int, timestamp: float, on_close=None) -> None:
        super().__init__(frame_number, timestamp, on_close)
        self._pixels = pixels
        self.pixel_data_length = int(pixels.size)

    def copy_depth_pixels(self) -> np.ndarray:
        return self._pixels.copy()


class SyntheticColorFrame(SyntheticSubFrame):

    def __init__(self, data: np.ndarray, frame_number: int, timestamp: float, on_close=None) -> None:
        super().__init__(frame_number, timestamp, on_close)
        self._data = data
        self.pixel_data_length = int(data.size)

    def copy_pixel_data(self) -> np.ndarray:
        return self._data.copy()


class SyntheticFrameReadyEvent:
    """Frame-ready event whose sub-frames are created when opened."""

    def __init__(
        self,
        depth: Optional[Callable[[], SyntheticDepthFrame]],
        color: Optional[Callable[[], SyntheticColorFrame]],
        skeleton: Optional[Callable[[], SyntheticSubFrame]],
    ) -> None:
        self._depth = depth
        self._color = color
        self._skeleton = skeleton

    def open_depth_frame(self) -> Optional[SyntheticDepthFrame]:
        return self._depth() if self._depth else None

    def open_color_frame(self) -> Optional[SyntheticColorFrame]:
        return self._color() if self._color else None

    def open_skeleton_frame(self) -> Optional[SyntheticSubFrame]:
        return self._skeleton() if self._skeleton else None


class SyntheticSensor:
    """In-process stand-in for a driver sensor handle."""

    def __init__(
        self,
        serial: str,
        *,
        status: SensorStatus = SensorStatus.CONNECTED,
        fps: float = 30.0,
        skeleton_drop_every: int = 0,
        calibrated: bool = True,
        fail_on_stop: bool = False,
    ) -> None:
        self.serial = serial
        self._status = status
        self.fps = fps
        self.skeleton_drop_every = skeleton_drop_every
        self.calibrated = calibrated
        self.fail_on_stop = fail_on_stop
        self.depth_format: Optional[DepthFormat] = None
        self.color_format: Optional[ColorFormat] = None
        self.skeleton_enabled = False
        self.running = False
        self.frames_emitted = 0
        self._handlers: List[FrameReadyCallback] = []
        self._scene: Optional[SyntheticScene] = None
        self._outstanding = 0
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def __repr__(self) -> str:
        return f"SyntheticSensor({self.serial!r})"

    @property
    def status(self) -> SensorStatus:
        return self._status

    @property
    def outstanding_frames(self) -> int:
        """Sub-frames opened but not yet closed."""
        with self._lock:
            return self._outstanding

    # ------------------------------------------------------------------
    # Stream setup

    def enable_depth_stream(self, depth_format: DepthFormat) -> None:
        self.depth_format = depth_format
        self._scene = SyntheticScene(depth_format.width, depth_format.height)

    def enable_color_stream(self, color_format: ColorFormat) -> None:
        self.color_format = color_format

    def enable_skeleton_stream(self) -> None:
        self.skeleton_enabled = True

    def add_frames_ready_handler(self, callback: FrameReadyCallback) -> None:
        self._handlers.append(callback)

    def coordinate_mapper(self) -> PinholeCoordinateMapper:
        return PinholeCoordinateMapper(calibrated=self.calibrated)

    # ------------------------------------------------------------------
    # Frame production

    def _track(self, frame: SyntheticSubFrame) -> SyntheticSubFrame:
        with self._lock:
            self._outstanding += 1
        return frame

    def _untrack(self, frame: SyntheticSubFrame) -> None:
        with self._lock:
            self._outstanding -= 1

    def next_event(self) -> SyntheticFrameReadyEvent:
        if self._scene is None or self.depth_format is None:
            raise RuntimeError(f"{self.serial}: depth stream not enabled")
        self.frames_emitted += 1
        number = self.frames_emitted
        timestamp = time.monotonic()
        scene = self._scene

        def depth() -> SyntheticDepthFrame:
            return self._track(SyntheticDepthFrame(scene.depth(number), number, timestamp, self._untrack))

        color = None
        if self.color_format is not None:
            bytes_per_pixel = self.color_format.bytes_per_pixel

            def color() -> SyntheticColorFrame:
                data = scene.color(number, bytes_per_pixel)
                return self._track(SyntheticColorFrame(data, number, timestamp, self._untrack))

        skeleton = None
        dropped = self.skeleton_drop_every and number % self.skeleton_drop_every == 0
        if self.skeleton_enabled and not dropped:
            def skeleton() -> SyntheticSubFrame:
                return self._track(SyntheticSubFrame(number, timestamp, self._untrack))

        return SyntheticFrameReadyEvent(depth, color, skeleton)

    def emit(self) -> SyntheticFrameReadyEvent:
        """Produce one frame-ready event and notify every handler."""
        event = self.next_event()
        for handler in list(self._handlers):
            handler(self, event)
        return event

    def _run(self) -> None:
        period = 1.0 / self.fps if self.fps > 0 else 0.0
        while not self._stop_event.wait(period):
            try:
                self.emit()
            except Exception:
                logger.exception("%s: frame production failed", self.serial)
                break

    # ------------------------------------------------------------------
    # Lifecycle

    def start(self) -> None:
        if self.depth_format is None:
            raise RuntimeError(f"{self.serial}: enable the depth stream before starting")
        if self.running:
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name=f"synthetic-{self.serial}", daemon=True)
        self.running = True
        self._thread.start()

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout=2.0)
            self._thread = None
        self.running = False
        if self.fail_on_stop:
            raise RuntimeError(f"{self.serial}: stop failed")


class SyntheticBackend:
    """Enumerates a fixed list of synthetic sensors."""

    def __init__(self, sensors: Sequence[SyntheticSensor]) -> None:
        self.sensors = list(sensors)

    @classmethod
    def create(
        cls,
        count: int,
        *,
        fps: float = 30.0,
        skeleton_drop_every: int = 0,
    ) -> "SyntheticBackend":
        sensors = [
            SyntheticSensor(
                f"synthetic-{i}",
                fps=fps,
                skeleton_drop_every=skeleton_drop_every,
            )
            for i in range(count)
        ]
        return cls(sensors)

    def enumerate(self) -> List[SyntheticSensor]:
        return list(self.sensors)


__all__ = [
    "NOMINAL_FOCAL_LENGTH_320",
    "COLOR_BASELINE_M",
    "PinholeCoordinateMapper",
    "SyntheticScene",
    "SyntheticSubFrame",
    "SyntheticDepthFrame",
    "SyntheticColorFrame",
    "SyntheticFrameReadyEvent",
    "SyntheticSensor",
    "SyntheticBackend",
]
