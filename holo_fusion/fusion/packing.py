"""
Fusion & Packing Engine.

Turns a frame bundle into a ``VertexBuffer``:

1. copy the depth samples (width x height of them),
2. map them to 3D points with the sensor's coordinate mapper,
3. with color enabled, copy the color bytes and align the points to them,
4. pack an ``int16`` table of 3 (X, Y, Z) or 6 (X, Y, Z, B, G, R) columns.

Coordinates are stored in millimetres, rounded toward zero and saturated to
the ``int16`` range. Color pixel ``r`` starts at byte ``r * bytes_per_pixel``
in the source frame, laid out R, G, B, padding.
"""

from __future__ import annotations

from typing import Optional

import cv2
import numpy as np

from holo_fusion.core.errors import MappingFailure
from holo_fusion.fusion.capture_config import CaptureConfiguration
from holo_fusion.fusion.mapper import CoordinateMapper, align_color_points, map_depth_points
from holo_fusion.fusion.models import BGR_COLUMNS, XYZ_COLUMNS, FrameBundle, VertexBuffer

MILLIMETRES_PER_METRE = 1000.0
INT16_MIN = np.iinfo(np.int16).min
INT16_MAX = np.iinfo(np.int16).max

_TO_BGR = {
    3: cv2.COLOR_RGB2BGR,
    4: cv2.COLOR_RGBA2BGR,
}


def encode_millimetres(points: np.ndarray) -> np.ndarray:
    """Scale metres to ``int16`` millimetres, truncating toward zero.

    Floating input is scaled in its own precision, so a float32 point of
    ``0.501`` m encodes as 501 rather than 500.
    """
    points = np.asarray(points)
    if not np.issubdtype(points.dtype, np.floating):
        points = points.astype(np.float64)
    scaled = points * points.dtype.type(MILLIMETRES_PER_METRE)
    np.trunc(scaled, out=scaled)
    np.nan_to_num(scaled, copy=False, nan=0.0, posinf=INT16_MAX, neginf=INT16_MIN)
    np.clip(scaled, INT16_MIN, INT16_MAX, out=scaled)
    return scaled.astype(np.int16)


def reorder_to_bgr(color_bytes: np.ndarray, rows: int, bytes_per_pixel: int) -> np.ndarray:
    """Return a ``(rows, 3)`` uint8 array of Blue, Green, Red per pixel."""
    code = _TO_BGR.get(bytes_per_pixel)
    if code is None:
        raise MappingFailure(f"Unsupported color stride: {bytes_per_pixel} bytes per pixel")

    required = rows * bytes_per_pixel
    flat = np.ascontiguousarray(color_bytes, dtype=np.uint8).reshape(-1)
    if flat.size < required:
        raise MappingFailure(
            f"Color frame holds {flat.size} bytes, need {required} for {rows} pixels"
        )

    pixels = flat[:required].reshape(rows, 1, bytes_per_pixel)
    return cv2.cvtColor(pixels, code).reshape(rows, 3)


def pack_vertices(
    points: np.ndarray,
    color_bytes: Optional[np.ndarray] = None,
    *,
    bytes_per_pixel: int = 4,
) -> np.ndarray:
    """Pack mapped points (and optionally color bytes) into the vertex table."""
    rows = points.shape[0]
    columns = 3 if color_bytes is None else 6
    table = np.empty((rows, columns), dtype=np.int16)
    table[:, XYZ_COLUMNS] = encode_millimetres(points)
    if color_bytes is not None:
        table[:, BGR_COLUMNS] = reorder_to_bgr(color_bytes, rows, bytes_per_pixel)
    return table


class FusionEngine:
    """Builds one vertex buffer per complete frame bundle."""

    def __init__(self, config: CaptureConfiguration) -> None:
        self._config = config

    @property
    def config(self) -> CaptureConfiguration:
        return self._config

    def fuse(
        self,
        bundle: FrameBundle,
        sensor_index: int,
        mapper: CoordinateMapper,
    ) -> VertexBuffer:
        """Raises ``MappingFailure`` when the bundle cannot be transformed."""
        config = self._config

        depth = np.asarray(bundle.depth.copy_depth_pixels()).reshape(-1)
        if depth.size != config.pixel_count:
            raise MappingFailure(
                f"Depth frame holds {depth.size} samples, expected {config.pixel_count}"
            )

        points = map_depth_points(mapper, config.depth_format, depth)

        color_bytes = None
        bytes_per_pixel = 4
        if config.color_enabled:
            if bundle.color is None:
                raise MappingFailure("Color enabled but bundle has no color sub-frame")
            color_bytes = np.asarray(bundle.color.copy_pixel_data(), dtype=np.uint8)
            bytes_per_pixel = config.color_format.bytes_per_pixel
            points = align_color_points(
                mapper, config.color_format, config.depth_format, depth, points
            )

        data = pack_vertices(points, color_bytes, bytes_per_pixel=bytes_per_pixel)
        return VertexBuffer(
            data=data,
            sensor_index=sensor_index,
            width=config.width,
            height=config.height,
            frame_number=getattr(bundle.depth, "frame_number", 0),
            timestamp=getattr(bundle.depth, "timestamp", 0.0),
        )


__all__ = [
    "MILLIMETRES_PER_METRE",
    "encode_millimetres",
    "reorder_to_bgr",
    "pack_vertices",
    "FusionEngine",
]
