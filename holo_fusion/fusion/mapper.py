"""
Coordinate Mapper contract.

The mapper is calibration-aware hardware math owned by the sensor driver.
The fusion engine calls it once per frame through ``map_depth_points`` and
``align_color_points``, which normalise any driver failure into
``MappingFailure`` and validate the returned shape.
"""

from __future__ import annotations

from typing import Protocol

import numpy as np

from holo_fusion.core.errors import MappingFailure
from holo_fusion.fusion.capture_config import ColorFormat, DepthFormat


class CoordinateMapper(Protocol):

    def map_depth_frame(self, depth_format: DepthFormat, depth_pixels: np.ndarray) -> np.ndarray:
        """Map ``N`` depth samples to an ``(N, 3)`` array of points in metres."""
        ...

    def map_color_frame(
        self,
        color_format: ColorFormat,
        depth_format: DepthFormat,
        depth_pixels: np.ndarray,
        points: np.ndarray,
    ) -> np.ndarray:
        """Return ``points`` adjusted so row ``r`` correlates with color pixel ``r``."""
        ...


def _check_points(points: object, expected_rows: int, step: str) -> np.ndarray:
    if not isinstance(points, np.ndarray):
        raise MappingFailure(f"{step} returned {type(points).__name__}, expected ndarray")
    if points.shape != (expected_rows, 3):
        raise MappingFailure(
            f"{step} returned shape {points.shape}, expected ({expected_rows}, 3)"
        )
    return points


def map_depth_points(
    mapper: CoordinateMapper,
    depth_format: DepthFormat,
    depth_pixels: np.ndarray,
) -> np.ndarray:
    try:
        points = mapper.map_depth_frame(depth_format, depth_pixels)
    except MappingFailure:
        raise
    except Exception as exc:
        raise MappingFailure(f"Depth mapping failed: {exc}") from exc
    return _check_points(points, depth_pixels.shape[0], "Depth mapping")


def align_color_points(
    mapper: CoordinateMapper,
    color_format: ColorFormat,
    depth_format: DepthFormat,
    depth_pixels: np.ndarray,
    points: np.ndarray,
) -> np.ndarray:
    try:
        aligned = mapper.map_color_frame(color_format, depth_format, depth_pixels, points)
    except MappingFailure:
        raise
    except Exception as exc:
        raise MappingFailure(f"Color alignment failed: {exc}") from exc
    return _check_points(aligned, points.shape[0], "Color alignment")


__all__ = ["CoordinateMapper", "map_depth_points", "align_color_points"]
