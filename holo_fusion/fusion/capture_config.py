"""Capture configuration: supported resolutions and their stream formats."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple

from holo_fusion.core.errors import ConfigurationError

Resolution = Tuple[int, int]


class DepthFormat(Enum):
    """Depth stream variants. The mapper calibration differs per variant."""
    RESOLUTION_640x480_FPS30 = (640, 480, 30)
    RESOLUTION_320x240_FPS30 = (320, 240, 30)
    RESOLUTION_80x60_FPS30 = (80, 60, 30)

    @property
    def width(self) -> int:
        return self.value[0]

    @property
    def height(self) -> int:
        return self.value[1]

    @property
    def fps(self) -> int:
        return self.value[2]

    @property
    def pixel_count(self) -> int:
        return self.width * self.height


class ColorFormat(Enum):
    """Color stream variants: (width, height, fps, bytes per pixel)."""
    RGB_RESOLUTION_640x480_FPS30 = (640, 480, 30, 4)

    @property
    def width(self) -> int:
        return self.value[0]

    @property
    def height(self) -> int:
        return self.value[1]

    @property
    def fps(self) -> int:
        return self.value[2]

    @property
    def bytes_per_pixel(self) -> int:
        return self.value[3]

    @property
    def frame_byte_length(self) -> int:
        return self.width * self.height * self.bytes_per_pixel


@dataclass(frozen=True)
class CaptureConfiguration:
    """Stream setup shared by every sensor for the life of the process."""
    width: int
    height: int
    depth_format: DepthFormat
    color_format: Optional[ColorFormat] = None

    @property
    def color_enabled(self) -> bool:
        return self.color_format is not None

    @property
    def pixel_count(self) -> int:
        return self.width * self.height

    @property
    def columns(self) -> int:
        return 6 if self.color_enabled else 3

    def describe(self) -> str:
        color = self.color_format.name if self.color_format else "off"
        return f"{self.width}x{self.height} depth={self.depth_format.name} color={color}"


SUPPORTED_CONFIGURATIONS: Dict[Resolution, CaptureConfiguration] = {
    (640, 480): CaptureConfiguration(
        width=640,
        height=480,
        depth_format=DepthFormat.RESOLUTION_640x480_FPS30,
        color_format=ColorFormat.RGB_RESOLUTION_640x480_FPS30,
    ),
    (320, 240): CaptureConfiguration(
        width=320,
        height=240,
        depth_format=DepthFormat.RESOLUTION_320x240_FPS30,
    ),
    (80, 60): CaptureConfiguration(
        width=80,
        height=60,
        depth_format=DepthFormat.RESOLUTION_80x60_FPS30,
    ),
}

SUPPORTED_RESOLUTIONS: Tuple[Resolution, ...] = tuple(SUPPORTED_CONFIGURATIONS)


def resolve_capture_configuration(width: int, height: int) -> CaptureConfiguration:
    """Return the configuration for ``width`` x ``height``.

    Raises ``ConfigurationError`` for any resolution outside the supported set.
    """
    try:
        return SUPPORTED_CONFIGURATIONS[(int(width), int(height))]
    except (KeyError, TypeError, ValueError):
        supported = ", ".join(f"{w}x{h}" for w, h in SUPPORTED_RESOLUTIONS)
        raise ConfigurationError(
            f"Invalid resolution {width}x{height}; supported: {supported}"
        ) from None


__all__ = [
    "Resolution",
    "DepthFormat",
    "ColorFormat",
    "CaptureConfiguration",
    "SUPPORTED_CONFIGURATIONS",
    "SUPPORTED_RESOLUTIONS",
    "resolve_capture_configuration",
]
