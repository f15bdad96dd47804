"""Sensor backends selectable from configuration."""

from __future__ import annotations

from holo_fusion.core.devices.types import SensorBackend
from holo_fusion.core.errors import ConfigurationError

from .synthetic import PinholeCoordinateMapper, SyntheticBackend, SyntheticSensor

AVAILABLE_BACKENDS = ("synthetic",)


def create_backend(
    name: str,
    *,
    sensors: int = 1,
    fps: float = 30.0,
    skeleton_drop_every: int = 0,
) -> SensorBackend:
    """Build the backend registered under ``name``."""
    key = name.strip().lower()
    if key == "synthetic":
        return SyntheticBackend.create(sensors, fps=fps, skeleton_drop_every=skeleton_drop_every)
    raise ConfigurationError(
        f"Unknown sensor backend '{name}'; available: {', '.join(AVAILABLE_BACKENDS)}"
    )


__all__ = [
    "AVAILABLE_BACKENDS",
    "create_backend",
    "PinholeCoordinateMapper",
    "SyntheticBackend",
    "SyntheticSensor",
]
