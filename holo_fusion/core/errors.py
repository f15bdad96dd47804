"""Exception hierarchy for holo-fusion.

Only ``ConfigurationError`` and ``NoSensorsFound`` are fatal; the application
entry point turns them into a diagnostic and a non-zero exit. Every other
error is scoped to a single frame or a single sensor and is logged where it
is caught.
"""

from __future__ import annotations

from typing import Iterable, Optional, Tuple


class HoloFusionError(Exception):
    """Base class for all holo-fusion errors."""


class ConfigurationError(HoloFusionError):
    """The requested capture configuration is not supported."""


class NoSensorsFound(HoloFusionError):
    """Discovery finished without accepting a single connected sensor."""


class UnknownSensor(HoloFusionError):
    """A frame-ready event came from a handle that owns no registry slot."""

    def __init__(self, handle: object) -> None:
        super().__init__(f"Event source {handle!r} is not a registered sensor")
        self.handle = handle


class FrameDropped(HoloFusionError):
    """A capture instant was dropped before fusion."""

    def __init__(self, message: str, sensor_index: Optional[int] = None) -> None:
        super().__init__(message)
        self.sensor_index = sensor_index


class PartialFrameBundle(FrameDropped):
    """One or more required sub-frames were missing for a capture instant."""

    def __init__(self, missing: Iterable[str], sensor_index: Optional[int] = None) -> None:
        self.missing: Tuple[str, ...] = tuple(missing)
        super().__init__(
            f"Incomplete frame bundle, missing: {', '.join(self.missing)}",
            sensor_index,
        )


class ConsumerNotReady(FrameDropped):
    """The consumer had not signaled readiness when the bundle arrived."""

    def __init__(self, sensor_index: Optional[int] = None) -> None:
        super().__init__("Consumer not ready", sensor_index)


class MappingFailure(HoloFusionError):
    """The coordinate mapper could not transform a frame."""


class SensorStopFailure(HoloFusionError):
    """A sensor raised while being stopped."""

    def __init__(self, sensor_index: int, cause: BaseException) -> None:
        super().__init__(f"Sensor {sensor_index} failed to stop: {cause}")
        self.sensor_index = sensor_index
        self.cause = cause


__all__ = [
    "HoloFusionError",
    "ConfigurationError",
    "NoSensorsFound",
    "UnknownSensor",
    "FrameDropped",
    "PartialFrameBundle",
    "ConsumerNotReady",
    "MappingFailure",
    "SensorStopFailure",
]
