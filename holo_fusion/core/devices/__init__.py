"""Sensor registry, lifecycle and driver-facing protocols."""

from .sensor_registry import MAX_SENSORS, SensorRegistry, SensorSlot
from .types import (
    ColorSubFrame,
    DepthSubFrame,
    FrameReadyEvent,
    SensorBackend,
    SensorHandle,
    SensorStatus,
    SubFrame,
)

__all__ = [
    "MAX_SENSORS",
    "SensorRegistry",
    "SensorSlot",
    "ColorSubFrame",
    "DepthSubFrame",
    "FrameReadyEvent",
    "SensorBackend",
    "SensorHandle",
    "SensorStatus",
    "SubFrame",
]
