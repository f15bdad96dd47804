"""Core services shared by the fusion pipeline and the application."""

from .errors import (
    ConfigurationError,
    ConsumerNotReady,
    FrameDropped,
    HoloFusionError,
    MappingFailure,
    NoSensorsFound,
    PartialFrameBundle,
    SensorStopFailure,
    UnknownSensor,
)
from .shared_state import FusionSharedState
from .shutdown_coordinator import ShutdownCoordinator, get_shutdown_coordinator

__all__ = [
    "ConfigurationError",
    "ConsumerNotReady",
    "FrameDropped",
    "HoloFusionError",
    "MappingFailure",
    "NoSensorsFound",
    "PartialFrameBundle",
    "SensorStopFailure",
    "UnknownSensor",
    "FusionSharedState",
    "ShutdownCoordinator",
    "get_shutdown_coordinator",
]
