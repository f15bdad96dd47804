"""Per-frame fusion pipeline: synchronize, map, pack, hand off."""

from .capture_config import (
    CaptureConfiguration,
    ColorFormat,
    DepthFormat,
    SUPPORTED_RESOLUTIONS,
    resolve_capture_configuration,
)
from .consumer import LatestBufferConsumer
from .handoff import BufferConsumer, HandoffGate
from .models import FrameBundle, VertexBuffer
from .packing import FusionEngine, encode_millimetres, pack_vertices, reorder_to_bgr
from .pipeline import PassOutcome, SensorFusionPipeline
from .router import FrameEventRouter
from .synchronizer import FrameBundleSynchronizer, SyncState

__all__ = [
    "CaptureConfiguration",
    "ColorFormat",
    "DepthFormat",
    "SUPPORTED_RESOLUTIONS",
    "resolve_capture_configuration",
    "LatestBufferConsumer",
    "BufferConsumer",
    "HandoffGate",
    "FrameBundle",
    "VertexBuffer",
    "FusionEngine",
    "encode_millimetres",
    "pack_vertices",
    "reorder_to_bgr",
    "PassOutcome",
    "SensorFusionPipeline",
    "FrameEventRouter",
    "FrameBundleSynchronizer",
    "SyncState",
]
