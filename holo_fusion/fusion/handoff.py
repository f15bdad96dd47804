"""
Handoff Gate - readiness-gated delivery to the external consumer.

A buffer is delivered only while the consumer has signaled readiness;
otherwise it is discarded. Nothing is queued, so a slow consumer costs
frames, not memory.
"""

from __future__ import annotations

from typing import Protocol

from holo_fusion.core.logging_utils import get_module_logger
from holo_fusion.core.shared_state import FusionSharedState
from holo_fusion.fusion.models import VertexBuffer


class BufferConsumer(Protocol):
    """Receives ownership of each delivered buffer."""

    def deliver(self, buffer: VertexBuffer, sensor_index: int) -> None:
        ...


class HandoffGate:

    def __init__(self, consumer: BufferConsumer, shared_state: FusionSharedState) -> None:
        self.logger = get_module_logger("HandoffGate")
        self._consumer = consumer
        self._shared_state = shared_state

    def try_deliver(self, buffer: VertexBuffer, sensor_index: int) -> bool:
        if not self._shared_state.consumer_ready:
            self.logger.debug("Consumer not ready; discarding buffer from sensor %d", sensor_index)
            return False

        buffer.freeze()
        try:
            self._consumer.deliver(buffer, sensor_index)
        except Exception:
            self.logger.exception("Consumer rejected buffer from sensor %d", sensor_index)
            return False
        return True


__all__ = ["BufferConsumer", "HandoffGate"]
