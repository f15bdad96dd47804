"""Tests for readiness-gated buffer delivery."""

import numpy as np

from holo_fusion.fusion.handoff import HandoffGate
from holo_fusion.fusion.models import VertexBuffer
from tests.infrastructure.mocks.sensor_mocks import RecordingConsumer


def _buffer(sensor_index=0):
    return VertexBuffer(
        data=np.zeros((4, 3), dtype=np.int16),
        sensor_index=sensor_index,
        width=2,
        height=2,
    )


class TestHandoffGate:

    def test_not_ready_discards(self, shared_state, recording_consumer):
        gate = HandoffGate(recording_consumer, shared_state)
        buffer = _buffer()

        assert gate.try_deliver(buffer, 0) is False
        assert recording_consumer.deliveries == []
        assert not buffer.frozen

    def test_ready_delivers_frozen_buffer(self, ready_state, recording_consumer):
        gate = HandoffGate(recording_consumer, ready_state)
        buffer = _buffer(sensor_index=1)

        assert gate.try_deliver(buffer, 1) is True
        assert recording_consumer.deliveries == [(1, buffer)]
        assert buffer.frozen

    def test_readiness_checked_per_delivery(self, shared_state, recording_consumer):
        gate = HandoffGate(recording_consumer, shared_state)

        assert gate.try_deliver(_buffer(), 0) is False
        shared_state.mark_consumer_ready()
        assert gate.try_deliver(_buffer(), 0) is True
        shared_state.mark_consumer_not_ready()
        assert gate.try_deliver(_buffer(), 0) is False

        assert len(recording_consumer.deliveries) == 1

    def test_consumer_error_is_contained(self, ready_state):
        consumer = RecordingConsumer(fail=True)
        gate = HandoffGate(consumer, ready_state)

        assert gate.try_deliver(_buffer(), 0) is False
