"""Tests for frame bundle acquisition and scoped sub-frame release."""

import pytest

from holo_fusion.backends.synthetic import SyntheticSensor
from holo_fusion.core.errors import ConsumerNotReady, FrameDropped, PartialFrameBundle
from holo_fusion.fusion.synchronizer import FrameBundleSynchronizer, SyncState
from tests.infrastructure.mocks.sensor_mocks import (
    MockDepthFrame,
    MockFrameReadyEvent,
    MockSubFrame,
    make_event,
)


class TestCompleteBundle:

    def test_bundle_yielded_then_released(self, config_640, ready_state):
        sync = FrameBundleSynchronizer(config_640, ready_state)
        event = make_event(4, color_bytes_per_pixel=4)

        with sync.acquire(event) as bundle:
            assert bundle.depth is event.depth
            assert bundle.color is event.color
            assert bundle.skeleton is event.skeleton
            assert not any(frame.closed for frame in event.frames())
            assert sync.state is SyncState.PROCEED

        assert all(frame.close_calls == 1 for frame in event.frames())
        assert sync.stats.arrived == 1

    def test_color_not_opened_when_disabled(self, config_320, ready_state):
        sync = FrameBundleSynchronizer(config_320, ready_state)
        event = make_event(4)

        with sync.acquire(event) as bundle:
            assert bundle.color is None

        assert "color" not in event.opened

    def test_frames_released_when_body_raises(self, config_320, ready_state):
        sync = FrameBundleSynchronizer(config_320, ready_state)
        event = make_event(4)

        with pytest.raises(ValueError):
            with sync.acquire(event):
                raise ValueError("fusion failed")

        assert all(frame.close_calls == 1 for frame in event.frames())


class TestDroppedBundle:

    def test_missing_skeleton_releases_opened_frames(self, config_640, ready_state):
        sync = FrameBundleSynchronizer(config_640, ready_state, sensor_index=3)
        event = make_event(4, color_bytes_per_pixel=4, with_skeleton=False)

        with pytest.raises(PartialFrameBundle) as exc_info:
            with sync.acquire(event):
                pytest.fail("incomplete bundle must not be yielded")

        assert exc_info.value.missing == ("skeleton",)
        assert exc_info.value.sensor_index == 3
        assert event.depth.close_calls == 1
        assert event.color.close_calls == 1
        assert sync.state is SyncState.DROP
        assert sync.stats.dropped_partial == 1

    def test_missing_color_and_depth_reported(self, config_640, ready_state):
        sync = FrameBundleSynchronizer(config_640, ready_state)
        event = MockFrameReadyEvent(skeleton=MockSubFrame())

        with pytest.raises(PartialFrameBundle) as exc_info:
            with sync.acquire(event):
                pass

        assert exc_info.value.missing == ("depth", "color")
        assert event.skeleton.close_calls == 1

    def test_consumer_not_ready_releases_everything(self, config_640, shared_state):
        sync = FrameBundleSynchronizer(config_640, shared_state)
        event = make_event(4, color_bytes_per_pixel=4)

        with pytest.raises(ConsumerNotReady):
            with sync.acquire(event):
                pytest.fail("bundle must not be yielded before readiness")

        assert all(frame.close_calls == 1 for frame in event.frames())
        assert sync.stats.dropped_not_ready == 1

    def test_drops_share_base_class(self, config_320, shared_state):
        sync = FrameBundleSynchronizer(config_320, shared_state)

        with pytest.raises(FrameDropped):
            with sync.acquire(make_event(4, with_skeleton=False)):
                pass
        with pytest.raises(FrameDropped):
            with sync.acquire(make_event(4)):
                pass

    def test_close_failure_does_not_leak_other_frames(self, config_320, ready_state):
        sync = FrameBundleSynchronizer(config_320, ready_state)
        depth = MockDepthFrame([1, 2, 3, 4], fail_on_close=True)
        skeleton = MockSubFrame()
        event = MockFrameReadyEvent(depth=depth, skeleton=skeleton)

        with sync.acquire(event):
            pass

        assert depth.close_calls == 1
        assert skeleton.close_calls == 1


class TestRepeatedDrops:

    def test_no_frames_outstanding_after_many_partial_instants(self, config_640, ready_state):
        sensor = SyntheticSensor("leak-check", skeleton_drop_every=1)
        sensor.enable_depth_stream(config_640.depth_format)
        sensor.enable_color_stream(config_640.color_format)
        sensor.enable_skeleton_stream()
        sync = FrameBundleSynchronizer(config_640, ready_state)

        for _ in range(50):
            with pytest.raises(PartialFrameBundle):
                with sync.acquire(sensor.next_event()):
                    pass

        assert sensor.outstanding_frames == 0
        assert sync.stats.dropped_partial == 50

    def test_no_frames_outstanding_while_consumer_not_ready(self, config_80, shared_state):
        sensor = SyntheticSensor("not-ready")
        sensor.enable_depth_stream(config_80.depth_format)
        sensor.enable_skeleton_stream()
        sync = FrameBundleSynchronizer(config_80, shared_state)

        for _ in range(200):
            with pytest.raises(ConsumerNotReady):
                with sync.acquire(sensor.next_event()):
                    pass

        assert sensor.outstanding_frames == 0
