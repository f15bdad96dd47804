"""Tests for the synthetic sensor backend."""

import time

import numpy as np
import pytest

from holo_fusion.backends import AVAILABLE_BACKENDS, create_backend
from holo_fusion.backends.synthetic import (
    COLOR_BASELINE_M,
    PinholeCoordinateMapper,
    SyntheticBackend,
    SyntheticScene,
    SyntheticSensor,
)
from holo_fusion.core.errors import ConfigurationError, MappingFailure
from holo_fusion.fusion.capture_config import ColorFormat, DepthFormat


class TestPinholeCoordinateMapper:

    def test_centre_pixel_is_on_axis(self):
        fmt = DepthFormat.RESOLUTION_80x60_FPS30
        depth = np.zeros(fmt.pixel_count, dtype=np.uint16)
        centre = 30 * 80 + 40
        depth[centre] = 2000

        points = PinholeCoordinateMapper().map_depth_frame(fmt, depth)

        assert points.shape == (4800, 3)
        assert points[centre].tolist() == pytest.approx([0.0, 0.0, 2.0])
        assert points[0].tolist() == [0.0, 0.0, 0.0]

    def test_focal_length_scales_with_width(self):
        assert PinholeCoordinateMapper.focal_length(DepthFormat.RESOLUTION_640x480_FPS30) == pytest.approx(571.26)

    def test_color_alignment_shifts_valid_points(self):
        points = np.array([[0.1, 0.2, 1.0], [0.0, 0.0, 0.0]])

        aligned = PinholeCoordinateMapper().map_color_frame(
            ColorFormat.RGB_RESOLUTION_640x480_FPS30,
            DepthFormat.RESOLUTION_640x480_FPS30,
            np.zeros(2, dtype=np.uint16),
            points,
        )

        assert aligned[0, 0] == pytest.approx(0.1 - COLOR_BASELINE_M)
        assert aligned[1].tolist() == [0.0, 0.0, 0.0]
        assert points[0, 0] == 0.1

    def test_uncalibrated_raises(self):
        mapper = PinholeCoordinateMapper(calibrated=False)

        with pytest.raises(MappingFailure):
            mapper.map_depth_frame(DepthFormat.RESOLUTION_80x60_FPS30, np.zeros(4800, dtype=np.uint16))


class TestSyntheticScene:

    def test_depth_and_color_sizes(self):
        scene = SyntheticScene(80, 60)

        assert scene.depth(1).shape == (4800,)
        assert scene.depth(1).dtype == np.uint16
        color = scene.color(5)
        assert color.size == 4800 * 4
        assert color[:4].tolist() == [0, 0, 5, 255]


class TestSyntheticSensor:

    def _sensor(self, **kwargs):
        sensor = SyntheticSensor("unit", **kwargs)
        sensor.enable_depth_stream(DepthFormat.RESOLUTION_80x60_FPS30)
        sensor.enable_skeleton_stream()
        return sensor

    def test_subframes_are_tracked_until_closed(self):
        sensor = self._sensor()
        event = sensor.next_event()

        depth = event.open_depth_frame()
        skeleton = event.open_skeleton_frame()
        assert event.open_color_frame() is None
        assert sensor.outstanding_frames == 2

        depth.close()
        depth.close()
        skeleton.close()
        assert sensor.outstanding_frames == 0

    def test_skeleton_drop_schedule(self):
        sensor = self._sensor(skeleton_drop_every=3)

        present = [sensor.next_event().open_skeleton_frame() is not None for _ in range(6)]

        assert present == [True, True, False, True, True, False]

    def test_start_requires_depth_stream(self):
        with pytest.raises(RuntimeError):
            SyntheticSensor("bare").start()

    def test_emits_to_handlers_while_running(self):
        sensor = self._sensor(fps=200.0)
        received = []
        sensor.add_frames_ready_handler(lambda handle, event: received.append(handle))

        sensor.start()
        deadline = time.monotonic() + 2.0
        while not received and time.monotonic() < deadline:
            time.sleep(0.01)
        sensor.stop()

        assert received and received[0] is sensor
        assert not sensor.running

    def test_fail_on_stop(self):
        sensor = self._sensor(fail_on_stop=True)

        with pytest.raises(RuntimeError):
            sensor.stop()


class TestCreateBackend:

    def test_synthetic(self):
        backend = create_backend("Synthetic", sensors=3, fps=10.0, skeleton_drop_every=4)

        assert isinstance(backend, SyntheticBackend)
        sensors = backend.enumerate()
        assert [s.serial for s in sensors] == ["synthetic-0", "synthetic-1", "synthetic-2"]
        assert all(s.skeleton_drop_every == 4 for s in sensors)

    def test_unknown_backend(self):
        with pytest.raises(ConfigurationError, match="available"):
            create_backend("kinect")

    def test_available_names(self):
        assert "synthetic" in AVAILABLE_BACKENDS
