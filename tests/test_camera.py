"""
Tests for camera sources and the camera permission gate.
"""

import numpy as np
import pytest

from camera.base import SourceConfig
from camera.opencv_source import OpenCVSource, OpenCVSourceConfig, create_source_from_config
from camera.permission import CAMERA_RATIONALE, PermissionGate, has_camera_access
from conftest import MockSource, rgba


class TestSourceConfig:
    def test_default_config(self):
        config = SourceConfig()
        assert config.source_id == "default"
        assert config.resolution is None
        assert config.fps is None


class TestOpenCVSourceConfig:
    def test_from_camera_config(self):
        camera_cfg = {
            "backend": "opencv",
            "device_id": 2,
            "resolution": [1280, 720],
            "fps": 15,
            "max_retries": 5,
            "flip_horizontal": True,
        }

        config = OpenCVSourceConfig.from_camera_config(camera_cfg, source_id="front-camera")

        assert config.source_id == "front-camera"
        assert config.device_id == 2
        assert config.resolution == (1280, 720)
        assert config.fps == 15
        assert config.max_retries == 5
        assert config.flip_horizontal is True
        assert config.flip_vertical is False

    def test_create_source(self):
        source = create_source_from_config({"device_id": 0}, source_id="cam")
        assert isinstance(source, OpenCVSource)
        assert source.source_id == "cam"
        assert not source.is_open

    def test_unsupported_backend(self):
        with pytest.raises(ValueError, match="Unsupported camera backend"):
            create_source_from_config({"backend": "picamera2", "device_id": 0})


class TestMockSource:
    def test_source_lifecycle(self):
        source = MockSource(frames=[rgba(8, 6)] * 2)
        assert not source.is_open

        source.open()
        first = source.read()
        assert first.frame_index == 1
        assert first.size == (8, 6)
        assert source.read().frame_index == 2
        assert source.read() is None

        source.close()
        assert not source.is_open

    def test_context_manager(self):
        with MockSource(frames=[rgba(4, 4)]) as source:
            assert source.is_open
        assert not source.is_open

    def test_iteration(self):
        with MockSource(frames=[rgba(4, 4)] * 5) as source:
            frames = list(source)
        assert [f.frame_index for f in frames] == [1, 2, 3, 4, 5]

    def test_iteration_requires_open(self):
        source = MockSource(frames=[rgba(4, 4)])
        with pytest.raises(RuntimeError, match="must be open"):
            list(source)


class TestOpenCVSource:
    def test_usb_camera(self):
        source = OpenCVSource(OpenCVSourceConfig(device_id=0))
        assert source.is_file is False
        assert source.read() is None

    def test_video_file(self, tmp_path):
        path = tmp_path / "clip.mp4"
        path.write_bytes(b"")
        source = OpenCVSource(OpenCVSourceConfig(device_id=str(path)))
        assert source.is_file is True

    def test_bgr_converted_to_rgba(self):
        source = OpenCVSource(OpenCVSourceConfig(device_id=0))
        bgr = np.zeros((2, 3, 3), dtype=np.uint8)
        bgr[..., 0] = 255  # blue

        out = source._to_rgba(bgr)

        assert out.shape == (2, 3, 4)
        np.testing.assert_array_equal(out[0, 0], (0, 0, 255, 255))

    def test_gray_converted_to_rgba(self):
        source = OpenCVSource(OpenCVSourceConfig(device_id=0))
        out = source._to_rgba(np.full((2, 2), 7, dtype=np.uint8))
        np.testing.assert_array_equal(out[1, 1], (7, 7, 7, 255))

    def test_horizontal_flip(self):
        source = OpenCVSource(OpenCVSourceConfig(device_id=0, flip_horizontal=True))
        bgr = np.zeros((1, 2, 3), dtype=np.uint8)
        bgr[0, 0] = (0, 0, 255)  # red on the left

        out = source._to_rgba(bgr)

        np.testing.assert_array_equal(out[0, 1], (255, 0, 0, 255))
        np.testing.assert_array_equal(out[0, 0], (0, 0, 0, 255))


class TestPermissionGate:
    def test_granted_first_time(self):
        rationales = []
        gate = PermissionGate(0, checker=lambda d: True, on_rationale=rationales.append)
        assert gate.request() is True
        assert gate.granted
        assert rationales == []

    def test_denied_after_retries(self, caplog):
        calls = []
        rationales = []

        def checker(device_id):
            calls.append(device_id)
            return False

        gate = PermissionGate(3, checker=checker, on_rationale=rationales.append, retries=2, retry_delay_s=0)

        assert gate.request() is False
        assert calls == [3, 3, 3]
        assert rationales == [CAMERA_RATIONALE] * 3
        assert not gate.granted
        assert "permission denied" in caplog.text

    def test_default_rationale_logged(self, caplog):
        gate = PermissionGate(0, checker=lambda d: False, retries=0)
        gate.request()
        assert "Camera permission needed" in caplog.text

    def test_non_device_sources_not_gated(self):
        assert has_camera_access("video.mp4") is True
        assert has_camera_access("rtsp://camera/stream") is True

    def test_missing_device_node(self, monkeypatch):
        monkeypatch.setattr("camera.permission.sys.platform", "linux")
        monkeypatch.setattr("camera.permission.os.path.exists", lambda p: False)
        assert has_camera_access(0) is False
