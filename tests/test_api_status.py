"""
Tests for the web API: GET /api/status, POST /api/capture, snapshot and health.
"""

import time
from unittest.mock import MagicMock, patch

import numpy as np
import pytest
from fastapi.testclient import TestClient

from web.app import create_app
from web.routes.api import _compute_warnings
from web.state import state
from conftest import frame_data


class TestComputeWarnings:
    """Tests for warning computation logic."""

    def test_no_warnings_when_healthy(self):
        """No warnings when all metrics are healthy."""
        warnings = _compute_warnings(
            last_frame_age_s=0.5,
            classifier_ready=True,
            disk_free_pct=50.0,
        )
        assert warnings == []

    def test_camera_stale_warning(self):
        """camera_stale when last_frame_age > 2s but <= 10s."""
        warnings = _compute_warnings(last_frame_age_s=5.0, classifier_ready=True, disk_free_pct=50.0)
        assert "camera_stale" in warnings
        assert "camera_offline" not in warnings

    def test_camera_offline_warning(self):
        """camera_offline when last_frame_age > 10s."""
        warnings = _compute_warnings(last_frame_age_s=15.0, classifier_ready=True, disk_free_pct=50.0)
        assert "camera_offline" in warnings
        assert "camera_stale" not in warnings

    def test_camera_offline_when_no_timestamp(self):
        """camera_offline when no frame has arrived yet."""
        warnings = _compute_warnings(last_frame_age_s=None, classifier_ready=True, disk_free_pct=50.0)
        assert "camera_offline" in warnings

    def test_classifier_unavailable(self):
        """classifier_unavailable while the model is not loaded."""
        warnings = _compute_warnings(last_frame_age_s=0.5, classifier_ready=False, disk_free_pct=50.0)
        assert warnings == ["classifier_unavailable"]

    def test_disk_low_threshold_exact(self):
        """disk_low not triggered at exactly 10%."""
        assert "disk_low" not in _compute_warnings(0.5, True, 10.0)
        assert "disk_low" in _compute_warnings(0.5, True, 5.0)

    def test_multiple_warnings(self):
        """Multiple warnings can be active simultaneously."""
        warnings = _compute_warnings(last_frame_age_s=15.0, classifier_ready=False, disk_free_pct=5.0)
        assert warnings == ["camera_offline", "classifier_unavailable", "disk_low"]


class TestStatusEndpoint:
    """Tests for the /api/status route function."""

    @pytest.fixture
    def mock_state(self):
        """Create a mock state object with a bound coordinator."""
        mock = MagicMock()
        mock.get_system_stats_copy.return_value = {"start_time": time.time() - 3600}
        mock.get_config_copy.return_value = {"capture": {"output_dir": "/tmp"}}
        mock.coordinator.status.return_value = {
            "initialized": True,
            "classifier_ready": True,
            "frames_submitted": 120,
            "frames_analyzed": 40,
            "frames_dropped": 78,
            "last_frame_age_s": 0.1,
            "last_inference_ms": 18.2,
            "top_categories": [{"index": 0, "label": "0", "score": 0.995}],
            "matches": 7,
            "last_error": None,
            "last_capture": {"ok": True, "path": "/tmp/photo.jpg", "timestamp": 1.0},
        }
        return mock

    def test_snapshot_fields(self, mock_state):
        """Coordinator status flows into the response."""
        with patch("web.routes.api.state", mock_state):
            with patch("web.routes.api.HealthService") as mock_health:
                mock_health.disk_usage.return_value = {"pct_free": 50.0}

                from web.routes.api import status
                response = status()

        assert response.running is True
        assert response.frames_dropped == 78
        assert response.top_categories[0].score == 0.995
        assert response.matches == 7
        assert response.last_capture.ok is True
        assert response.uptime_seconds >= 3600
        assert response.warnings == []

    def test_no_coordinator(self, mock_state):
        """Before the camera is bound the status reports offline."""
        mock_state.coordinator = None

        with patch("web.routes.api.state", mock_state):
            with patch("web.routes.api.HealthService") as mock_health:
                mock_health.disk_usage.return_value = {"pct_free": 50.0}

                from web.routes.api import status
                response = status()

        assert response.running is False
        assert response.top_categories == []
        assert "camera_offline" in response.warnings
        assert "classifier_unavailable" in response.warnings

    def test_disk_low_reported(self, mock_state):
        """disk_low comes from the photo directory's disk."""
        with patch("web.routes.api.state", mock_state):
            with patch("web.routes.api.HealthService") as mock_health:
                mock_health.disk_usage.return_value = {"pct_free": 3.0}

                from web.routes.api import status
                response = status()

        mock_health.disk_usage.assert_called_once_with("/tmp")
        assert "disk_low" in response.warnings


class TestWebApp:
    """Requests through the FastAPI app."""

    @pytest.fixture(autouse=True)
    def clean_state(self):
        state.reset()
        yield
        state.reset()

    @pytest.fixture
    def client(self):
        return TestClient(create_app())

    def test_capture_unavailable_before_bind(self, client):
        response = client.post("/api/capture")
        assert response.status_code == 503

    def test_capture_accepted(self, client):
        coordinator = MagicMock()
        coordinator.is_initialized = True
        coordinator.config.capture.output_path = "/tmp/photo.jpg"
        state.set_coordinator(coordinator)

        response = client.post("/api/capture")

        assert response.status_code == 202
        assert response.json() == {"accepted": True, "path": "/tmp/photo.jpg"}
        coordinator.capture_photo.assert_called_once_with()

    def test_capture_during_shutdown(self, client):
        coordinator = MagicMock()
        coordinator.is_initialized = True
        coordinator.capture_photo.side_effect = RuntimeError("Camera is not bound")
        state.set_coordinator(coordinator)

        response = client.post("/api/capture")

        assert response.status_code == 503

    def test_snapshot_requires_frame(self, client):
        assert client.get("/api/camera/snapshot.jpg").status_code == 503

    def test_snapshot_jpeg(self, client):
        state.set_frame(frame_data(16, 12, (255, 0, 0, 255)))

        response = client.get("/api/camera/snapshot.jpg")

        assert response.status_code == 200
        assert response.headers["content-type"] == "image/jpeg"
        assert response.content[:2] == b"\xff\xd8"

    def test_set_frame_stores_bgr(self):
        state.set_frame(frame_data(4, 4, (255, 0, 0, 255)))
        frame = state.get_frame()
        assert frame.shape == (4, 4, 3)
        np.testing.assert_array_equal(frame[0, 0], (0, 0, 255))

    def test_health(self, client, tmp_path):
        model = tmp_path / "model.tflite"
        model.write_bytes(b"\x00")
        state.set_config({"classifier": {"model_path": str(model)}, "log_path": "logs/x.log"})

        body = client.get("/api/health").json()

        assert body["model_present"] is True
        assert body["log_path"] == "logs/x.log"

    def test_status_route(self, client):
        body = client.get("/api/status").json()
        assert body["running"] is False
        assert "camera_offline" in body["warnings"]
