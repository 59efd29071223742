"""
Pytest configuration and shared fixtures.
"""

import os
import sys
import time
from concurrent.futures import Future

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from camera.base import CameraSource, SourceConfig  # noqa: E402
from models.frame import FrameData  # noqa: E402


class FakeInterpreter:
    """In-memory stand-in for the LiteRT interpreter."""

    def __init__(
        self,
        scores,
        input_shape=(1, 4, 4, 3),
        input_dtype=np.uint8,
        output_dtype=np.float32,
        output_quantization=(0.0, 0),
        input_quantization=(0.0, 0),
    ):
        self.scores = np.asarray(scores, dtype=output_dtype).reshape(1, -1)
        self.input_shape = np.array(input_shape)
        self.input_dtype = input_dtype
        self.output_quantization = output_quantization
        self.input_quantization = input_quantization
        self.inputs = []
        self.invocations = 0
        self.invoke_error = None

    def allocate_tensors(self):
        pass

    def get_input_details(self):
        return [{
            "index": 0,
            "shape": self.input_shape,
            "dtype": self.input_dtype,
            "quantization": self.input_quantization,
        }]

    def get_output_details(self):
        return [{
            "index": 1,
            "shape": np.array(self.scores.shape),
            "dtype": self.scores.dtype,
            "quantization": self.output_quantization,
        }]

    def set_tensor(self, tensor_index, value):
        self.inputs.append(np.array(value, copy=True))

    def invoke(self):
        self.invocations += 1
        if self.invoke_error is not None:
            raise self.invoke_error

    def get_tensor(self, tensor_index):
        return self.scores


class CountingFactory:
    """Interpreter factory that fails a given number of times before succeeding."""

    def __init__(self, interpreter, failures=0, error=None):
        self.interpreter = interpreter
        self.failures = failures
        self.error = error or ValueError("Could not open 'model.tflite'")
        self.calls = []

    def __call__(self, model_path, num_threads):
        self.calls.append((model_path, num_threads))
        if len(self.calls) <= self.failures:
            raise self.error
        return self.interpreter


class ManualExecutor:
    """Executor that runs submitted work only when the test asks it to."""

    def __init__(self):
        self.tasks = []
        self.is_shutdown = False

    def submit(self, fn, *args, **kwargs):
        if self.is_shutdown:
            raise RuntimeError("cannot schedule new futures after shutdown")
        future = Future()
        self.tasks.append((fn, args, kwargs, future))
        return future

    def run_next(self):
        fn, args, kwargs, future = self.tasks.pop(0)
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future

    def run_all(self):
        while self.tasks:
            self.run_next()

    def shutdown(self, wait=True):
        self.is_shutdown = True


class MockSource(CameraSource):
    """Camera source serving a fixed list of RGBA frames."""

    def __init__(self, config: SourceConfig = None, frames: list = None):
        super().__init__(config or SourceConfig(source_id="mock-camera"))
        self._frames = frames or []
        self._pos = 0
        self.open_calls = 0
        self.close_calls = 0

    def open(self) -> None:
        self.open_calls += 1
        self._is_open = True
        self._pos = 0
        self._frame_index = 0

    def read(self):
        if not self._is_open or self._pos >= len(self._frames):
            return None

        frame = self._frames[self._pos]
        self._pos += 1
        self._frame_index += 1
        return FrameData.from_numpy(
            frame,
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def close(self) -> None:
        self.close_calls += 1
        self._is_open = False


def rgba(width, height, color=(0, 0, 0, 255)):
    """Solid RGBA frame."""
    frame = np.empty((height, width, 4), dtype=np.uint8)
    frame[...] = color
    return frame


def frame_data(width=8, height=6, color=(0, 0, 0, 255), index=1):
    return FrameData.from_numpy(rgba(width, height, color), timestamp=time.time(), frame_index=index)


def wait_for(predicate, timeout=5.0):
    """Poll until predicate() is truthy or the timeout expires."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
camera:
  backend: "opencv"
  device_id: 0
  resolution: [640, 480]
  fps: 30
  rotation: 0

classifier:
  model_path: "model.tflite"
  score_threshold: 0.5
  max_results: 3
  num_threads: 2

capture:
  output_dir: "pictures"
  filename: "photo.jpg"

log_path: "logs/test.log"
log_level: "INFO"
""")

    return config_dir


@pytest.fixture
def valid_config(tmp_path):
    """Return a valid configuration dictionary."""
    return {
        "camera": {
            "backend": "opencv",
            "device_id": 0,
            "resolution": [640, 480],
            "fps": 30,
            "rotation": 0,
            "permission_retries": 0,
            "permission_retry_delay_s": 0,
        },
        "analysis": {
            "backpressure": "keep_only_latest",
            "output_format": "rgba_8888",
            "on_size_change": "reallocate",
        },
        "classifier": {
            "model_path": "model.tflite",
            "score_threshold": 0.5,
            "max_results": 3,
            "num_threads": 2,
        },
        "capture": {
            "output_dir": str(tmp_path / "pictures"),
            "filename": "photo.jpg",
            "jpeg_quality": 95,
        },
        "match": {
            "target_index": 0,
            "min_score": 0.99,
        },
        "web": {
            "enabled": False,
        },
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
