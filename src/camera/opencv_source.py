"""
OpenCV-based camera source.

Supports:
- USB/built-in webcams (device_id as int, e.g., 0 for the front camera)
- Video files (device_id as file path), handy for replaying a session
- Network streams (device_id as URL)

Frames are converted from OpenCV's BGR to RGBA 8888, the layout the
analysis endpoint and the classifier work with.
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import cv2
import numpy as np

from models.frame import FrameData
from .base import CameraSource, SourceConfig

# Consecutive read failures before the source stops reopening the camera.
_GIVE_UP_AFTER = 4


@dataclass
class OpenCVSourceConfig(SourceConfig):
    """
    Configuration for OpenCV-based camera sources.

    Attributes:
        device_id: Camera index (int), stream URL (str), or file path (str).
        buffer_size: CAP_PROP_BUFFERSIZE; 1 keeps the preview close to live.
        max_retries: Attempts when opening the device.
        flip_horizontal: Mirror frames (selfie view for a front camera).
        flip_vertical: Flip frames upside down.
    """
    device_id: Union[int, str] = 0
    buffer_size: int = 1
    max_retries: int = 3
    flip_horizontal: bool = False
    flip_vertical: bool = False

    @property
    def flip_code(self) -> Optional[int]:
        """cv2.flip code for the configured flips, or None for no flip."""
        if self.flip_horizontal and self.flip_vertical:
            return -1
        if self.flip_horizontal:
            return 1
        if self.flip_vertical:
            return 0
        return None

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any], source_id: str = "camera") -> "OpenCVSourceConfig":
        """Build from the `camera` section of the YAML config."""
        resolution = camera_cfg.get("resolution")
        return cls(
            source_id=source_id,
            resolution=tuple(resolution) if resolution else None,
            fps=camera_cfg.get("fps"),
            device_id=camera_cfg.get("device_id", 0),
            buffer_size=camera_cfg.get("buffer_size", 1),
            max_retries=max(1, camera_cfg.get("max_retries", 3)),
            flip_horizontal=camera_cfg.get("flip_horizontal", False),
            flip_vertical=camera_cfg.get("flip_vertical", False),
        )


class OpenCVSource(CameraSource):
    """
    cv2.VideoCapture wrapper returning RGBA FrameData.

    Example:
        config = OpenCVSourceConfig(device_id=0, resolution=(640, 480))
        with OpenCVSource(config) as source:
            for frame_data in source:
                classify(frame_data.frame)
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self.settings = config
        self._cap: Optional[cv2.VideoCapture] = None
        self._failures = 0

    @property
    def device_id(self) -> Union[int, str]:
        return self.settings.device_id

    @property
    def is_file(self) -> bool:
        """True when device_id names an existing video file."""
        return isinstance(self.device_id, str) and os.path.exists(self.device_id)

    def open(self) -> None:
        if self._is_open:
            return

        self._cap = self._connect()
        self._failures = 0
        self._is_open = True
        self._frame_index = 0
        logging.info(f"Camera {self.source_id} opened (device={self.device_id})")

    def _connect(self) -> cv2.VideoCapture:
        """
        Open the device, backing off between attempts.

        Raises:
            RuntimeError: If every attempt failed.
        """
        attempts = self.settings.max_retries
        for attempt in range(1, attempts + 1):
            cap = cv2.VideoCapture(self.device_id)
            if cap.isOpened():
                self._apply_settings(cap)
                return cap

            cap.release()
            if attempt < attempts:
                delay = min(2 ** attempt, 10)
                logging.warning(
                    f"Could not open camera {self.device_id} "
                    f"(attempt {attempt}/{attempts}), retrying in {delay}s"
                )
                time.sleep(delay)

        raise RuntimeError(f"Failed to open device {self.device_id} after {attempts} attempts")

    def _apply_settings(self, cap: cv2.VideoCapture) -> None:
        """Request resolution, fps and buffer size from a local camera."""
        if not isinstance(self.device_id, int):
            return

        if self.settings.resolution:
            width, height = self.settings.resolution
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, height)
        if self.settings.fps:
            cap.set(cv2.CAP_PROP_FPS, self.settings.fps)
        cap.set(cv2.CAP_PROP_BUFFERSIZE, self.settings.buffer_size)

        # Drivers may silently pick another mode.
        logging.info(
            f"Camera mode: {int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))}x"
            f"{int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))} @ {cap.get(cv2.CAP_PROP_FPS):.0f} fps"
        )

    def read(self) -> Optional[FrameData]:
        if self._cap is None or not self._is_open:
            return None

        ok, frame = self._cap.read()
        if not ok or frame is None:
            frame = self._recover()
            if frame is None:
                return None

        self._failures = 0
        self._frame_index += 1
        return FrameData.from_numpy(
            self._to_rgba(frame),
            timestamp=time.time(),
            frame_index=self._frame_index,
            source=self.source_id,
        )

    def _recover(self) -> Optional[np.ndarray]:
        """Handle a failed read: end of file, give up, or reopen and read once more."""
        self._failures += 1
        if self.is_file:
            logging.info(f"End of video file {self.device_id}")
            return None
        if self._failures >= _GIVE_UP_AFTER:
            logging.error(f"Camera {self.source_id} stopped delivering frames")
            return None
        logging.warning(f"Frame read failed ({self._failures} in a row), reopening camera")
        self._cap.release()
        try:
            self._cap = self._connect()
        except RuntimeError as e:
            logging.error(f"Camera reopen failed: {e}")
            self._cap = None
            self._is_open = False
            return None

        ok, frame = self._cap.read()
        return frame if ok else None

    def _to_rgba(self, frame: np.ndarray) -> np.ndarray:
        """Apply configured flips and convert BGR(A)/gray to RGBA."""
        flip_code = self.settings.flip_code
        if flip_code is not None:
            frame = cv2.flip(frame, flip_code)

        if frame.ndim == 2:
            conversion = cv2.COLOR_GRAY2RGBA
        elif frame.shape[2] == 4:
            conversion = cv2.COLOR_BGRA2RGBA
        else:
            conversion = cv2.COLOR_BGR2RGBA
        return cv2.cvtColor(frame, conversion)

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        if self._is_open:
            logging.info(f"Camera {self.source_id} closed")
        self._is_open = False


def create_source_from_config(camera_cfg: Dict[str, Any], source_id: str = "camera") -> CameraSource:
    """Build the camera source named by camera.backend."""
    backend = camera_cfg.get("backend", "opencv")
    if backend != "opencv":
        raise ValueError(f"Unsupported camera backend: {backend}")
    return OpenCVSource(OpenCVSourceConfig.from_camera_config(camera_cfg, source_id=source_id))
