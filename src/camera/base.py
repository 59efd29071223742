"""
CameraSource interface.

The capture coordinator and the UI loop only talk to this contract, so a
USB webcam, a recorded video, or a test fake can feed the classifier.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Optional

from models.frame import FrameData


@dataclass
class SourceConfig:
    """
    Settings shared by every camera source.

    Attributes:
        source_id: Name used in logs and FrameData.source (e.g., "front-camera").
        resolution: Requested (width, height); None keeps the device default.
        fps: Requested frame rate; None keeps the device default.
    """
    source_id: str = "default"
    resolution: Optional[tuple[int, int]] = None
    fps: Optional[int] = None


class CameraSource(ABC):
    """
    A camera that delivers RGBA 8888 frames.

    open() before read(), close() when done; sources also work as context
    managers and as iterators that stop at the first missing frame:

        with create_source_from_config(cfg["camera"]) as source:
            for frame_data in source:
                coordinator.submit_frame(frame_data)
    """

    def __init__(self, config: SourceConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Frames delivered since the last open()."""
        return self._frame_index

    @abstractmethod
    def open(self) -> None:
        """
        Start delivering frames.

        Raises:
            RuntimeError: If the camera cannot be opened.
        """

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """Next frame, or None if none is available (end of file, camera error)."""

    @abstractmethod
    def close(self) -> None:
        """Release the camera. Calling it again is harmless."""

    def __enter__(self) -> "CameraSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[FrameData]:
        if not self._is_open:
            raise RuntimeError("Source must be open before iterating")

        frame_data = self.read()
        while frame_data is not None:
            yield frame_data
            frame_data = self.read()
