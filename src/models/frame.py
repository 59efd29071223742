"""
FrameData model for frames delivered by a camera source.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

import cv2
import numpy as np


@dataclass
class FrameData:
    """
    A single camera frame plus its capture metadata.

    Attributes:
        frame: Pixel data as a numpy array, RGBA 8888 (H x W x 4, uint8).
        width: Frame width in pixels.
        height: Frame height in pixels.
        timestamp: Unix timestamp when frame was captured.
        frame_index: Sequential frame number since the source was opened.
        source: Identifier for the camera/video source.
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: float,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "FrameData":
        """Wrap an RGBA array, reading width and height from its shape."""
        h, w = frame.shape[:2]
        return cls(
            frame=frame,
            width=w,
            height=h,
            timestamp=timestamp,
            frame_index=frame_index,
            source=source,
        )

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

    @property
    def nbytes(self) -> int:
        """Size of the raw pixel payload in bytes (width * height * 4)."""
        return int(self.frame.nbytes)

    def to_bgr(self) -> np.ndarray:
        """Return a BGR copy, the layout cv2.imshow and cv2.imwrite expect."""
        return cv2.cvtColor(self.frame, cv2.COLOR_RGBA2BGR)
