"""
Still photo capture endpoint.

A capture encodes the most recent preview frame as JPEG and writes it to a
fixed path, replacing any previous photo. The write happens on the worker
executor; the caller gets a Future resolving to PhotoSaved or
PhotoCaptureFailed.
"""

from __future__ import annotations

import logging
import os
import threading
import time
from concurrent.futures import Executor, Future
from typing import Callable, Optional

import cv2

from models.capture import CaptureOutcome, PhotoCaptureFailed, PhotoSaved
from models.frame import FrameData

CaptureCallback = Callable[[CaptureOutcome], None]


class ImageCapture:
    """
    One-shot JPEG capture of the latest preview frame.

    Args:
        output_path: File the photo is written to (overwritten each time).
        jpeg_quality: cv2.IMWRITE_JPEG_QUALITY value (0-100).
    """

    def __init__(self, output_path: str, jpeg_quality: int = 95):
        self.output_path = output_path
        self.jpeg_quality = jpeg_quality
        self._latest: Optional[FrameData] = None
        self._lock = threading.Lock()

    def update_frame(self, frame: FrameData) -> None:
        """Remember the newest preview frame (called from the UI loop)."""
        with self._lock:
            self._latest = frame

    @property
    def latest_frame(self) -> Optional[FrameData]:
        with self._lock:
            return self._latest

    def take_picture(
        self,
        executor: Executor,
        on_result: Optional[CaptureCallback] = None,
    ) -> "Future[CaptureOutcome]":
        """
        Capture the latest frame on `executor`.

        `on_result` runs on the worker thread with the outcome. The returned
        Future resolves to the same outcome.
        """
        frame = self.latest_frame

        def _capture() -> CaptureOutcome:
            outcome = self._write(frame)
            if on_result is not None:
                on_result(outcome)
            return outcome

        return executor.submit(_capture)

    def _write(self, frame: Optional[FrameData]) -> CaptureOutcome:
        if frame is None:
            logging.error("Photo capture failed: no frame available yet")
            return PhotoCaptureFailed(
                path=self.output_path, error="no frame available yet", timestamp=time.time()
            )

        try:
            out_dir = os.path.dirname(self.output_path)
            if out_dir:
                os.makedirs(out_dir, exist_ok=True)

            ok, buf = cv2.imencode(
                ".jpg", frame.to_bgr(), [cv2.IMWRITE_JPEG_QUALITY, int(self.jpeg_quality)]
            )
            if not ok:
                raise RuntimeError("Failed to encode JPEG")

            # Replace the previous photo atomically.
            tmp_path = self.output_path + ".tmp"
            try:
                with open(tmp_path, "wb") as f:
                    f.write(buf.tobytes())
                os.replace(tmp_path, self.output_path)
            finally:
                if os.path.exists(tmp_path):
                    os.remove(tmp_path)
        except (OSError, RuntimeError, cv2.error) as e:
            logging.error(f"Photo capture failed: {e}")
            return PhotoCaptureFailed(path=self.output_path, error=str(e), timestamp=time.time())

        logging.info(f"Photo saved: {self.output_path}")
        return PhotoSaved(path=self.output_path, timestamp=time.time())
