"""
Frame analysis endpoint with keep-only-latest backpressure.

Frames are handed to a single analyzer running on the coordinator's worker
executor. At most one frame is being analyzed at a time. A frame that
arrives while the analyzer is busy waits in a single pending slot; if
another frame arrives first it replaces the pending one, which is dropped.
Analysis is allowed to lag behind capture but never builds a backlog.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor
from dataclasses import dataclass
from typing import Callable, Optional

from models.frame import FrameData

Analyzer = Callable[[FrameData], None]


@dataclass
class AnalysisStats:
    """Counters for the analysis endpoint."""
    submitted: int = 0
    analyzed: int = 0
    dropped: int = 0
    failed: int = 0


class ImageAnalysis:
    """
    Keep-only-latest dispatcher onto a worker executor.

    Args:
        executor: Executor the analyzer runs on (single worker).
        analyzer: Called once per frame that is not dropped.

    submit() never blocks on analysis; it is safe to call from the thread
    reading the camera.
    """

    def __init__(self, executor: Executor, analyzer: Analyzer):
        self._executor = executor
        self._analyzer = analyzer
        self._lock = threading.Lock()
        self._busy = False
        self._pending: Optional[FrameData] = None
        self.stats = AnalysisStats()

    @property
    def busy(self) -> bool:
        with self._lock:
            return self._busy

    def submit(self, frame: FrameData) -> bool:
        """
        Offer a frame for analysis.

        Returns True if the frame was dispatched right away, False if it was
        parked in the pending slot (possibly dropping an older pending frame).
        """
        with self._lock:
            self.stats.submitted += 1
            if self._busy:
                if self._pending is not None:
                    self.stats.dropped += 1
                self._pending = frame
                return False
            self._busy = True

        self._dispatch(frame)
        return True

    def _dispatch(self, frame: FrameData) -> None:
        try:
            self._executor.submit(self._run, frame)
        except RuntimeError:
            # Executor already shut down.
            with self._lock:
                self.stats.dropped += 1
                self._busy = False
                self._pending = None
            logging.debug("Analysis executor is shut down, frame discarded")

    def _run(self, frame: FrameData) -> None:
        try:
            self._analyzer(frame)
            with self._lock:
                self.stats.analyzed += 1
        except Exception:
            with self._lock:
                self.stats.failed += 1
            logging.exception(f"Frame analysis failed (frame_index={frame.frame_index})")
        finally:
            with self._lock:
                next_frame = self._pending
                self._pending = None
                if next_frame is None:
                    self._busy = False
            if next_frame is not None:
                self._dispatch(next_frame)
