"""
UI loop for the camera classifier.

The engine runs on the main thread. Each iteration it reads a preview frame,
hands it to the capture coordinator, drains worker outcomes (so the result
consumer runs on this thread), and optionally shows the preview window with
key bindings:
- c: capture a still photo
- q: quit
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

import cv2
import numpy as np

from models.classification import ClassificationResult
from models.frame import FrameData
from .coordinator import CaptureCoordinator


@dataclass
class EngineConfig:
    """
    Configuration for the UI loop.

    Attributes:
        display: Show the preview window.
        window_name: Title of the preview window.
        max_consecutive_failures: Frame read failures before stopping.
        stats_log_interval: Seconds between status log messages.
        retry_delay_s: Sleep after a failed frame read.
    """
    display: bool = False
    window_name: str = "Camera Classifier"
    max_consecutive_failures: int = 10
    stats_log_interval: float = 60.0
    retry_delay_s: float = 0.5


@dataclass
class EngineStats:
    """Runtime statistics for the UI loop."""
    frame_count: int = 0
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)
    consecutive_failures: int = 0


class PipelineEngine:
    """
    Main-thread loop driving preview, analysis hand-off, and UI events.

    Example:
        coordinator = CaptureCoordinator(config, source)
        if coordinator.initialize():
            PipelineEngine(coordinator, EngineConfig(display=True)).run()
    """

    def __init__(self, coordinator: CaptureCoordinator, config: EngineConfig):
        self.coordinator = coordinator
        self.config = config
        self.stats = EngineStats()
        self._running = False
        self._latest_result: Optional[ClassificationResult] = None
        self._callbacks: List[Callable[[FrameData], None]] = []

    def add_callback(self, callback: Callable[[FrameData], None]) -> None:
        """Register a function called with every preview frame."""
        self._callbacks.append(callback)

    def run(self) -> None:
        """Loop until stopped, the source is exhausted, or the user quits."""
        self._running = True
        self.stats = EngineStats()
        source = self.coordinator.source

        try:
            logging.info(f"UI loop started: source={source.source_id}")
            while self._running:
                frame_data = source.read()

                if frame_data is None:
                    self.stats.consecutive_failures += 1
                    if self.stats.consecutive_failures >= self.config.max_consecutive_failures:
                        logging.error(
                            f"Too many consecutive failures ({self.stats.consecutive_failures}), stopping"
                        )
                        break
                    logging.warning(
                        f"Frame read failed ({self.stats.consecutive_failures}/"
                        f"{self.config.max_consecutive_failures})"
                    )
                    self._pump_events()
                    time.sleep(self.config.retry_delay_s)
                    continue

                self.stats.consecutive_failures = 0
                self.stats.frame_count += 1
                self.coordinator.submit_frame(frame_data)
                self._pump_events()

                for callback in self._callbacks:
                    try:
                        callback(frame_data)
                    except Exception as e:
                        logging.warning(f"Callback error: {e}")

                if self.config.display and not self._handle_display(frame_data):
                    break

                self._handle_periodic_tasks()

        except KeyboardInterrupt:
            logging.info("UI loop interrupted by user")
        finally:
            self._running = False
            self._pump_events()
            if self.config.display:
                cv2.destroyAllWindows()
            logging.info(f"UI loop stopped after {self.stats.frame_count} frames")

    def stop(self) -> None:
        """Signal the loop to stop after the current frame."""
        self._running = False

    def _pump_events(self) -> None:
        for event in self.coordinator.process_ui_events():
            if isinstance(event, ClassificationResult):
                self._latest_result = event

    def _handle_display(self, frame_data: FrameData) -> bool:
        """
        Show the preview with the top categories overlaid.

        Returns False if the user pressed 'q'.
        """
        cv2.imshow(self.config.window_name, self._draw_overlay(frame_data.to_bgr()))
        key = cv2.waitKey(1) & 0xFF
        if key == ord("c"):
            self.coordinator.capture_photo()
        return key != ord("q")

    def _draw_overlay(self, frame: np.ndarray) -> np.ndarray:
        result = self._latest_result
        if result is None:
            return frame

        y = 30
        for category in result.categories:
            cv2.putText(
                frame,
                f"{category.label}: {category.score:.2f}",
                (10, y),
                cv2.FONT_HERSHEY_SIMPLEX,
                0.7,
                (0, 255, 0),
                2,
            )
            y += 28
        cv2.putText(
            frame,
            f"{result.inference_time_ms:.0f} ms",
            (10, y),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.6,
            (255, 255, 255),
            1,
        )
        return frame

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.config.stats_log_interval:
            status = self.coordinator.status()
            logging.info(
                f"Pipeline stats: frames={self.stats.frame_count}, "
                f"analyzed={status['frames_analyzed']}, dropped={status['frames_dropped']}, "
                f"matches={status['matches']}"
            )
            self.stats.last_stats_log_time = now
