"""
Capture coordinator.

Owns the camera lifecycle and wires three endpoints to one source:
- preview: frames read by the UI loop (displayed, kept for still capture)
- analysis: keep-only-latest frame analysis feeding the classifier
- still capture: one-shot JPEG capture to a fixed path

Threading:
- The UI loop (main thread) reads frames, calls submit_frame(), and drains
  UI events with process_ui_events().
- One worker thread runs frame analysis and still-capture I/O.
- Outcomes produced on the worker are handed to the UI thread through a
  queue; the result consumer only ever runs on the UI thread.
"""

from __future__ import annotations

import dataclasses
import logging
import queue
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Union

from camera.base import CameraSource
from camera.permission import PermissionGate
from classification.classifier import ImageClassifier
from classification.orientation import DeviceRotation
from models.capture import CaptureOutcome, PhotoCaptureFailed, PhotoSaved
from models.classification import ClassificationError, ClassificationResult, ClassifierOutcome
from models.config import ClassifierConfig, Config
from models.frame import FrameData
from .analysis import ImageAnalysis
from .consumer import TopResultMatcher
from .frame_buffer import AnalyzerState, FrameSizeMismatchError
from .still_capture import ImageCapture

ClassifierFactory = Callable[[ClassifierConfig], ImageClassifier]
UiEvent = Union[ClassificationResult, ClassificationError, PhotoSaved, PhotoCaptureFailed]

ANALYSIS_FAILED_MESSAGE = "Frame classification failed. See error logs for details"


class CaptureCoordinator:
    """
    Binds camera, analysis, still capture, and classifier together.

    Args:
        config: Validated application config.
        source: Camera source (opened by initialize()).
        permission_gate: Camera access check; built from config if omitted.
        classifier_factory: Builds the classifier; defaults to ImageClassifier.
        rotation_provider: Returns the current device rotation, or None when
            unknown. Defaults to the configured camera.rotation.

    Example:
        coordinator = CaptureCoordinator(config, source)
        if coordinator.initialize():
            coordinator.submit_frame(source.read())
            coordinator.process_ui_events()
        coordinator.close()
    """

    def __init__(
        self,
        config: Config,
        source: CameraSource,
        permission_gate: Optional[PermissionGate] = None,
        classifier_factory: Optional[ClassifierFactory] = None,
        rotation_provider: Optional[Callable[[], Optional[DeviceRotation]]] = None,
    ):
        self.config = config
        self.source = source
        self.permission_gate = permission_gate or PermissionGate(
            config.camera.device_id,
            retries=config.camera.permission_retries,
            retry_delay_s=config.camera.permission_retry_delay_s,
        )
        self._classifier_factory = classifier_factory or ImageClassifier
        self._configured_rotation = DeviceRotation.from_degrees(config.camera.rotation)
        self._rotation_provider = rotation_provider or (lambda: self._configured_rotation)

        self.classifier: Optional[ImageClassifier] = None
        self.analysis: Optional[ImageAnalysis] = None
        self.still_capture: Optional[ImageCapture] = None
        self.matcher = TopResultMatcher(
            target_index=config.match.target_index,
            min_score=config.match.min_score,
        )

        self._executor: Optional[ThreadPoolExecutor] = None
        self._analyzer_state: Optional[AnalyzerState] = None
        self._ui_events: "queue.Queue[UiEvent]" = queue.Queue()
        self._initialized = False

        self._status_lock = threading.Lock()
        self._last_result: Optional[ClassificationResult] = None
        self._last_capture: Optional[CaptureOutcome] = None
        self._last_frame_ts: Optional[float] = None

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def analyzer_state(self) -> Optional[AnalyzerState]:
        """Reusable frame buffer state (None until the first analyzed frame)."""
        return self._analyzer_state

    def initialize(self) -> bool:
        """
        Acquire camera access and bind preview, analysis, and still capture.

        Returns False (and binds nothing) if camera access is denied.

        Raises:
            RuntimeError: If the camera source cannot be opened.
        """
        if self._initialized:
            return True

        if not self.permission_gate.request():
            return False

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="camera-worker")
        self.classifier = self._classifier_factory(self.config.classifier)
        if self.classifier.setup_error is not None:
            self._ui_events.put(self.classifier.setup_error)

        self.still_capture = ImageCapture(
            self.config.capture.output_path,
            jpeg_quality=self.config.capture.jpeg_quality,
        )
        self.analysis = ImageAnalysis(self._executor, self._analyze)

        try:
            self.source.open()
        except Exception:
            self._executor.shutdown(wait=False)
            self._executor = None
            raise

        self._initialized = True
        logging.info(
            f"Camera bound: source={self.source.source_id}, "
            f"analysis={self.config.analysis.backpressure}, "
            f"photo={self.config.capture.output_path}"
        )
        return True

    def submit_frame(self, frame: FrameData) -> None:
        """Feed one preview frame to still capture and the analysis endpoint."""
        if not self._initialized:
            return
        with self._status_lock:
            self._last_frame_ts = frame.timestamp
        self.still_capture.update_frame(frame)
        self.analysis.submit(frame)

    def _analyze(self, frame: FrameData) -> None:
        self.on_frame(frame, self._rotation_provider())

    def on_frame(self, frame: FrameData, rotation: Optional[DeviceRotation]) -> Optional[ClassifierOutcome]:
        """
        Analyze one frame on the worker thread.

        The buffer is allocated on the first frame. Frames with an unknown
        rotation are skipped without classification.
        """
        if self._analyzer_state is None:
            self._analyzer_state = AnalyzerState.for_frame(frame.frame)

        if rotation is None:
            return None

        try:
            self._analyzer_state = self._analyzer_state.accept(
                frame.frame, on_size_change=self.config.analysis.on_size_change
            )
        except FrameSizeMismatchError as e:
            logging.warning(f"Skipping frame {frame.frame_index}: {e}")
            return None

        try:
            outcome = self.classifier.classify(self._analyzer_state.buffer, rotation)
        except Exception as e:
            logging.exception(f"Classification failed for frame {frame.frame_index}")
            outcome = ClassificationError(message=ANALYSIS_FAILED_MESSAGE, detail=str(e))

        if isinstance(outcome, ClassificationResult):
            # The reused buffer stays on the worker; hand the frame's own pixels on.
            outcome = dataclasses.replace(outcome, image=frame.frame)

        self._ui_events.put(outcome)
        return outcome

    def capture_photo(self) -> "Future[CaptureOutcome]":
        """
        Capture the latest preview frame to the configured photo path.

        Raises:
            RuntimeError: If the coordinator is not initialized.
        """
        executor = self._executor
        if not self._initialized or executor is None:
            raise RuntimeError("Camera is not bound; call initialize() first")
        return self.still_capture.take_picture(executor, on_result=self._ui_events.put)

    def process_ui_events(self, max_events: Optional[int] = None) -> List[UiEvent]:
        """
        Drain outcomes handed over from the worker. Call on the UI thread.

        Returns the events processed.
        """
        handled: List[UiEvent] = []
        while max_events is None or len(handled) < max_events:
            try:
                event = self._ui_events.get_nowait()
            except queue.Empty:
                break

            if isinstance(event, (PhotoSaved, PhotoCaptureFailed)):
                with self._status_lock:
                    self._last_capture = event
            else:
                self.matcher.handle(event)
                if isinstance(event, ClassificationResult):
                    with self._status_lock:
                        self._last_result = event
            handled.append(event)
        return handled

    def status(self) -> Dict[str, Any]:
        """Snapshot for the web interface; safe to call from any thread."""
        stats = self.analysis.stats if self.analysis is not None else None
        with self._status_lock:
            last_result = self._last_result
            last_capture = self._last_capture
            last_frame_ts = self._last_frame_ts

        last_error = self.matcher.last_error
        return {
            "initialized": self._initialized,
            "classifier_ready": bool(self.classifier and self.classifier.is_ready),
            "frames_submitted": stats.submitted if stats else 0,
            "frames_analyzed": stats.analyzed if stats else 0,
            "frames_dropped": stats.dropped if stats else 0,
            "last_frame_age_s": (time.time() - last_frame_ts) if last_frame_ts else None,
            "last_inference_ms": last_result.inference_time_ms if last_result else None,
            "top_categories": [c.to_dict() for c in last_result.categories] if last_result else [],
            "matches": self.matcher.matches,
            "last_error": last_error.message if last_error else None,
            "last_capture": last_capture.to_dict() if last_capture else None,
        }

    def close(self) -> None:
        """Stop the worker and release the camera. In-flight work is not cancelled."""
        self._initialized = False
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None
        try:
            self.source.close()
        except Exception as e:
            logging.warning(f"Error closing source: {e}")
        logging.info("Capture coordinator closed")
