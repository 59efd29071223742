"""
Image classifier adapter.

Wraps a bundled, pre-trained TFLite classification model:
- loads the model once (retrying on the next classify() if loading failed)
- converts an RGBA frame into the model's input tensor
- orients the frame per the device rotation
- ranks, filters, and truncates the scores

classify() returns a ClassificationResult or a ClassificationError; there
are no listener callbacks.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List, Optional, Union

import cv2
import numpy as np

from models.classification import (
    ClassificationError,
    ClassificationResult,
    ClassifierOutcome,
    rank_categories,
)
from models.config import ClassifierConfig
from .orientation import DeviceRotation, apply_orientation, orientation_from_rotation
from .runtime import Interpreter, InterpreterFactory, load_labels, load_litert_interpreter

SETUP_FAILED_MESSAGE = "Image classifier failed to initialize. See error logs for details"


class ImageClassifier:
    """
    Frame classifier backed by a TFLite interpreter.

    Args:
        config: Classifier settings (model path, threshold, max results, threads).
        interpreter_factory: Builds an interpreter from (model_path, num_threads).
            Defaults to the LiteRT runtime.

    Example:
        classifier = ImageClassifier(ClassifierConfig(model_path="model.tflite"))
        outcome = classifier.classify(rgba_frame, DeviceRotation.ROTATION_0)
        if isinstance(outcome, ClassificationResult):
            print(outcome.top)
    """

    def __init__(
        self,
        config: ClassifierConfig,
        interpreter_factory: Optional[InterpreterFactory] = None,
    ):
        self.config = config
        self._factory = interpreter_factory or load_litert_interpreter
        self._interpreter: Optional[Interpreter] = None
        self._input: Dict[str, Any] = {}
        self._output: Dict[str, Any] = {}
        self._labels: Optional[List[str]] = None
        self.setup_attempts = 0
        self.setup_error: Optional[ClassificationError] = None
        self._setup()

    @property
    def is_ready(self) -> bool:
        return self._interpreter is not None

    def _setup(self) -> None:
        """Load model and labels; on failure record the error and stay not-ready."""
        self.setup_attempts += 1
        try:
            interpreter = self._factory(self.config.model_path, self.config.num_threads)
            self._input = interpreter.get_input_details()[0]
            self._output = interpreter.get_output_details()[0]
            self._labels = load_labels(self.config.labels_path)
        except (ImportError, OSError, ValueError, RuntimeError, IndexError) as e:
            self._interpreter = None
            self.setup_error = ClassificationError(message=SETUP_FAILED_MESSAGE, detail=str(e))
            logging.error(f"TFLite failed to load model with error: {e}")
            return

        self._interpreter = interpreter
        self.setup_error = None

    @property
    def input_size(self) -> Optional[tuple[int, int]]:
        """Model input as (width, height), or None before the model loads."""
        if not self._input:
            return None
        shape = self._input["shape"]
        return int(shape[2]), int(shape[1])

    def classify(
        self,
        image: np.ndarray,
        rotation: Union[DeviceRotation, int],
    ) -> ClassifierOutcome:
        """
        Classify one RGBA frame.

        Args:
            image: H x W x 4 uint8 pixel buffer.
            rotation: Current device rotation.

        Returns:
            ClassificationResult with ranked categories and elapsed
            milliseconds, or ClassificationError if the model is unavailable.

        Inference errors are not caught here.
        """
        if self._interpreter is None:
            self._setup()
            if self._interpreter is None:
                return self.setup_error or ClassificationError(message=SETUP_FAILED_MESSAGE)

        started = time.perf_counter()

        orientation = orientation_from_rotation(rotation)
        tensor = self._to_input_tensor(apply_orientation(image, orientation))

        self._interpreter.set_tensor(self._input["index"], tensor)
        self._interpreter.invoke()
        scores = self._read_scores()

        categories = rank_categories(
            scores,
            labels=self._labels,
            score_threshold=self.config.score_threshold,
            max_results=self.config.max_results,
        )
        elapsed_ms = (time.perf_counter() - started) * 1000.0

        return ClassificationResult(
            categories=categories,
            inference_time_ms=elapsed_ms,
            image=image,
        )

    def _to_input_tensor(self, image: np.ndarray) -> np.ndarray:
        """Drop alpha, resize to the model input, and cast to the input dtype."""
        rgb = np.ascontiguousarray(image[..., :3])
        width, height = self.input_size
        if rgb.shape[1] != width or rgb.shape[0] != height:
            rgb = cv2.resize(rgb, (width, height), interpolation=cv2.INTER_LINEAR)

        dtype = np.dtype(self._input["dtype"])
        if dtype == np.float32:
            tensor = (rgb.astype(np.float32) - self.config.input_mean) / self.config.input_std
        elif dtype == np.int8:
            scale, zero_point = self._input.get("quantization", (0.0, 0))
            if scale:
                normalized = (rgb.astype(np.float32) - self.config.input_mean) / self.config.input_std
                tensor = np.clip(np.round(normalized / scale + zero_point), -128, 127).astype(np.int8)
            else:
                tensor = (rgb.astype(np.int16) - 128).astype(np.int8)
        else:
            tensor = rgb.astype(dtype)
        return np.expand_dims(tensor, axis=0)

    def _read_scores(self) -> np.ndarray:
        """Read the output tensor, dequantizing integer outputs."""
        raw = self._interpreter.get_tensor(self._output["index"])
        scores = np.asarray(raw).reshape(-1)
        scale, zero_point = self._output.get("quantization", (0.0, 0))
        if np.issubdtype(scores.dtype, np.integer) and scale:
            return (scores.astype(np.float32) - zero_point) * scale
        return scores.astype(np.float32)
