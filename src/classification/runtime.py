"""
TensorFlow Lite (LiteRT) interpreter loading.

Uses the LiteRT runtime (`ai-edge-litert`) if installed. The import is
deferred so the rest of the project, and its tests, run without it.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Callable, Dict, List, Optional, Protocol

import numpy as np


class Interpreter(Protocol):
    """The subset of the LiteRT interpreter API the classifier uses."""

    def allocate_tensors(self) -> None:
        ...

    def get_input_details(self) -> List[Dict[str, Any]]:
        ...

    def get_output_details(self) -> List[Dict[str, Any]]:
        ...

    def set_tensor(self, tensor_index: int, value: np.ndarray) -> None:
        ...

    def invoke(self) -> None:
        ...

    def get_tensor(self, tensor_index: int) -> np.ndarray:
        ...


InterpreterFactory = Callable[[str, int], Interpreter]


def load_litert_interpreter(model_path: str, num_threads: int) -> Interpreter:
    """
    Create and allocate a LiteRT interpreter for `model_path`.

    No delegate is attached; inference runs on `num_threads` CPU threads.

    Raises:
        ImportError: If the LiteRT runtime is not installed.
        FileNotFoundError: If the model file does not exist.
        ValueError/RuntimeError: If the runtime rejects the model.
    """
    try:
        from ai_edge_litert.interpreter import Interpreter as LiteRTInterpreter  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError(
            "LiteRT is not installed. Install with `pip install ai-edge-litert` "
            "or `pip install camera-classifier[litert]`."
        ) from e

    if not os.path.exists(model_path):
        raise FileNotFoundError(f"Model file not found: {model_path}")

    interpreter = LiteRTInterpreter(model_path=model_path, num_threads=num_threads)
    interpreter.allocate_tensors()
    logging.info(f"Loaded model {model_path} (threads={num_threads})")
    return interpreter


def load_labels(labels_path: Optional[str]) -> Optional[List[str]]:
    """
    Read one label per line. Blank lines are kept so indices stay aligned.

    Returns None when no labels file is configured.
    """
    if not labels_path:
        return None
    with open(labels_path, "r", encoding="utf-8") as f:
        return [line.rstrip("\r\n") for line in f]
