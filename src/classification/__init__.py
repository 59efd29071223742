"""
On-device image classification.

ImageClassifier wraps a bundled TFLite model; orientation helpers map the
device rotation to the layout the model should see.
"""

from .classifier import ImageClassifier, SETUP_FAILED_MESSAGE
from .orientation import (
    DeviceRotation,
    ImageOrientation,
    apply_orientation,
    orientation_from_rotation,
)
from .runtime import load_labels, load_litert_interpreter

__all__ = [
    "ImageClassifier",
    "SETUP_FAILED_MESSAGE",
    "DeviceRotation",
    "ImageOrientation",
    "apply_orientation",
    "orientation_from_rotation",
    "load_labels",
    "load_litert_interpreter",
]
