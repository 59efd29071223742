"""
Typed models for the camera classifier application.

Frames, classification outcomes, capture outcomes, and the typed view of
the YAML configuration.
"""

from .frame import FrameData
from .classification import (
    Category,
    ClassificationResult,
    ClassificationError,
    ClassifierOutcome,
    rank_categories,
)
from .capture import PhotoSaved, PhotoCaptureFailed, CaptureOutcome
from .config import (
    Config,
    CameraConfig,
    AnalysisConfig,
    ClassifierConfig,
    CaptureConfig,
    MatchConfig,
    WebConfig,
)

__all__ = [
    # Frame
    "FrameData",
    # Classification
    "Category",
    "ClassificationResult",
    "ClassificationError",
    "ClassifierOutcome",
    "rank_categories",
    # Capture
    "PhotoSaved",
    "PhotoCaptureFailed",
    "CaptureOutcome",
    # Config
    "Config",
    "CameraConfig",
    "AnalysisConfig",
    "ClassifierConfig",
    "CaptureConfig",
    "MatchConfig",
    "WebConfig",
]
