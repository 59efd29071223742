"""
Pipeline module for the camera classifier.

The pipeline orchestrates the full processing flow:
- Frame acquisition from a camera source (UI loop)
- Keep-only-latest frame analysis on a single worker
- Classification and the UI-thread top-result check
- Still photo capture
"""

from .analysis import ImageAnalysis, AnalysisStats
from .consumer import TopResultMatcher
from .coordinator import CaptureCoordinator
from .engine import PipelineEngine, EngineConfig
from .frame_buffer import AnalyzerState, FrameSizeMismatchError
from .still_capture import ImageCapture

__all__ = [
    "ImageAnalysis",
    "AnalysisStats",
    "TopResultMatcher",
    "CaptureCoordinator",
    "PipelineEngine",
    "EngineConfig",
    "AnalyzerState",
    "FrameSizeMismatchError",
    "ImageCapture",
]
