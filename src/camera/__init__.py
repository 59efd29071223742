"""
Camera layer: pluggable frame sources and access checks.

Each source implements the CameraSource interface and returns RGBA
FrameData objects.
"""

from .base import CameraSource, SourceConfig
from .opencv_source import OpenCVSource, OpenCVSourceConfig, create_source_from_config
from .permission import PermissionGate, has_camera_access

__all__ = [
    "CameraSource",
    "SourceConfig",
    "OpenCVSource",
    "OpenCVSourceConfig",
    "create_source_from_config",
    "PermissionGate",
    "has_camera_access",
]
