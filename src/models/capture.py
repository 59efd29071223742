"""
Still photo capture outcome models.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Union


@dataclass(frozen=True)
class PhotoSaved:
    """A still photo was written to `path`."""
    path: str
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": True, "path": self.path, "timestamp": self.timestamp}


@dataclass(frozen=True)
class PhotoCaptureFailed:
    """A still capture targeting `path` did not produce a file."""
    path: str
    error: str
    timestamp: float

    def to_dict(self) -> Dict[str, Any]:
        return {"ok": False, "path": self.path, "error": self.error, "timestamp": self.timestamp}


CaptureOutcome = Union[PhotoSaved, PhotoCaptureFailed]
