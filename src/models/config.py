"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

# Where still photos land unless capture.output_dir overrides it.
DEFAULT_PICTURES_DIR = os.path.join("~", "Pictures")


@dataclass
class CameraConfig:
    """Camera configuration."""
    backend: str = "opencv"
    device_id: Union[int, str] = 0
    resolution: List[int] = field(default_factory=lambda: [640, 480])
    fps: int = 30
    rotation: Optional[int] = 0
    flip_horizontal: bool = False
    flip_vertical: bool = False
    max_retries: int = 3
    permission_retries: int = 1
    permission_retry_delay_s: float = 2.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CameraConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            backend=d.get("backend", "opencv"),
            device_id=d.get("device_id", 0),
            resolution=d.get("resolution", [640, 480]),
            fps=d.get("fps", 30),
            rotation=d.get("rotation", 0),
            flip_horizontal=d.get("flip_horizontal", False),
            flip_vertical=d.get("flip_vertical", False),
            max_retries=d.get("max_retries", 3),
            permission_retries=d.get("permission_retries", 1),
            permission_retry_delay_s=d.get("permission_retry_delay_s", 2.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "device_id": self.device_id,
            "resolution": self.resolution,
            "fps": self.fps,
            "rotation": self.rotation,
            "flip_horizontal": self.flip_horizontal,
            "flip_vertical": self.flip_vertical,
            "max_retries": self.max_retries,
            "permission_retries": self.permission_retries,
            "permission_retry_delay_s": self.permission_retry_delay_s,
        }


@dataclass
class AnalysisConfig:
    """Frame analysis endpoint configuration."""
    backpressure: str = "keep_only_latest"
    output_format: str = "rgba_8888"
    on_size_change: str = "reallocate"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "AnalysisConfig":
        return cls(
            backpressure=d.get("backpressure", "keep_only_latest"),
            output_format=d.get("output_format", "rgba_8888"),
            on_size_change=d.get("on_size_change", "reallocate"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backpressure": self.backpressure,
            "output_format": self.output_format,
            "on_size_change": self.on_size_change,
        }


@dataclass
class ClassifierConfig:
    """
    Image classifier configuration.

    No hardware delegate is configured; inference runs on `num_threads`
    CPU threads.
    """
    model_path: str = "model.tflite"
    labels_path: Optional[str] = None
    score_threshold: float = 0.5
    max_results: int = 3
    num_threads: int = 2
    input_mean: float = 127.5
    input_std: float = 127.5

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ClassifierConfig":
        return cls(
            model_path=d.get("model_path", "model.tflite"),
            labels_path=d.get("labels_path"),
            score_threshold=d.get("score_threshold", 0.5),
            max_results=d.get("max_results", 3),
            num_threads=d.get("num_threads", 2),
            input_mean=d.get("input_mean", 127.5),
            input_std=d.get("input_std", 127.5),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "model_path": self.model_path,
            "score_threshold": self.score_threshold,
            "max_results": self.max_results,
            "num_threads": self.num_threads,
            "input_mean": self.input_mean,
            "input_std": self.input_std,
        }
        if self.labels_path is not None:
            d["labels_path"] = self.labels_path
        return d


@dataclass
class CaptureConfig:
    """Still photo capture configuration."""
    output_dir: str = DEFAULT_PICTURES_DIR
    filename: str = "photo.jpg"
    jpeg_quality: int = 95

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "CaptureConfig":
        return cls(
            output_dir=d.get("output_dir", DEFAULT_PICTURES_DIR),
            filename=d.get("filename", "photo.jpg"),
            jpeg_quality=d.get("jpeg_quality", 95),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "output_dir": self.output_dir,
            "filename": self.filename,
            "jpeg_quality": self.jpeg_quality,
        }

    @property
    def output_path(self) -> str:
        """Fully expanded path of the photo file."""
        return os.path.join(os.path.expanduser(self.output_dir), self.filename)


@dataclass
class MatchConfig:
    """Top-result match rule applied on the UI thread."""
    target_index: int = 0
    min_score: float = 0.99

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "MatchConfig":
        return cls(
            target_index=d.get("target_index", 0),
            min_score=d.get("min_score", 0.99),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "target_index": self.target_index,
            "min_score": self.min_score,
        }


@dataclass
class WebConfig:
    """Web interface configuration."""
    enabled: bool = True
    host: str = "127.0.0.1"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=d.get("enabled", True),
            host=d.get("host", "127.0.0.1"),
            port=d.get("port", 5000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "enabled": self.enabled,
            "host": self.host,
            "port": self.port,
        }


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure. It is
    built once at startup, after validate_config() accepted the raw dict.
    """
    camera: CameraConfig = field(default_factory=CameraConfig)
    analysis: AnalysisConfig = field(default_factory=AnalysisConfig)
    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    capture: CaptureConfig = field(default_factory=CaptureConfig)
    match: MatchConfig = field(default_factory=MatchConfig)
    web: WebConfig = field(default_factory=WebConfig)
    log_path: str = "logs/camera_classifier.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            camera=CameraConfig.from_dict(d.get("camera", {}) or {}),
            analysis=AnalysisConfig.from_dict(d.get("analysis", {}) or {}),
            classifier=ClassifierConfig.from_dict(d.get("classifier", {}) or {}),
            capture=CaptureConfig.from_dict(d.get("capture", {}) or {}),
            match=MatchConfig.from_dict(d.get("match", {}) or {}),
            web=WebConfig.from_dict(d.get("web", {}) or {}),
            log_path=d.get("log_path", "logs/camera_classifier.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary (for saving or the web health view)."""
        return {
            "camera": self.camera.to_dict(),
            "analysis": self.analysis.to_dict(),
            "classifier": self.classifier.to_dict(),
            "capture": self.capture.to_dict(),
            "match": self.match.to_dict(),
            "web": self.web.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
