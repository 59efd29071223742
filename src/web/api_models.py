from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class CategoryModel(BaseModel):
    index: int
    label: str
    score: float


class CaptureModel(BaseModel):
    ok: bool
    path: str
    timestamp: float
    error: Optional[str] = None


class StatusResponse(BaseModel):
    """
    Status snapshot optimized for frontend polling.
    """
    running: bool = Field(..., description="True if the camera is bound")
    classifier_ready: bool = Field(False, description="True once the model loaded")
    uptime_seconds: Optional[int] = Field(None, description="Seconds since startup")
    last_frame_age_s: Optional[float] = Field(None, description="Seconds since last frame")
    frames_submitted: int = Field(0, description="Frames offered to analysis")
    frames_analyzed: int = Field(0, description="Frames classified")
    frames_dropped: int = Field(0, description="Frames dropped by keep-only-latest")
    last_inference_ms: Optional[float] = Field(None, description="Latest inference time")
    top_categories: List[CategoryModel] = Field(default_factory=list)
    matches: int = Field(0, description="Top results that hit the target category")
    last_error: Optional[str] = None
    last_capture: Optional[CaptureModel] = None
    warnings: list[str] = Field(default_factory=list, description="Active warnings")


class CaptureResponse(BaseModel):
    accepted: bool
    path: str
