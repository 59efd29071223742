from __future__ import annotations

import logging
import os
import time
from typing import Any, Dict, Optional

import cv2
from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from ..api_models import CaptureResponse, StatusResponse
from ..services.health_service import HealthService
from ..state import state

router = APIRouter()


def _compute_warnings(
    last_frame_age_s: Optional[float],
    classifier_ready: bool,
    disk_free_pct: Optional[float],
) -> list[str]:
    """
    Compute warning flags for the status endpoint.

    Thresholds:
    - camera_stale: last_frame_age_s > 2
    - camera_offline: last_frame_age_s > 10 (or no frame yet)
    - classifier_unavailable: model not loaded
    - disk_low: disk_free_pct < 10 (where photos are written)
    """
    warnings = []

    if last_frame_age_s is not None:
        if last_frame_age_s > 10:
            warnings.append("camera_offline")
        elif last_frame_age_s > 2:
            warnings.append("camera_stale")
    else:
        warnings.append("camera_offline")

    if not classifier_ready:
        warnings.append("classifier_unavailable")

    if disk_free_pct is not None and disk_free_pct < 10:
        warnings.append("disk_low")

    return warnings


@router.get("/health")
def health() -> Dict[str, Any]:
    cfg = state.get_config_copy() or {}
    return HealthService(cfg=cfg).get_health_summary()


@router.get("/status", response_model=StatusResponse)
def status():
    """
    Status for UI polling: camera freshness, analysis counters, the latest
    top categories, matches, and the last still capture.
    """
    now = time.time()
    coordinator = state.coordinator
    snapshot: Dict[str, Any] = coordinator.status() if coordinator is not None else {}

    sys_stats = state.get_system_stats_copy()
    start_time = sys_stats.get("start_time") or None
    uptime = int(now - start_time) if start_time else None

    cfg = state.get_config_copy() or {}
    photo_dir = os.path.expanduser((cfg.get("capture", {}) or {}).get("output_dir", "."))
    disk_free_pct = HealthService.disk_usage(photo_dir).get("pct_free")

    classifier_ready = bool(snapshot.get("classifier_ready"))
    last_frame_age_s = snapshot.get("last_frame_age_s")

    return StatusResponse(
        running=bool(snapshot.get("initialized")),
        classifier_ready=classifier_ready,
        uptime_seconds=uptime,
        last_frame_age_s=last_frame_age_s,
        frames_submitted=snapshot.get("frames_submitted", 0),
        frames_analyzed=snapshot.get("frames_analyzed", 0),
        frames_dropped=snapshot.get("frames_dropped", 0),
        last_inference_ms=snapshot.get("last_inference_ms"),
        top_categories=snapshot.get("top_categories", []),
        matches=snapshot.get("matches", 0),
        last_error=snapshot.get("last_error"),
        last_capture=snapshot.get("last_capture"),
        warnings=_compute_warnings(last_frame_age_s, classifier_ready, disk_free_pct),
    )


@router.post("/capture", status_code=202, response_model=CaptureResponse)
def capture():
    """Trigger a still capture; the outcome shows up in /api/status."""
    coordinator = state.coordinator
    if coordinator is None or not coordinator.is_initialized:
        raise HTTPException(status_code=503, detail="Camera is not bound")

    try:
        coordinator.capture_photo()
    except RuntimeError as e:
        # Coordinator closed between the check and the call
        raise HTTPException(status_code=503, detail=str(e))
    logging.info("Still capture requested via web")
    return CaptureResponse(accepted=True, path=coordinator.config.capture.output_path)


@router.get("/camera/snapshot.jpg")
def camera_snapshot():
    frame = state.get_frame()
    if frame is None:
        raise HTTPException(status_code=503, detail="No frame available yet")

    ok, buf = cv2.imencode(".jpg", frame)
    if not ok:
        raise HTTPException(status_code=500, detail="Failed to encode JPEG")

    return StreamingResponse(
        iter([buf.tobytes()]),
        media_type="image/jpeg",
        headers={"Cache-Control": "no-store"},
    )
