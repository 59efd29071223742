"""
FastAPI application factory for the camera classifier.

Routes:
- /api/status -> classification and capture status
- /api/capture -> trigger a still photo
- /api/health -> platform and model info
- /api/camera/snapshot.jpg -> latest preview frame
"""

from __future__ import annotations

from fastapi import FastAPI

from .routes import api


def create_app() -> FastAPI:
    """Create the FastAPI app and wire routes."""
    app = FastAPI(
        title="Camera Classifier",
        version="0.1.0",
        description="On-device camera frame classification with still capture",
    )
    app.include_router(api.router, prefix="/api")
    return app
