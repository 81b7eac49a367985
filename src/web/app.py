"""
FastAPI application factory for the motion event counter.

Routes:
- /api/status                     -> detector status
- /api/reset, /api/start, /api/stop, /api/sensitivity, /api/calibrate, /api/ball-size
- /api/camera/snapshot.jpg, /api/camera/live.mjpg -> annotated video
"""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .routes import api


def create_app() -> FastAPI:
    """Create the FastAPI app and wire the API routes."""
    app = FastAPI(
        title="Motion Counter",
        version="0.1.0",
        description="Camera-based hit detection and throw/catch rep counting",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api.router, prefix="/api")

    return app


# Exported application instance for uvicorn
app = create_app()
