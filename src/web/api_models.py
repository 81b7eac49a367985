from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class LastEvent(BaseModel):
    sequence_number: int
    timestamp: float
    kind: str


class StatusResponse(BaseModel):
    """
    Detector status for dashboard polling.
    """
    mode: str = Field(..., description="hit|rep")
    running: bool = Field(..., description="False while detection is stopped")
    count: int = Field(0, description="Events counted since the last reset")
    state: str = Field(..., description="Detector state (tracking, READY, THROWING, CATCHING)")
    sensitivity: float
    rate: float = Field(0.0, description="Events per minute")
    consistency: float = Field(100.0, description="Timing consistency score, 0-100")
    last_event: Optional[LastEvent] = None
    last_frame_age_s: Optional[float] = Field(None, description="Seconds since last frame")


class SensitivityRequest(BaseModel):
    sensitivity: float = Field(..., ge=0.1, le=5.0, description="Threshold multiplier")


class CalibrateRequest(BaseModel):
    x: int = Field(..., ge=0, description="Pixel column in the latest frame")
    y: int = Field(..., ge=0, description="Pixel row in the latest frame")


class CalibrateResponse(BaseModel):
    target_rgb: list[int]


class CommandResponse(BaseModel):
    ok: bool = True
    status: StatusResponse


class BallSizeRequest(BaseModel):
    ball_size: int = Field(..., ge=4, le=200, description="Ball diameter in pixels")


class BallSizeResponse(BaseModel):
    ball_size: int
