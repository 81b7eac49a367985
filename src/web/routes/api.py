from __future__ import annotations

import logging
import time
from typing import Any, Dict

import cv2
from fastapi import APIRouter, HTTPException
from fastapi.responses import Response, StreamingResponse

from detection.factory import find_color_detector
from ..state import state
from ..api_models import (
    BallSizeRequest,
    BallSizeResponse,
    CalibrateRequest,
    CalibrateResponse,
    CommandResponse,
    SensitivityRequest,
    StatusResponse,
)

router = APIRouter()


def _require_stage():
    stage = state.stage
    if stage is None:
        raise HTTPException(status_code=503, detail="Event stage not initialized")
    return stage


def _status_payload(stage) -> Dict[str, Any]:
    payload = stage.status()
    last_frame_ts = state.get_system_stats_copy().get("last_frame_ts")
    payload["last_frame_age_s"] = time.time() - last_frame_ts if last_frame_ts else None
    return payload


@router.get("/status", response_model=StatusResponse)
def status():
    """
    Detector status for the dashboard.

    Fields: mode, running, count, state, sensitivity, rate (events/min),
    consistency (0-100), last_event and last_frame_age_s.
    """
    return _status_payload(_require_stage())


@router.post("/reset", response_model=CommandResponse)
def reset():
    stage = _require_stage()
    stage.reset()
    return {"ok": True, "status": _status_payload(stage)}


@router.post("/start", response_model=CommandResponse)
def start():
    stage = _require_stage()
    stage.start()
    return {"ok": True, "status": _status_payload(stage)}


@router.post("/stop", response_model=CommandResponse)
def stop():
    stage = _require_stage()
    stage.stop()
    return {"ok": True, "status": _status_payload(stage)}


@router.post("/sensitivity", response_model=CommandResponse)
def set_sensitivity(req: SensitivityRequest):
    stage = _require_stage()
    try:
        stage.set_sensitivity(req.sensitivity)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "status": _status_payload(stage)}


@router.post("/calibrate", response_model=CalibrateResponse)
def calibrate(req: CalibrateRequest):
    """
    Set the colour detector's target from a pixel of the latest raw frame.

    409 when no frame has been captured yet or the detector is not colour based.
    """
    _require_stage()
    detector = find_color_detector(state.producer)
    if detector is None:
        raise HTTPException(status_code=409, detail="Active detector is not colour based")

    frame = state.get_raw_frame()
    if frame is None:
        raise HTTPException(status_code=409, detail="No frame captured yet")

    try:
        rgb = detector.calibrate(frame, req.x, req.y)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    logging.info(f"[CALIBRATE] target colour set from ({req.x}, {req.y}): rgb={rgb}")
    return {"target_rgb": list(rgb)}


@router.post("/ball-size", response_model=BallSizeResponse)
def set_ball_size(req: BallSizeRequest):
    """Resize the colour detector's ball box and the overlay indicator."""
    _require_stage()
    detector = find_color_detector(state.producer)
    if detector is None:
        raise HTTPException(status_code=409, detail="Active detector is not colour based")

    detector.set_ball_size(req.ball_size)
    return {"ball_size": detector.ball_size}


@router.get("/camera/snapshot.jpg")
def camera_snapshot():
    frame = state.get_frame()
    if frame is None:
        raise HTTPException(status_code=503, detail="No frame captured yet")
    ok, buf = cv2.imencode(".jpg", frame)
    if not ok:
        raise HTTPException(status_code=500, detail="JPEG encoding failed")
    return Response(content=buf.tobytes(), media_type="image/jpeg")


@router.get("/camera/live.mjpg")
def camera_live_stream(fps: int = 10):
    """
    Stream MJPEG frames from the shared state (populated by the pipeline loop).
    """
    fps = max(1, min(30, int(fps)))
    delay = 1.0 / fps

    def gen():
        while True:
            frame = state.get_frame()
            if frame is None:
                time.sleep(0.1)
                continue

            ok, buf = cv2.imencode(".jpg", frame)
            if not ok:
                time.sleep(delay)
                continue
            jpg = buf.tobytes()
            yield b"--frame\r\nContent-Type: image/jpeg\r\n\r\n" + jpg + b"\r\n"
            time.sleep(delay)

    return StreamingResponse(gen(), media_type="multipart/x-mixed-replace; boundary=frame")
