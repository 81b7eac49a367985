"""
Ultralytics YOLO backends.

- YoloBallDetector: object detection filtered to ball-like classes, with an
  optional fallback detector (colour match) when the model finds nothing.
- YoloPoseEstimator: pose model producing limb PoseSamples for rep counting.

Ultralytics is an optional dependency; it is imported when a backend is built.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

import numpy as np

from models.frame import FrameData
from models.sample import PoseSample, Sample
from .base import Detection, Detector

# COCO keypoint indices: (shoulder, elbow, wrist)
LIMB_KEYPOINTS = {
    "left": (5, 7, 9),
    "right": (6, 8, 10),
}


def _load_yolo(model_path: str) -> Any:
    try:
        from ultralytics import YOLO  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError(
            "Ultralytics is not installed. Install with `pip install ultralytics` "
            "or switch detection.backend to 'color'."
        ) from e
    return YOLO(model_path)


def _to_numpy(value: Any) -> np.ndarray:
    return value.cpu().numpy() if hasattr(value, "cpu") else np.asarray(value)


@dataclass(frozen=True)
class YoloBallConfig:
    model: str = "yolov8n.pt"
    conf_threshold: float = 0.25
    class_names: Sequence[str] = field(default_factory=lambda: ("sports ball", "orange", "apple"))


class YoloBallDetector(Detector):
    """YOLO detections restricted to ball-like classes, colour fallback when empty."""

    def __init__(self, cfg: YoloBallConfig, fallback: Optional[Detector] = None, model: Any = None):
        self.cfg = cfg
        self._fallback = fallback
        self._model = model if model is not None else _load_yolo(cfg.model)

    @property
    def fallback(self) -> Optional[Detector]:
        return self._fallback

    def detect(self, frame: np.ndarray) -> List[Detection]:
        out = self._detect_model(frame)
        if not out and self._fallback is not None:
            return self._fallback.detect(frame)
        return out

    def _detect_model(self, frame: np.ndarray) -> List[Detection]:
        try:
            results = self._model.predict(source=frame, conf=self.cfg.conf_threshold, verbose=False)
        except Exception as e:
            logging.error(f"YOLO detection error: {e}")
            return []
        if not results:
            return []

        r0 = results[0]
        names = getattr(r0, "names", None) or {}
        boxes = getattr(r0, "boxes", None)
        if boxes is None:
            return []

        wanted = set(self.cfg.class_names)
        out: List[Detection] = []
        for (x1, y1, x2, y2), c, k in zip(_to_numpy(boxes.xyxy), _to_numpy(boxes.conf), _to_numpy(boxes.cls)):
            class_name = names.get(int(k), str(int(k)))
            if class_name not in wanted:
                continue
            out.append(
                Detection(
                    x1=float(x1),
                    y1=float(y1),
                    x2=float(x2),
                    y2=float(y2),
                    confidence=float(c),
                    class_name=class_name,
                )
            )
        return out


@dataclass(frozen=True)
class YoloPoseConfig:
    model: str = "yolov8n-pose.pt"
    conf_threshold: float = 0.25
    min_keypoint_confidence: float = 0.5
    side: str = "right"


class YoloPoseEstimator:
    """
    Pose estimation producing one PoseSample per frame for the first person.

    Keypoints are normalised to [0, 1] of the frame, so proximity thresholds
    are in frame units. Frames where any limb keypoint is missing or below
    min_keypoint_confidence produce no sample.
    """

    def __init__(self, cfg: YoloPoseConfig, model: Any = None):
        if cfg.side not in LIMB_KEYPOINTS:
            raise ValueError(f"side must be one of {tuple(LIMB_KEYPOINTS)}, got {cfg.side}")
        self.cfg = cfg
        self._model = model if model is not None else _load_yolo(cfg.model)

    def produce(self, frame_data: FrameData) -> Optional[PoseSample]:
        try:
            results = self._model.predict(source=frame_data.frame, conf=self.cfg.conf_threshold, verbose=False)
        except Exception as e:
            logging.error(f"YOLO pose error: {e}")
            return None
        if not results:
            return None

        keypoints = getattr(results[0], "keypoints", None)
        if keypoints is None or getattr(keypoints, "xyn", None) is None:
            return None

        xyn = _to_numpy(keypoints.xyn)
        if xyn.ndim != 3 or xyn.shape[0] == 0:
            return None
        conf = _to_numpy(keypoints.conf) if getattr(keypoints, "conf", None) is not None else None

        shoulder_i, elbow_i, wrist_i = LIMB_KEYPOINTS[self.cfg.side]
        person = xyn[0]
        if conf is not None:
            scores = [float(conf[0][i]) for i in (shoulder_i, elbow_i, wrist_i)]
            if min(scores) < self.cfg.min_keypoint_confidence:
                return None
            wrist_conf = scores[2]
        else:
            wrist_conf = 1.0

        shoulder = (float(person[shoulder_i][0]), float(person[shoulder_i][1]))
        elbow = (float(person[elbow_i][0]), float(person[elbow_i][1]))
        wrist = person[wrist_i]
        return PoseSample(
            endpoint=Sample.from_xy(float(wrist[0]), float(wrist[1]), frame_data.timestamp, wrist_conf),
            joint=elbow,
            anchor=shoulder,
        )


def create_yolo_ball_detector(yolo_cfg: Dict[str, Any], fallback: Optional[Detector] = None) -> YoloBallDetector:
    cfg = YoloBallConfig(
        model=yolo_cfg.get("model") or "yolov8n.pt",
        conf_threshold=float(yolo_cfg.get("conf_threshold", 0.25)),
        class_names=tuple(yolo_cfg.get("class_names", ("sports ball", "orange", "apple"))),
    )
    return YoloBallDetector(cfg, fallback=fallback)


def create_yolo_pose_estimator(yolo_cfg: Dict[str, Any]) -> YoloPoseEstimator:
    cfg = YoloPoseConfig(
        model=yolo_cfg.get("model") or "yolov8n-pose.pt",
        conf_threshold=float(yolo_cfg.get("conf_threshold", 0.25)),
        min_keypoint_confidence=float(yolo_cfg.get("min_keypoint_confidence", 0.5)),
        side=str(yolo_cfg.get("side", "right")),
    )
    return YoloPoseEstimator(cfg)
