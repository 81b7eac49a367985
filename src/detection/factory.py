"""
Build the sample producer selected by configuration.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from .base import BallSampleProducer, SampleProducer
from .color import ColorDetector, ColorDetectorConfig

DETECTION_BACKENDS = ("color", "yolo", "pose")


def create_sample_producer(config: Dict[str, Any]) -> SampleProducer:
    """
    Create the upstream sample producer for the configured mode.

    - mode "hit": colour detector, or YOLO ball detection with colour fallback
    - mode "rep": YOLO pose estimator

    Args:
        config: Full application config dict.

    Raises:
        ValueError: If the backend does not fit the mode.
    """
    mode = config.get("mode", "hit")
    detection_cfg = config.get("detection", {}) or {}
    backend = detection_cfg.get("backend", "color")
    color_detector = ColorDetector(ColorDetectorConfig.from_dict(detection_cfg.get("color", {}) or {}))

    if mode == "rep":
        if backend != "pose":
            raise ValueError(f"mode 'rep' requires detection.backend 'pose', got '{backend}'")
        from .yolo import create_yolo_pose_estimator
        logging.info("Sample producer: YOLO pose estimator")
        return create_yolo_pose_estimator(detection_cfg.get("yolo", {}) or {})

    if backend == "yolo":
        from .yolo import create_yolo_ball_detector
        logging.info("Sample producer: YOLO ball detector with colour fallback")
        return BallSampleProducer(
            create_yolo_ball_detector(detection_cfg.get("yolo", {}) or {}, fallback=color_detector)
        )
    if backend == "color":
        logging.info("Sample producer: colour detector")
        return BallSampleProducer(color_detector)

    raise ValueError(f"mode 'hit' requires detection.backend 'color' or 'yolo', got '{backend}'")


def find_color_detector(producer: Any) -> Optional[ColorDetector]:
    """
    Return the colour detector behind a producer, if there is one.

    Looks through BallSampleProducer and a YOLO detector's colour fallback.
    """
    detector = getattr(producer, "detector", None)
    if isinstance(detector, ColorDetector):
        return detector
    fallback = getattr(detector, "fallback", None)
    if isinstance(fallback, ColorDetector):
        return fallback
    return None
