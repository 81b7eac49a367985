"""
Detection interfaces.

Detectors turn a frame into zero or more candidate positions; sample
producers reduce those candidates to at most one Sample per frame for the
event core. Backends:
- colour match (step-sampled nearest colour)
- YOLO object detection (ball-like classes) with colour fallback
- YOLO pose estimation (limb keypoints)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Tuple, Union

import numpy as np

from models.frame import FrameData
from models.sample import PoseSample, Sample


@dataclass(frozen=True)
class Detection:
    """
    A single detection.

    bbox is in pixel coordinates in the original frame.
    """

    x1: float
    y1: float
    x2: float
    y2: float
    confidence: float = 1.0
    class_name: Optional[str] = None

    @classmethod
    def from_center(
        cls, cx: float, cy: float, size: float, confidence: float = 1.0, class_name: Optional[str] = None
    ) -> "Detection":
        half = size / 2.0
        return cls(cx - half, cy - half, cx + half, cy + half, confidence, class_name)

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.x1 + self.x2) / 2.0, (self.y1 + self.y2) / 2.0)

    def to_sample(self, timestamp: float) -> Sample:
        cx, cy = self.center
        return Sample.from_xy(cx, cy, timestamp, self.confidence)


class Detector:
    """Detector interface returning detections in pixel-space."""

    def detect(self, frame: np.ndarray) -> List[Detection]:
        raise NotImplementedError


class SampleProducer(Protocol):
    """Reduces one frame to at most one sample for the event core."""

    def produce(self, frame_data: FrameData) -> Optional[Union[Sample, PoseSample]]:
        ...


def best_detection(detections: Sequence[Detection]) -> Optional[Detection]:
    """Highest-confidence candidate; the first one wins ties."""
    best: Optional[Detection] = None
    for det in detections:
        if best is None or det.confidence > best.confidence:
            best = det
    return best


class BallSampleProducer:
    """
    Adapts a Detector to the SampleProducer contract.

    Frames without a candidate produce None, so the event core receives no
    sample for that tick.
    """

    def __init__(self, detector: Detector):
        self._detector = detector
        self._last_detection: Optional[Detection] = None

    @property
    def detector(self) -> Detector:
        return self._detector

    @property
    def last_detection(self) -> Optional[Detection]:
        return self._last_detection

    def produce(self, frame_data: FrameData) -> Optional[Sample]:
        det = best_detection(self._detector.detect(frame_data.frame))
        self._last_detection = det
        if det is None:
            return None
        return det.to_sample(frame_data.timestamp)
