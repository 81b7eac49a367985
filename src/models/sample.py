"""
Sample models for the motion-event core.

A Sample is one timestamped, confidence-scored position observation of the
tracked object. The position has 2 components (image plane) or 3 components
(image plane plus a relative depth, as produced by pose estimators).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

Position = Tuple[float, ...]


def _clamp_confidence(value: Optional[float]) -> float:
    if value is None:
        return 1.0
    return max(0.0, min(1.0, float(value)))


def fold_degrees(angle: float) -> float:
    """Fold an absolute angle in [0, 360) into [0, 180]."""
    angle = abs(angle) % 360.0
    if angle > 180.0:
        angle = 360.0 - angle
    return angle


def joint_angle_degrees(a: Sequence[float], b: Sequence[float], c: Sequence[float]) -> float:
    """Angle at vertex b between rays b->a and b->c, in [0, 180]."""
    if (a[0] == b[0] and a[1] == b[1]) or (c[0] == b[0] and c[1] == b[1]):
        return 0.0

    radians = math.atan2(c[1] - b[1], c[0] - b[0]) - math.atan2(a[1] - b[1], a[0] - b[0])
    return fold_degrees(math.degrees(radians))


def distance(p1: Sequence[float], p2: Sequence[float]) -> float:
    """Euclidean distance over the components both points share."""
    n = min(len(p1), len(p2))
    return math.sqrt(sum((p2[i] - p1[i]) ** 2 for i in range(n)))


@dataclass(frozen=True)
class Sample:
    """
    One observation of the tracked point.

    Attributes:
        position: 2 or 3 scalar components (x, y[, z]).
        timestamp: Monotonic time in milliseconds.
        confidence: Detector confidence in [0, 1].
    """
    position: Position
    timestamp: float
    confidence: float = 1.0

    def __post_init__(self) -> None:
        if len(self.position) not in (2, 3):
            raise ValueError(f"Sample position must have 2 or 3 components, got {len(self.position)}")
        object.__setattr__(self, "position", tuple(float(v) for v in self.position))
        object.__setattr__(self, "confidence", _clamp_confidence(self.confidence))

    @classmethod
    def from_xy(cls, x: float, y: float, timestamp: float, confidence: Optional[float] = 1.0) -> "Sample":
        return cls(position=(x, y), timestamp=timestamp, confidence=_clamp_confidence(confidence))

    @classmethod
    def from_xyz(
        cls, x: float, y: float, z: float, timestamp: float, confidence: Optional[float] = 1.0
    ) -> "Sample":
        return cls(position=(x, y, z), timestamp=timestamp, confidence=_clamp_confidence(confidence))

    @property
    def dimension(self) -> int:
        return len(self.position)

    @property
    def x(self) -> float:
        return self.position[0]

    @property
    def y(self) -> float:
        return self.position[1]

    @property
    def z(self) -> float:
        """Depth component, 0.0 for planar samples."""
        return self.position[2] if len(self.position) == 3 else 0.0

    def to_dict(self) -> dict:
        return {
            "position": list(self.position),
            "timestamp": self.timestamp,
            "confidence": self.confidence,
        }


@dataclass(frozen=True)
class Velocity:
    """
    Velocity between two samples, in position units per second.

    vz is 0.0 when the samples are planar.
    """
    vx: float
    vy: float
    vz: float = 0.0
    magnitude: float = 0.0

    @classmethod
    def zero(cls) -> "Velocity":
        return cls(0.0, 0.0, 0.0, 0.0)

    @classmethod
    def from_components(cls, vx: float, vy: float, vz: float = 0.0) -> "Velocity":
        return cls(vx, vy, vz, math.sqrt(vx * vx + vy * vy + vz * vz))

    def component(self, axis: str) -> float:
        """Return the component for axis "x", "y" or "z"."""
        if axis == "x":
            return self.vx
        if axis == "y":
            return self.vy
        if axis == "z":
            return self.vz
        raise ValueError(f"Unknown axis: {axis}")

    @property
    def is_zero(self) -> bool:
        return self.magnitude == 0.0


@dataclass(frozen=True)
class PoseSample:
    """
    Limb observation used by the rep counter.

    The endpoint (e.g. wrist) is the tracked point; the joint (e.g. elbow) and
    anchor (e.g. shoulder) give the limb angle and the return-to-body distance.

    Attributes:
        endpoint: Tracked point sample (carries timestamp and confidence).
        joint: Position of the joint vertex.
        anchor: Position of the reference anchor.
    """
    endpoint: Sample
    joint: Position
    anchor: Position

    @property
    def timestamp(self) -> float:
        return self.endpoint.timestamp

    @property
    def confidence(self) -> float:
        return self.endpoint.confidence

    @property
    def joint_angle(self) -> float:
        return joint_angle_degrees(self.anchor, self.joint, self.endpoint.position)

    @property
    def anchor_distance(self) -> float:
        return distance(self.endpoint.position, self.anchor)
