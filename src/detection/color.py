"""
Colour-match ball detector.

Scans the frame on a coarse grid and returns the pixel closest to the target
colour, provided it lies within the colour tolerance. The target colour can
be re-sampled from a clicked pixel (calibration).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Tuple

import numpy as np

from .base import Detection, Detector


@dataclass
class ColorDetectorConfig:
    """
    Configuration for colour-match detection.

    Attributes:
        target_rgb: Target colour as [r, g, b]. Frames are BGR; conversion is internal.
        tolerance: Maximum Euclidean RGB distance for a match.
        step: Grid step in pixels (every step-th row and column is scanned).
        ball_size: Reported bbox size in pixels (overlay indicator only).
    """
    target_rgb: List[int] = field(default_factory=lambda: [255, 165, 0])
    tolerance: float = 50.0
    step: int = 4
    ball_size: int = 30

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ColorDetectorConfig":
        return cls(
            target_rgb=list(d.get("target_rgb", [255, 165, 0])),
            tolerance=float(d.get("tolerance", 50.0)),
            step=int(d.get("step", 4)),
            ball_size=int(d.get("ball_size", 30)),
        )


def color_distance(c1: Tuple[int, int, int], c2: Tuple[int, int, int]) -> float:
    """Euclidean distance between two colours."""
    return float(np.sqrt(sum((float(a) - float(b)) ** 2 for a, b in zip(c1, c2))))


class ColorDetector(Detector):
    """
    Step-sampled nearest-colour detector.

    Example:
        detector = ColorDetector(ColorDetectorConfig(target_rgb=[255, 165, 0]))
        detections = detector.detect(frame)
    """

    def __init__(self, config: ColorDetectorConfig):
        if config.step <= 0:
            raise ValueError(f"step must be positive, got {config.step}")
        if config.tolerance <= 0:
            raise ValueError(f"tolerance must be positive, got {config.tolerance}")
        self._config = config

    @property
    def target_rgb(self) -> Tuple[int, int, int]:
        r, g, b = self._config.target_rgb
        return (int(r), int(g), int(b))

    @property
    def ball_size(self) -> int:
        return self._config.ball_size

    def set_ball_size(self, size: int) -> None:
        if size <= 0:
            raise ValueError(f"ball_size must be positive, got {size}")
        self._config.ball_size = int(size)
        logging.info(f"Ball size set to {self._config.ball_size}px")

    def detect(self, frame: np.ndarray) -> List[Detection]:
        if frame is None or frame.size == 0:
            return []

        step = self._config.step
        grid = frame[::step, ::step, :3].astype(np.float32)
        target_bgr = np.array(self.target_rgb[::-1], dtype=np.float32)
        distances = np.sqrt(((grid - target_bgr) ** 2).sum(axis=2))

        # argmin returns the first minimum in row-major (scan) order
        flat_idx = int(np.argmin(distances))
        gy, gx = np.unravel_index(flat_idx, distances.shape)
        best = float(distances[gy, gx])
        if best >= self._config.tolerance:
            return []

        confidence = (self._config.tolerance - best) / self._config.tolerance
        return [
            Detection.from_center(
                float(gx * step),
                float(gy * step),
                self._config.ball_size,
                confidence=confidence,
                class_name="color",
            )
        ]

    def calibrate(self, frame: np.ndarray, x: int, y: int) -> Tuple[int, int, int]:
        """
        Sample the target colour from pixel (x, y) of a BGR frame.

        Returns:
            The new target colour as (r, g, b).

        Raises:
            ValueError: If (x, y) is outside the frame.
        """
        h, w = frame.shape[:2]
        if not (0 <= x < w and 0 <= y < h):
            raise ValueError(f"Calibration point ({x}, {y}) outside frame {w}x{h}")

        b, g, r = (int(v) for v in frame[y, x, :3])
        self._config.target_rgb = [r, g, b]
        logging.info(f"Ball colour calibrated: RGB({r}, {g}, {b})")
        return (r, g, b)
