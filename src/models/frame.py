"""
FrameData model for captured video frames.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Optional, Tuple

import numpy as np


def monotonic_ms() -> float:
    """Monotonic clock in milliseconds, the time base of all samples."""
    return time.monotonic() * 1000.0


@dataclass
class FrameData:
    """
    A captured video frame and its capture time.

    Attributes:
        frame: The raw frame as a numpy array (BGR format).
        timestamp: Monotonic capture time in milliseconds.
        frame_index: Sequential frame number since the source was opened.
        source: Identifier for the camera/video source.
    """
    frame: np.ndarray
    timestamp: float
    frame_index: int = 0
    source: Optional[str] = None

    @classmethod
    def capture(cls, frame: np.ndarray, frame_index: int = 0, source: Optional[str] = None) -> "FrameData":
        """Stamp a freshly read frame with the monotonic clock."""
        return cls(frame=frame, timestamp=monotonic_ms(), frame_index=frame_index, source=source)

    @property
    def width(self) -> int:
        return int(self.frame.shape[1])

    @property
    def height(self) -> int:
        return int(self.frame.shape[0])

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)
