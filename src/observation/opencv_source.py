"""
OpenCV-based observation source.

Supports:
- USB webcams (device_id as int, e.g., 0)
- Video files (device_id as file path)
"""

from __future__ import annotations

import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional, Union

import cv2
import numpy as np

from models.frame import FrameData
from .base import ObservationConfig, ObservationSource


@dataclass
class OpenCVSourceConfig(ObservationConfig):
    """
    Configuration for OpenCV capture.

    Attributes:
        device_id: Camera index (int) or video file path (str).
        max_retries: Attempts to open the device before giving up.
        flip_horizontal: Mirror frames (selfie view for front cameras).
    """
    device_id: Union[int, str] = 0
    max_retries: int = 3
    flip_horizontal: bool = False

    @classmethod
    def from_camera_config(cls, camera_cfg: Dict[str, Any], source_id: str = "camera") -> "OpenCVSourceConfig":
        """Adapter: Create from the camera section of the config."""
        resolution = camera_cfg.get("resolution")
        if resolution:
            resolution = tuple(resolution)

        return cls(
            source_id=source_id,
            resolution=resolution,
            fps=camera_cfg.get("fps"),
            device_id=camera_cfg.get("device_id", 0),
            max_retries=camera_cfg.get("max_retries", 3),
            flip_horizontal=camera_cfg.get("flip_horizontal", False),
        )


class OpenCVSource(ObservationSource):
    """
    cv2.VideoCapture wrapper producing FrameData with monotonic timestamps.

    Example:
        config = OpenCVSourceConfig(device_id=0, resolution=(640, 480))
        with OpenCVSource(config) as source:
            for frame_data in source:
                process(frame_data.frame)
    """

    def __init__(self, config: OpenCVSourceConfig):
        super().__init__(config)
        self._opencv_config = config
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def device_id(self) -> Union[int, str]:
        return self._opencv_config.device_id

    @property
    def is_file(self) -> bool:
        return isinstance(self.device_id, str) and os.path.exists(self.device_id)

    def open(self) -> None:
        if self._is_open:
            return

        self._initialize(retry_count=0)
        self._is_open = True
        self._frame_index = 0
        logging.info(
            f"OpenCVSource opened: source_id={self.source_id}, "
            f"device={self.device_id}, resolution={self._opencv_config.resolution}"
        )

    def _initialize(self, retry_count: int = 0) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None

        if retry_count > 0:
            wait_time = min(2 ** retry_count, 10)
            logging.info(
                f"Retrying initialization (attempt {retry_count + 1}/"
                f"{self._opencv_config.max_retries}) after {wait_time}s"
            )
            time.sleep(wait_time)

        self._cap = cv2.VideoCapture(self.device_id)

        if not self._cap.isOpened():
            if retry_count < self._opencv_config.max_retries - 1:
                logging.warning(f"Failed to open device {self.device_id}, retrying...")
                return self._initialize(retry_count + 1)
            raise RuntimeError(
                f"Failed to open device {self.device_id} after "
                f"{self._opencv_config.max_retries} attempts"
            )

        if isinstance(self.device_id, int) and self._opencv_config.resolution:
            w, h = self._opencv_config.resolution
            self._cap.set(cv2.CAP_PROP_FRAME_WIDTH, w)
            self._cap.set(cv2.CAP_PROP_FRAME_HEIGHT, h)
            if self._opencv_config.fps:
                self._cap.set(cv2.CAP_PROP_FPS, self._opencv_config.fps)
            logging.info(
                f"Camera actual settings - Resolution: ({self._cap.get(cv2.CAP_PROP_FRAME_WIDTH)}x"
                f"{self._cap.get(cv2.CAP_PROP_FRAME_HEIGHT)}), FPS: {self._cap.get(cv2.CAP_PROP_FPS)}"
            )

    def read(self) -> Optional[FrameData]:
        if not self._is_open or self._cap is None:
            return None

        ret, frame = self._cap.read()
        if not ret or frame is None:
            if self.is_file:
                logging.info("End of video file reached")
            else:
                logging.warning(f"Failed to read frame from device {self.device_id}")
            return None

        frame = self._apply_transforms(frame)
        self._frame_index += 1
        return FrameData.capture(frame, frame_index=self._frame_index, source=self.source_id)

    def _apply_transforms(self, frame: np.ndarray) -> np.ndarray:
        if self._opencv_config.flip_horizontal:
            frame = cv2.flip(frame, 1)
        return frame

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None
        self._is_open = False
        logging.info(f"OpenCVSource closed: source_id={self.source_id}")
