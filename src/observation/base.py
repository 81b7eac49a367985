"""
Frame sources feeding the motion counter.

A source is pumped by the pipeline engine one frame at a time; the event core
only ever sees the samples derived from those frames. Implementations:
- OpenCVSource: webcam index or recorded session video
- test replays producing synthetic frames at a fixed cadence
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Iterator, Optional, Tuple

from models.frame import FrameData


@dataclass
class ObservationConfig:
    """
    Settings shared by every frame source.

    Attributes:
        source_id: Name stamped on each FrameData (e.g. "main-camera").
        resolution: Requested (width, height); None keeps the device default.
        fps: Requested capture rate; None keeps the device default.
    """
    source_id: str = "default"
    resolution: Optional[Tuple[int, int]] = None
    fps: Optional[int] = None


class ObservationSource(ABC):
    """
    A camera or video that yields monotonic-stamped frames.

    open() must succeed before read(); read() returns None once the video ends
    or the camera stops delivering, and the engine counts those as failures.
    close() releases the device and may be called more than once.

        with OpenCVSource(OpenCVSourceConfig(device_id="session.mp4")) as source:
            for frame_data in source:
                engine.process_frame(frame_data)
    """

    def __init__(self, config: ObservationConfig):
        self._config = config
        self._is_open = False
        self._frame_index = 0

    @property
    def source_id(self) -> str:
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    @property
    def frame_index(self) -> int:
        """Frames delivered since the last open()."""
        return self._frame_index

    @abstractmethod
    def open(self) -> None:
        """Acquire the camera or video. Raises RuntimeError when unavailable."""

    @abstractmethod
    def read(self) -> Optional[FrameData]:
        """Next frame, or None when nothing could be read."""

    @abstractmethod
    def close(self) -> None:
        ...

    def __enter__(self) -> "ObservationSource":
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __iter__(self) -> Iterator[FrameData]:
        if not self._is_open:
            raise RuntimeError("Source must be open before iterating")

        frame_data = self.read()
        while frame_data is not None:
            yield frame_data
            frame_data = self.read()
